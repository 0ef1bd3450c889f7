"""Tests for configuration module."""

import pytest
import tempfile
import json
import logging
import os

from pydantic import ValidationError

from authz_identity.config.loader import load_config, validate_config
from authz_identity.config.models import Config, ResolverConfig, LoggingConfig


def test_load_config_from_file():
    """Test loading configuration from JSON file."""
    config_data = {
        "resolver": {
            "response_timeout": 2.5,
            "isolate_observer_errors": False
        },
        "logging": {
            "level": "debug"
        }
    }
    
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump(config_data, f)
        config_path = f.name
    
    try:
        config = load_config(config_path)
        assert isinstance(config, Config)
        assert config.resolver.response_timeout == 2.5
        assert config.resolver.isolate_observer_errors is False
        assert config.resolver.log_password_warnings is True
        assert config.logging.level == "DEBUG"
    finally:
        os.unlink(config_path)


def test_load_config_from_env(monkeypatch):
    """Test loading configuration from environment variable."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump({"resolver": {"response_timeout": 7}}, f)
        config_path = f.name
    
    try:
        monkeypatch.setenv('AUTHZ_IDENTITY_CONFIG', config_path)
        
        config = load_config()
        assert config.resolver.response_timeout == 7.0
    finally:
        os.unlink(config_path)


def test_load_config_without_path(monkeypatch):
    """Test that defaults apply when no file is configured."""
    monkeypatch.delenv('AUTHZ_IDENTITY_CONFIG', raising=False)
    
    assert load_config() == Config()


def test_load_config_path_object(tmp_path):
    """Test loading from a pathlib.Path."""
    config_path = tmp_path / "authz.json"
    config_path.write_text(json.dumps({"logging": {"audit_file": "/var/log/authz-audit.log"}}), encoding="utf-8")
    
    config = load_config(config_path)
    assert config.logging.audit_file == "/var/log/authz-audit.log"


def test_load_config_invalid_setting(tmp_path):
    """Test that invalid settings fail validation."""
    config_path = tmp_path / "authz.json"
    config_path.write_text(json.dumps({"resolver": {"response_timeout": -1}}), encoding="utf-8")
    
    with pytest.raises(ValidationError):
        load_config(config_path)


def test_load_config_missing_file():
    """Test loading a configuration file that does not exist."""
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/authz-identity.json")


def test_load_config_invalid_json():
    """Test loading a file that is not JSON."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        f.write("{not json")
        config_path = f.name
    
    try:
        with pytest.raises(json.JSONDecodeError):
            load_config(config_path)
    finally:
        os.unlink(config_path)


def test_defaults():
    """Test default configuration values."""
    config = Config()
    
    assert config.resolver.response_timeout == 10.0
    assert config.resolver.isolate_observer_errors is True
    assert config.logging.level == "INFO"
    assert config.logging.file is None


@pytest.mark.parametrize("timeout", [0, -1, -0.5])
def test_response_timeout_must_be_positive(timeout):
    """Test response timeout validation."""
    with pytest.raises(ValidationError):
        ResolverConfig(response_timeout=timeout)


def test_logging_level_validation():
    """Test logging level validation."""
    assert LoggingConfig(level="warning").level == "WARNING"
    
    with pytest.raises(ValidationError):
        LoggingConfig(level="LOUD")


def test_validate_config_warnings(caplog):
    """Test that unusual settings are reported."""
    config = Config(resolver=ResolverConfig(response_timeout=600, isolate_observer_errors=False))
    
    with caplog.at_level(logging.WARNING, logger="authz_identity.config.loader"):
        validate_config(config)
    
    assert "600" in caplog.text
    assert "Observer errors will propagate" in caplog.text


def test_validate_config_shared_audit_file(caplog):
    """Test the warning for an audit file that is also the main log file."""
    config = Config(logging=LoggingConfig(file="/tmp/authz.log", audit_file="/tmp/authz.log"))
    
    with caplog.at_level(logging.WARNING, logger="authz_identity.config.loader"):
        validate_config(config)
    
    assert "written twice" in caplog.text
