"""Configuration loader for authz-identity."""

import json
import os
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .models import Config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AUTHZ_IDENTITY_CONFIG"


def load_config(config_path: Optional[Union[str, os.PathLike]] = None) -> Config:
    """
    Load configuration from a JSON file.
    
    Every setting has a default, so a library embedded without any
    configuration file still gets a usable Config.
    
    Args:
        config_path: Path to configuration file. If None, uses the
                    AUTHZ_IDENTITY_CONFIG environment variable, and the
                    defaults when that is unset too.
    
    Returns:
        Config: Loaded and validated configuration
        
    Raises:
        FileNotFoundError: If config file doesn't exist
        json.JSONDecodeError: If config file is not valid JSON
        pydantic.ValidationError: If a setting is invalid
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR)
        if not config_path:
            logger.debug(f"{CONFIG_ENV_VAR} not set, using default configuration")
            return Config()
    
    config_file = Path(config_path)
    if not config_file.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")
    
    logger.info(f"Loading configuration from: {config_file}")
    
    try:
        config = Config.model_validate(json.loads(config_file.read_text(encoding='utf-8')))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in configuration file {config_file}: {e}")
        raise
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_file}: {e.error_count()} error(s)")
        raise
    
    logger.debug(
        f"Resolver: response_timeout={config.resolver.response_timeout}s, "
        f"isolate_observer_errors={config.resolver.isolate_observer_errors}"
    )
    return config


def validate_config(config: Config) -> None:
    """
    Perform additional validation on configuration.
    
    Only logs warnings; a config that passed model validation is usable.
    
    Args:
        config: Configuration to validate
    """
    if config.resolver.response_timeout > 120:
        logger.warning(
            f"Response timeout of {config.resolver.response_timeout}s will block bind callers for a long time"
        )
    
    if not config.resolver.isolate_observer_errors:
        logger.warning("Observer errors will propagate to resolver callers")
    
    if config.logging.file and config.logging.file == config.logging.audit_file:
        logger.warning(f"Audit lines share {config.logging.file} with the regular log and will be written twice")
    
    logger.info("Configuration validation completed")
