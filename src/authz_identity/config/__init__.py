"""Configuration module for authz-identity."""

from .loader import load_config, validate_config
from .models import (
    ResolverConfig,
    LoggingConfig,
    Config,
)

__all__ = [
    "load_config",
    "validate_config",
    "ResolverConfig",
    "LoggingConfig",
    "Config",
]
