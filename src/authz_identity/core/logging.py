"""Logging configuration for authz-identity."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from ..config.models import LoggingConfig

LOGGER_NAME = "authz_identity"

# Bind and Who Am I? outcomes, one line per operation
audit_logger = logging.getLogger(f"{LOGGER_NAME}.audit")


def _file_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    
    # 10MB max, keep 5 files
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Attach handlers to the package logger.
    
    Every module logs through ``logging.getLogger(__name__)``, so all of them
    end up on these handlers. With ``config.audit_file`` set, audit lines are
    also written to that file on their own.
    
    Args:
        config: Logging configuration
        
    Returns:
        The package logger
    """
    level = getattr(logging, config.level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    audit_logger.handlers.clear()
    
    formatter = logging.Formatter(config.format)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    for path, target in ((config.file, logger), (config.audit_file, audit_logger)):
        if not path:
            continue
        try:
            target.addHandler(_file_handler(path, level, formatter))
            logger.debug(f"Logging {target.name} to file: {path}")
        except OSError as e:
            logger.warning(f"Could not setup file logging to {path}: {e}")
    
    # ldap3 logs through its own logger at DEBUG when enabled
    logging.getLogger("ldap3").setLevel(logging.WARNING)
    
    return logger


def log_identity_operation(operation: str, principal: str, success: bool, details: Optional[str] = None) -> None:
    """
    Log identity operation for audit purposes.
    
    Args:
        operation: Operation type (bind, whoami, ...)
        principal: Bind DN or identity involved
        success: Whether operation was successful
        details: Additional details
    """
    status = "SUCCESS" if success else "FAILED"
    message = f"LDAP {operation.upper()} {status}: {principal}"
    
    if details:
        message += f" - {details}"
    
    audit_logger.log(logging.INFO if success else logging.WARNING, message)
