"""Configuration models for authz-identity."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ResolverConfig(BaseModel):
    """Identity resolver configuration."""
    
    response_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for a bind response when no timeout is given"
    )
    isolate_observer_errors: bool = Field(
        default=True,
        description="Log and skip observers that raise instead of propagating"
    )
    log_password_warnings: bool = Field(
        default=True,
        description="Log password expired/expiring controls returned by a bind"
    )
    
    @field_validator('response_timeout')
    @classmethod
    def validate_response_timeout(cls, v):
        """Validate response timeout."""
        if v <= 0:
            raise ValueError('Response timeout must be positive')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    file: Optional[str] = Field(default=None, description="Log file path")
    audit_file: Optional[str] = Field(default=None, description="Separate file for bind and Who Am I? audit lines")
    
    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class."""
    
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
