"""
Configuration Models

Pydantic models for type-safe configuration management with validation,
defaults, and field documentation.
"""

import logging
from pydantic import BaseModel, Field, field_validator, ConfigDict


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class FeederConfig(BaseModel):
    """Configuration for feeder scheduling."""

    concurrency: int = Field(
        default=2,
        ge=0,
        le=1024,
        description="Maximum number of items processed at the same time (0 pauses processing)"
    )
    batch_size: int = Field(
        default=50,
        ge=1,
        le=100000,
        description="Number of items pulled from the source per fetch"
    )

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: str = Field(
        default="WARNING",
        description="Root log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format string"
    )

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    def get_level(self) -> int:
        """Numeric logging level."""
        return getattr(logging, self.level)


class AppConfig(BaseModel):
    """Root application configuration model."""

    version: str = Field(default="0.1.0", description="Configuration version")

    feeder: FeederConfig = Field(default_factory=FeederConfig, description="Feeder configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose logging output"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    def get_effective_log_level(self) -> int:
        """Log level after applying the verbose switch."""
        if self.verbose:
            return min(logging.DEBUG, self.logging.get_level())
        return self.logging.get_level()
