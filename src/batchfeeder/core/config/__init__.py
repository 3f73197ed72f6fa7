"""
Configuration Management Package

Provides Pydantic-based configuration models and management for BatchFeeder.
"""

from batchfeeder.core.config.models import AppConfig, FeederConfig, LoggingConfig
from batchfeeder.core.config.manager import ConfigManager

__all__ = [
    "AppConfig",
    "FeederConfig",
    "LoggingConfig",
    "ConfigManager",
]
