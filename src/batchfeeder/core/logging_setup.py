"""
Logging Setup

Configures the standard library root logger from application configuration.
"""

import logging
from typing import Optional

from batchfeeder.core.config.models import AppConfig


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """Set up logging configuration for the application."""
    config = config or AppConfig()
    logging.basicConfig(
        level=config.get_effective_log_level(),
        format=config.logging.format,
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True
    )
