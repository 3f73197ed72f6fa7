"""
Tests for Configuration Models
"""

import logging

import pytest
from pydantic import ValidationError

from batchfeeder.core.config.models import AppConfig, FeederConfig, LoggingConfig


class TestFeederConfig:
    """Test feeder settings validation."""

    def test_defaults(self):
        """Defaults match the feeder's own defaults."""
        config = FeederConfig()
        assert config.concurrency == 2
        assert config.batch_size == 50

    def test_zero_concurrency_allowed(self):
        """A limit of 0 is valid; it pauses processing."""
        assert FeederConfig(concurrency=0).concurrency == 0

    @pytest.mark.parametrize("field,value", [
        ("concurrency", -1),
        ("batch_size", 0),
    ])
    def test_out_of_range_rejected(self, field, value):
        """Values outside their ranges are rejected."""
        with pytest.raises(ValidationError):
            FeederConfig(**{field: value})

    @pytest.mark.parametrize("field", ["workers", "executor_workers"])
    def test_unknown_field_rejected(self, field):
        """Extra keys are forbidden."""
        with pytest.raises(ValidationError):
            FeederConfig(**{field: 3})


class TestLoggingConfig:
    """Test log level handling."""

    def test_level_normalized(self):
        """Level names are upper-cased."""
        config = LoggingConfig(level="debug")
        assert config.level == "DEBUG"
        assert config.get_level() == logging.DEBUG

    def test_invalid_level_rejected(self):
        """Unknown level names are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")


class TestAppConfig:
    """Test the root configuration."""

    def test_verbose_lowers_level(self):
        """Verbose mode logs at DEBUG regardless of the configured level."""
        config = AppConfig(verbose=True)
        assert config.get_effective_log_level() == logging.DEBUG

    def test_quiet_by_default(self):
        """Without verbose the configured level applies."""
        assert AppConfig().get_effective_log_level() == logging.WARNING

    def test_nested_dicts_accepted(self):
        """Sections can be given as plain mappings."""
        config = AppConfig(feeder={'concurrency': 8}, logging={'level': 'info'})
        assert config.feeder.concurrency == 8
        assert config.logging.level == "INFO"
