"""
Core BatchFeeder Package

Contains core infrastructure components including the feeder and its
concurrency helpers, configuration, and error handling.
"""

from batchfeeder.core.exceptions import (
    BatchFeederError,
    ConfigurationError,
    ValidationError,
    ItemProcessingError,
    AbortedError,
    SourceError,
    ErrorCode,
    ErrorContext,
    abort_act
)

from batchfeeder.core.concurrency import (
    Feeder,
    FeederStats,
    ExecutorCue,
    LoopCue,
    batch_get,
    feed
)

__all__ = [
    # Exception classes
    'BatchFeederError',
    'ConfigurationError',
    'ValidationError',
    'ItemProcessingError',
    'AbortedError',
    'SourceError',
    'ErrorCode',
    'ErrorContext',
    'abort_act',

    # Concurrency
    'Feeder',
    'FeederStats',
    'ExecutorCue',
    'LoopCue',
    'batch_get',
    'feed'
]
