"""
BatchFeeder

Pull items in batches and process them with bounded concurrency.
"""

from batchfeeder.core import (
    Feeder,
    FeederStats,
    ExecutorCue,
    LoopCue,
    batch_get,
    feed,
    abort_act,
    BatchFeederError,
    AbortedError,
    SourceError,
    ItemProcessingError
)

__version__ = "0.1.0"

__all__ = [
    'Feeder',
    'FeederStats',
    'ExecutorCue',
    'LoopCue',
    'batch_get',
    'feed',
    'abort_act',
    'BatchFeederError',
    'AbortedError',
    'SourceError',
    'ItemProcessingError',
    '__version__'
]
