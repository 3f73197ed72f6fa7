"""
Core Concurrency Module

Provides the batch-pull, bounded-concurrency coordination for BatchFeeder:
- Feeder state machine and its atomic state box
- Scheduling cues for inline, executor and event-loop execution
- Coroutine adapters for async fetch/process functions
"""

from .atomic import AtomicBox
from .feeder import Feeder, FeederState, FeederStats, inline_get, inline_act
from .cues import ExecutorCue, LoopCue
from .bridge import CoroutineGet, CoroutineAct, batch_get, feed

__all__ = [
    'AtomicBox',
    'Feeder',
    'FeederState',
    'FeederStats',
    'inline_get',
    'inline_act',
    'ExecutorCue',
    'LoopCue',
    'CoroutineGet',
    'CoroutineAct',
    'batch_get',
    'feed'
]
