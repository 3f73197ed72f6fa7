"""
Atomic Box

A lock-guarded holder for a single mutable value. Every read-modify-write
of the held value goes through ``mutate`` so it is atomic with respect to
other threads.
"""

import copy
import threading
from typing import Callable, Generic, TypeVar


T = TypeVar('T')
R = TypeVar('R')


class AtomicBox(Generic[T]):
    """
    Holds a value behind a non-reentrant lock.

    ``mutate`` must not be called again from inside its own callback on
    the same thread; doing so deadlocks.
    """

    def __init__(self, value: T):
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> T:
        """Shallow copy of the held value, taken under the lock."""
        with self._lock:
            return copy.copy(self._value)

    def mutate(self, fn: Callable[[T], R]) -> R:
        """
        Run ``fn`` on the held value while holding the lock.

        Args:
            fn: Callable receiving the held value; it may mutate it in place

        Returns:
            Whatever ``fn`` returns
        """
        with self._lock:
            return fn(self._value)
