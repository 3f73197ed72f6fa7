"""
Scheduling Cues

Strategies for where a feeder runs its fetch and dispatch steps. A cue is
any callable taking the feeder; it must eventually call ``get_step()`` or
``act_step()`` on it.
"""

import asyncio
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional

from batchfeeder.core.concurrency.feeder import Feeder


logger = logging.getLogger(__name__)


class ExecutorCue:
    """
    Runs feeder steps on a ``concurrent.futures`` executor.

    Use ``cue.get`` and ``cue.act`` as the feeder's ``schedule_get`` and
    ``schedule_act``. Exceptions raised by a step are logged, since nothing
    else observes the submitted future.
    """

    def __init__(self, executor: Optional[Executor] = None, max_workers: Optional[int] = None):
        """
        Initialize executor cue.

        Args:
            executor: Executor to submit steps to; a thread pool is created if omitted
            max_workers: Worker count for the created thread pool
        """
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="batchfeeder"
        )

    def get(self, feeder: Feeder) -> None:
        self._submit(feeder.get_step, feeder, "fetch")

    def act(self, feeder: Feeder) -> None:
        self._submit(feeder.act_step, feeder, "dispatch")

    def _submit(self, step, feeder: Feeder, label: str) -> None:
        future = self.executor.submit(step)
        future.add_done_callback(lambda f: self._report(f, feeder, label))

    @staticmethod
    def _report(future: Future, feeder: Feeder, label: str) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"{feeder.name}: {label} step failed: {error}", exc_info=error)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor if this cue created it."""
        if self._owns_executor:
            self.executor.shutdown(wait=wait)

    def __enter__(self) -> 'ExecutorCue':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


class LoopCue:
    """
    Runs feeder steps as callbacks on an asyncio event loop.

    Safe to trigger from any thread; steps always run on the loop's thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def get(self, feeder: Feeder) -> None:
        self.loop.call_soon_threadsafe(feeder.get_step)

    def act(self, feeder: Feeder) -> None:
        self.loop.call_soon_threadsafe(feeder.act_step)


