"""
Coroutine Bridge

Adapters between coroutine functions and the callback-style operations a
Feeder expects, plus ``feed`` for awaiting a complete feeder run.
"""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Coroutine, Iterable, List, Optional, Sequence, Set, TypeVar, Union

from batchfeeder.core.concurrency.feeder import Feeder, FeederStats, DidAct, DidGet
from batchfeeder.core.exceptions import AbortedError, BatchFeederError, ItemProcessingError, SourceError


T = TypeVar('T')
logger = logging.getLogger(__name__)


class _TaskSpawner:
    """Starts coroutines on a loop and keeps them referenced until they finish."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self.loop or running
        if loop is None:
            coro.close()
            raise RuntimeError("No event loop to run the coroutine on")

        if loop is running:
            task = loop.create_task(coro)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            asyncio.run_coroutine_threadsafe(coro, loop)


class CoroutineGet(_TaskSpawner):
    """
    Wraps ``async def fetch() -> Sequence[T]`` as a feeder ``get`` operation.

    A fetch that raises is reported to the feeder as an empty batch, which
    ends the run; the exception is logged and kept in ``errors`` for the
    caller to inspect once the feeder completes.
    """

    def __init__(self, fetch: Callable[[], Awaitable[Sequence[T]]],
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__(loop)
        self.fetch = fetch
        self.errors: List[BaseException] = []

    def __call__(self, did_get: DidGet) -> None:
        self.spawn(self._run(did_get))

    async def _run(self, did_get: DidGet) -> None:
        try:
            items = await self.fetch()
        except asyncio.CancelledError:
            did_get(())
            raise
        except Exception as e:
            logger.warning(f"Fetch failed, treating source as exhausted: {e}")
            self.errors.append(e)
            items = ()
        did_get(items)


class CoroutineAct(_TaskSpawner):
    """
    Wraps ``async def process(item) -> None`` as a feeder ``act`` operation.

    An exception raised by ``process`` becomes the item's error; exceptions
    that are not BatchFeeder errors are wrapped in ``ItemProcessingError``.
    """

    def __init__(self, process: Callable[[T], Awaitable[Any]],
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__(loop)
        self.process = process

    def __call__(self, item: T, did_act: DidAct) -> None:
        self.spawn(self._run(item, did_act))

    async def _run(self, item: T, did_act: DidAct) -> None:
        try:
            await self.process(item)
        except asyncio.CancelledError:
            did_act(item, AbortedError("Processing cancelled", item=item))
            raise
        except BatchFeederError as e:
            did_act(item, e)
        except Exception as e:
            did_act(item, ItemProcessingError(f"Failed to process item {item!r}: {e}", item=item, cause=e))
        else:
            did_act(item, None)


def batch_get(items: Iterable[T], batch_size: int) -> Callable[[DidGet], None]:
    """
    Build a synchronous ``get`` operation that yields ``items`` in batches.

    The operation calls back on the calling stack; the final call yields an
    empty batch.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    source = iter(items)

    def get(did_get: DidGet) -> None:
        did_get(list(itertools.islice(source, batch_size)))

    return get


async def feed(fetch: Callable[[], Awaitable[Sequence[T]]],
               process: Callable[[T], Awaitable[Any]],
               *,
               concurrency: Union[int, Callable[[], int], None] = None,
               name: Optional[str] = None) -> FeederStats:
    """
    Run a feeder over coroutine operations on the current event loop.

    Args:
        fetch: Coroutine function returning the next batch (empty when exhausted)
        process: Coroutine function processing one item
        concurrency: Maximum concurrent ``process`` calls, or a supplier of it
        name: Label used in log messages

    Returns:
        Counters of the finished run

    Raises:
        SourceError: If a fetch raised; the run ends once the items already
            fetched have been processed, and the error carries its counters
    """
    loop = asyncio.get_running_loop()
    finished = loop.create_future()

    def on_complete() -> None:
        loop.call_soon_threadsafe(_settle_future, finished)

    get = CoroutineGet(fetch, loop)
    feeder = Feeder(
        get,
        CoroutineAct(process, loop),
        concurrency=concurrency,
        on_complete=on_complete,
        name=name,
    )
    feeder.start()
    await finished

    stats = feeder.stats
    if get.errors:
        raise SourceError(
            f"Fetching items failed: {get.errors[0]}", errors=get.errors, stats=stats
        )
    return stats


def _settle_future(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)
