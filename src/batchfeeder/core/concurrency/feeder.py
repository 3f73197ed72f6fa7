"""
Feeder

Pulls batches of items through a caller-supplied ``get`` operation and hands
each item to a caller-supplied ``act`` operation, keeping at most a bounded
number of ``act`` calls outstanding, until a fetch yields no items and all
in-flight work has resolved.

Both operations are callback based and may complete synchronously (on the
calling stack) or later on any thread or event loop. The Feeder creates no
threads or tasks of its own.
"""

import functools
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Generic, List, Optional, Sequence, TypeVar, Union

from batchfeeder.core.concurrency.atomic import AtomicBox


T = TypeVar('T')
logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 2

DidGet = Callable[[Sequence[T]], None]
DoGet = Callable[[DidGet], None]
DidAct = Callable[[T, Optional[BaseException]], None]
DoAct = Callable[[T, DidAct], None]
Cue = Callable[['Feeder'], None]


@dataclass
class FeederState(Generic[T]):
    """Scheduling state of a feeder; only ever touched under its lock."""
    buffer: List[T] = field(default_factory=list)
    remaining: Deque[T] = field(default_factory=deque)
    getting: bool = False
    processing: int = 0
    completed: int = 0
    failed: int = 0
    batches: int = 0
    fetched: int = 0

    @property
    def done(self) -> bool:
        return not self.getting and not self.remaining and self.processing == 0


@dataclass(frozen=True)
class FeederStats:
    """Point-in-time snapshot of a feeder's counters."""
    fetched: int = 0
    remaining: int = 0
    getting: bool = False
    processing: int = 0
    completed: int = 0
    failed: int = 0
    batches: int = 0

    @property
    def resolved(self) -> int:
        return self.completed + self.failed

    @property
    def done(self) -> bool:
        return not self.getting and self.remaining == 0 and self.processing == 0

    @classmethod
    def from_state(cls, state: FeederState) -> 'FeederStats':
        return cls(
            fetched=state.fetched,
            remaining=len(state.remaining),
            getting=state.getting,
            processing=state.processing,
            completed=state.completed,
            failed=state.failed,
            batches=state.batches,
        )


class _Ticket:
    """
    Handed to the callback of one ``get``/``act`` invocation.

    While the invoking step still holds the state lock, the ticket carries
    the in-hand state and the invoking thread's id, so a callback that fires
    synchronously can update that state directly instead of re-entering the
    lock.
    """

    __slots__ = ('state', 'owner', 'resolved')

    def __init__(self, state: FeederState):
        self.state: Optional[FeederState] = state
        self.owner = threading.get_ident()
        self.resolved = False

    def claim(self) -> Optional[FeederState]:
        """Return the in-hand state if called back on the invoking stack."""
        state = self.state
        if state is not None and self.owner == threading.get_ident():
            return state
        return None

    def release(self) -> None:
        self.state = None


_inline = threading.local()


def _run_inline(step: Callable[[], None]) -> None:
    """
    Run ``step`` on the calling thread without growing the stack.

    Steps cued while another inline step is running on this thread are
    queued and run by the outermost call once the current step returns, so
    a source that always calls back synchronously is processed in a loop
    rather than by recursion. If a step raises, the queued steps still run
    and the first exception is re-raised afterwards.
    """
    pending = getattr(_inline, 'pending', None)
    if pending is not None:
        pending.append(step)
        return

    pending = _inline.pending = deque([step])
    error: Optional[Exception] = None
    try:
        while pending:
            try:
                pending.popleft()()
            except Exception as e:
                if error is None:
                    error = e
                else:
                    logger.error(f"Inline step failed: {e}", exc_info=e)
    finally:
        _inline.pending = None
    if error is not None:
        raise error


def inline_get(feeder: 'Feeder') -> None:
    """Default fetch cue: run the fetch step on the calling thread."""
    _run_inline(feeder.get_step)


def inline_act(feeder: 'Feeder') -> None:
    """Default dispatch cue: run the dispatch step on the calling thread."""
    _run_inline(feeder.act_step)


class Feeder(Generic[T]):
    """
    Asynchronous batch-pull, bounded-concurrency dispatch coordinator.

    The caller supplies ``get``, which fetches any number of items and hands
    them back through the callback it is given (an empty batch means the
    source is exhausted), and ``act``, which processes one item and reports
    ``(item, error)`` through its callback. Both are plain attributes and may
    be reassigned at any time; assigning an ``act`` that reports every item
    as aborted is the way to abandon the items not yet dispatched.

    ``schedule_get`` and ``schedule_act`` decide where the fetch and dispatch
    steps run. The defaults run them inline; pass e.g. an executor or event
    loop cue to move them elsewhere.

    ``concurrency`` is re-evaluated on every dispatch decision. Returning 0
    pauses dispatch; after raising it again, call ``nudge()`` to resume.

    ``on_complete`` is called once each time the feeder reaches the done
    state: no fetch outstanding, no items remaining, nothing in flight.

    Neither ``get``, ``act`` nor ``concurrency`` may read the feeder's
    ``stats`` or ``is_done`` synchronously; they run under the state lock.
    """

    def __init__(self,
                 get: DoGet,
                 act: DoAct,
                 *,
                 schedule_get: Optional[Cue] = None,
                 schedule_act: Optional[Cue] = None,
                 concurrency: Union[int, Callable[[], int], None] = None,
                 on_complete: Optional[Callable[[], None]] = None,
                 name: Optional[str] = None):
        """
        Initialize feeder.

        Args:
            get: Operation fetching the next batch of items
            act: Operation processing a single item
            schedule_get: Strategy used to run the fetch step
            schedule_act: Strategy used to run the dispatch step
            concurrency: Maximum outstanding ``act`` calls, or a supplier of it
            on_complete: Called when all items are processed and no more are available
            name: Label used in log messages
        """
        self.get = get
        self.act = act
        self.schedule_get: Cue = schedule_get or inline_get
        self.schedule_act: Cue = schedule_act or inline_act
        self.concurrency = concurrency
        self.on_complete: Callable[[], None] = on_complete or (lambda: None)
        self.name = name or f"feeder-{id(self):x}"
        self._state: AtomicBox[FeederState[T]] = AtomicBox(FeederState())

    @property
    def concurrency(self) -> Callable[[], int]:
        return self._concurrency

    @concurrency.setter
    def concurrency(self, value: Union[int, Callable[[], int], None]) -> None:
        if value is None:
            value = DEFAULT_CONCURRENCY
        if isinstance(value, int):
            limit = value
            value = lambda: limit
        self._concurrency = value

    def start(self) -> None:
        """Begin (or resume) fetching; a fetch already outstanding is not duplicated."""
        logger.debug(f"{self.name}: start")
        self.schedule_get(self)

    def nudge(self) -> None:
        """Re-attempt dispatch, e.g. after raising the concurrency limit from zero."""
        logger.debug(f"{self.name}: nudge")
        self.schedule_act(self)

    @property
    def is_done(self) -> bool:
        return self._state.mutate(lambda state: state.done)

    @property
    def stats(self) -> FeederStats:
        return self._state.mutate(FeederStats.from_state)

    def get_step(self) -> None:
        """
        Fetch step: start a fetch if nothing remains and none is outstanding.

        Called by the ``schedule_get`` cue. If ``get`` raises before calling
        back, the fetch is marked as no longer outstanding and the exception
        propagates. A batch delivered before the exception is still dispatched.
        """
        rewind: List[Optional[Callable[[], None]]] = [None]

        def begin_fetch(state: FeederState[T]) -> None:
            if state.remaining or state.getting:
                return
            state.getting = True
            ticket = _Ticket(state)
            try:
                self.get(functools.partial(self._did_get, ticket=ticket, rewind=rewind))
            except BaseException:
                if not ticket.resolved:
                    state.getting = False
                raise
            finally:
                ticket.release()

        try:
            self._state.mutate(begin_fetch)
        finally:
            self._unwind(rewind)

    def act_step(self) -> None:
        """
        Dispatch step: hand remaining items to ``act`` up to the concurrency limit.

        Called by the ``schedule_act`` cue. If ``act`` raises before calling
        back, its item is put back at the front of the remaining items and
        the exception propagates. Completions reported before the exception
        still trigger their follow-up step.
        """
        rewind: List[Optional[Callable[[], None]]] = [None]

        def dispatch(state: FeederState[T]) -> None:
            while state.remaining and state.processing < self.concurrency():
                item = state.remaining.popleft()
                state.processing += 1
                ticket = _Ticket(state)
                try:
                    self.act(item, functools.partial(self._did_act, ticket=ticket, rewind=rewind))
                except BaseException:
                    if not ticket.resolved:
                        state.processing -= 1
                        state.remaining.appendleft(item)
                    raise
                finally:
                    ticket.release()

        try:
            self._state.mutate(dispatch)
        finally:
            self._unwind(rewind)

    def _did_get(self, items: Sequence[T], *, ticket: _Ticket, rewind: List) -> None:
        if not self._resolve(ticket, "get"):
            return
        batch = list(items)

        def advance(state: FeederState[T]):
            state.getting = False
            state.buffer = batch
            state.remaining = deque(batch)
            if batch:
                state.batches += 1
                state.fetched += len(batch)
                return state.processing < self.concurrency(), False
            return False, state.done

        def next_step(decision) -> None:
            dispatch, complete = decision
            if dispatch:
                self.schedule_act(self)
            elif complete:
                self._complete()

        logger.debug(f"{self.name}: fetched {len(batch)} item(s)")
        self._settle(ticket, rewind, advance, next_step)

    def _did_act(self, item: T, error: Optional[BaseException], *, ticket: _Ticket, rewind: List) -> None:
        if not self._resolve(ticket, "act"):
            return
        if error is not None:
            logger.debug(f"{self.name}: item {item!r} failed: {error}")

        def advance(state: FeederState[T]) -> bool:
            state.processing -= 1
            if error is None:
                state.completed += 1
            else:
                state.failed += 1
            return not state.remaining

        def next_step(empty: bool) -> None:
            if empty:
                self.schedule_get(self)
            else:
                self.schedule_act(self)

        self._settle(ticket, rewind, advance, next_step)

    def _resolve(self, ticket: _Ticket, operation: str) -> bool:
        if ticket.resolved:
            logger.warning(f"{self.name}: {operation} called back more than once; ignoring")
            return False
        ticket.resolved = True
        return True

    def _settle(self, ticket: _Ticket, rewind: List, advance: Callable[[FeederState[T]], Any],
                next_step: Callable[[Any], None]) -> None:
        state = ticket.claim()
        if state is not None:
            # Synchronous callback: the invoking step holds the lock and this state.
            decision = advance(state)
            rewind[0] = lambda: next_step(decision)
        else:
            decision = self._state.mutate(advance)
            next_step(decision)

    @staticmethod
    def _unwind(rewind: List) -> None:
        follow_up = rewind[0]
        if follow_up is not None:
            rewind[0] = None
            follow_up()

    def _complete(self) -> None:
        stats = self.stats
        logger.info(
            f"{self.name}: completed {stats.completed} item(s), {stats.failed} failed, "
            f"in {stats.batches} batch(es)"
        )
        self.on_complete()
