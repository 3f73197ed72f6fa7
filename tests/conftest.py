"""
Shared Test Configuration and Fixtures

Provides item sources, a deterministic deferred-callback runner for driving
feeders without threads, and configuration isolation for the test suite.
"""

from collections import deque
from typing import Any, Callable, Deque, List

import pytest


class ListSource:
    """
    Callback-style ``get`` over a growable list, handing out fixed-size batches.

    Calls back synchronously unless a ``runner`` is given, in which case the
    callback is deferred until the runner is drained.
    """

    def __init__(self, items, batch_size: int = 3, runner: "DeferredRunner" = None):
        self.items = list(items)
        self.batch_size = batch_size
        self.runner = runner
        self.position = 0
        self.calls = 0

    def __call__(self, did_get: Callable) -> None:
        self.calls += 1
        batch = self.items[self.position:self.position + self.batch_size]
        self.position += len(batch)
        if self.runner is None:
            did_get(batch)
        else:
            self.runner.defer(lambda: did_get(batch))

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.items)


class DeferredRunner:
    """Collects callbacks and runs them later, in FIFO order, on the test's thread."""

    def __init__(self):
        self.pending: Deque[Callable[[], Any]] = deque()

    def defer(self, callback: Callable[[], Any]) -> None:
        self.pending.append(callback)

    def run_all(self, limit: int = 100000) -> int:
        """Run pending callbacks (including ones they add) until none are left."""
        ran = 0
        while self.pending:
            if ran >= limit:
                raise AssertionError("Deferred callbacks did not settle")
            self.pending.popleft()()
            ran += 1
        return ran


class Recorder:
    """Callback-style ``act`` that records items and tracks outstanding calls."""

    def __init__(self, runner: DeferredRunner = None, fail: Callable[[Any], bool] = None):
        self.runner = runner
        self.fail = fail or (lambda item: False)
        self.items: List[Any] = []
        self.outstanding = 0
        self.max_outstanding = 0

    def __call__(self, item: Any, did_act: Callable) -> None:
        self.items.append(item)
        self.outstanding += 1
        self.max_outstanding = max(self.max_outstanding, self.outstanding)
        error = RuntimeError(f"item {item} failed") if self.fail(item) else None

        def finish():
            self.outstanding -= 1
            did_act(item, error)

        if self.runner is None:
            finish()
        else:
            self.runner.defer(finish)


class CompletionCounter:
    """``on_complete`` callback counting its invocations."""

    def __init__(self):
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


@pytest.fixture
def make_source():
    """Factory for list-backed get operations."""
    return ListSource


@pytest.fixture
def make_recorder():
    """Factory for recording act operations."""
    return Recorder


@pytest.fixture
def runner():
    """Deterministic deferred-callback runner."""
    return DeferredRunner()


@pytest.fixture
def completions():
    """Counter to use as a feeder's completion callback."""
    return CompletionCounter()


@pytest.fixture
def isolated_config_env(tmp_path, monkeypatch):
    """Keep configuration loading away from the developer's real files and env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    for name in ("CONCURRENCY", "BATCH_SIZE", "LOG_LEVEL", "VERBOSE"):
        monkeypatch.delenv(f"BATCHFEEDER_{name}", raising=False)
    return tmp_path


# Pytest Configuration
def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: tests that spawn threads, event loops or subprocesses"
    )
    config.addinivalue_line(
        "markers", "cli: command-line interface tests"
    )
