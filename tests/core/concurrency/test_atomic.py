"""
Tests for AtomicBox.
"""

import threading

import pytest

from batchfeeder.core.concurrency import AtomicBox


class TestAtomicBox:
    """Test locked access to the held value."""

    def test_mutate_returns_callback_result(self):
        """mutate hands back whatever the callback returns."""
        box = AtomicBox({'count': 1})
        assert box.mutate(lambda value: value['count'] + 1) == 2

    def test_value_is_a_copy(self):
        """Changing the read value does not change the held value."""
        box = AtomicBox({'count': 1})
        snapshot = box.value
        snapshot['count'] = 99
        assert box.value == {'count': 1}

    def test_exception_releases_lock(self):
        """A raising callback does not leave the box locked."""
        box = AtomicBox([])

        def explode(value):
            raise ValueError("boom")

        with pytest.raises(ValueError):
            box.mutate(explode)
        assert box.mutate(len) == 0

    @pytest.mark.integration
    def test_concurrent_increments(self):
        """Increments from many threads are not lost."""
        box = AtomicBox({'count': 0})

        def increment(value):
            value['count'] += 1

        def worker():
            for _ in range(1000):
                box.mutate(increment)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert box.value['count'] == 8000
