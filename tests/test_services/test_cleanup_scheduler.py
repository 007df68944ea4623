"""Tests for the cleanup scheduler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from halfsuit.services.cleanup_scheduler import CleanupScheduler

pytestmark = pytest.mark.anyio


class TestCleanupScheduler:
    """Tests for deferred game deletion."""

    async def test_callback_runs_after_delay(self):
        """The callback gets the game code once the timer fires."""
        callback = AsyncMock()
        scheduler = CleanupScheduler(callback)

        task = scheduler.schedule("ABC123", 0.01)
        assert scheduler.is_scheduled("ABC123")
        await task

        callback.assert_awaited_once_with("ABC123")
        assert not scheduler.is_scheduled("ABC123")
        assert scheduler.pending == []

    async def test_cancel(self):
        """A cancelled timer never runs its callback."""
        callback = AsyncMock()
        scheduler = CleanupScheduler(callback)

        task = scheduler.schedule("ABC123", 10)
        assert scheduler.cancel("ABC123")
        with pytest.raises(asyncio.CancelledError):
            await task

        callback.assert_not_awaited()
        assert not scheduler.cancel("ABC123")

    async def test_reschedule_replaces_timer(self):
        """Scheduling the same code twice keeps only the newest timer."""
        callback = AsyncMock()
        scheduler = CleanupScheduler(callback)

        first = scheduler.schedule("ABC123", 10)
        second = scheduler.schedule("ABC123", 0.01)
        await second
        await asyncio.sleep(0)

        assert first.cancelled()
        callback.assert_awaited_once_with("ABC123")

    async def test_independent_codes(self):
        """Timers for different games do not interfere."""
        callback = AsyncMock()
        scheduler = CleanupScheduler(callback)

        scheduler.schedule("AAA111", 10)
        task = scheduler.schedule("BBB222", 0.01)
        await task

        assert scheduler.pending == ["AAA111"]
        callback.assert_awaited_once_with("BBB222")
        await scheduler.cancel_all()
        assert scheduler.pending == []

    async def test_failing_callback_is_logged(self, caplog):
        """A callback error is logged and does not escape the task."""
        scheduler = CleanupScheduler(AsyncMock(side_effect=RuntimeError("store down")))

        await scheduler.schedule("ABC123", 0)

        assert "Error cleaning up game ABC123" in caplog.text
        assert not scheduler.is_scheduled("ABC123")

    async def test_set_callback(self):
        """The callback can be attached after construction."""
        scheduler = CleanupScheduler()
        callback = AsyncMock()
        scheduler.set_callback(callback)

        await scheduler.schedule("ABC123", 0)

        callback.assert_awaited_once_with("ABC123")
