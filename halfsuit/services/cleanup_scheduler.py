"""Deferred deletion of finished games.

Each ended game gets one cancellable timer keyed by its code. When the
timer fires the game is removed from the store.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

CleanupCallback = Callable[[str], Awaitable[object]]


class CleanupScheduler:
    """Owns the per-game cleanup timers.

    Only the final callback runs against the store, so waiting out the
    retention window never holds a game's lock.
    """

    def __init__(self, callback: CleanupCallback | None = None) -> None:
        """Initialize the scheduler.

        Args:
            callback: Async function called with the game code when its timer fires
        """
        self.callback = callback
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def set_callback(self, callback: CleanupCallback) -> None:
        """Set the function run when a timer fires."""
        self.callback = callback

    def schedule(self, code: str, delay: float) -> asyncio.Task[None]:
        """Schedule cleanup of ``code`` in ``delay`` seconds.

        An existing timer for the same code is replaced.
        """
        self.cancel(code)
        task = asyncio.create_task(self._run(code, delay), name=f"cleanup:{code}")
        self._tasks[code] = task
        logger.info("Game %s scheduled for cleanup in %.0fs", code, delay)
        return task

    def cancel(self, code: str) -> bool:
        """Cancel the pending timer for ``code``. Returns True if one was pending."""
        task = self._tasks.pop(code, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Cleanup of game %s cancelled", code)
        return True

    def is_scheduled(self, code: str) -> bool:
        """Check if a timer is pending for ``code``."""
        task = self._tasks.get(code)
        return task is not None and not task.done()

    @property
    def pending(self) -> list[str]:
        """Codes with a pending timer."""
        return [code for code, task in self._tasks.items() if not task.done()]

    async def cancel_all(self) -> None:
        """Cancel every pending timer and wait for them to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, code: str, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            if self.callback is not None:
                await self.callback(code)
            logger.info("Game %s cleaned up", code)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error cleaning up game %s", code)
        finally:
            if self._tasks.get(code) is asyncio.current_task():
                del self._tasks[code]
