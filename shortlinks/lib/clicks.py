"""Detached click-count bookkeeping."""

import asyncio
import logging
from typing import Optional, Set

from .database.base import MappingStoreBase


class ClickRecorder:
    """Schedule click increments without making the caller wait.

    Increments run as independent tasks on the running event loop, so a
    cancelled request does not cancel its increment. Failures are logged and
    dropped; click counts are analytics, not a ledger.
    """

    def __init__(self, store: MappingStoreBase, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        # The loop only keeps weak references to tasks
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, code: str) -> asyncio.Task:
        """Schedule one click increment for ``code`` and return immediately."""
        task = asyncio.get_running_loop().create_task(self._increment(code))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _increment(self, code: str) -> None:
        try:
            await self.store.increment_click_count(code)
        except asyncio.CancelledError:
            self.logger.warning(f"Click increment cancelled for {code}")
            raise
        except Exception as e:
            self.logger.error(f"Error incrementing click count for {code}: {e}")

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for pending increments to settle.

        Args:
            timeout: Seconds to wait before cancelling what is left
        """
        if not self._pending:
            return

        pending = list(self._pending)
        self.logger.debug(f"Waiting for {len(pending)} pending click increments")
        done, not_done = await asyncio.wait(pending, timeout=timeout)

        for task in not_done:
            task.cancel()
        if not_done:
            self.logger.warning(f"Dropped {len(not_done)} click increments on drain timeout")
            await asyncio.gather(*not_done, return_exceptions=True)
