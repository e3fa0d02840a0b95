"""Periodic eviction of idle realtime identities."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memoryscape.adapters.web.presence import PresenceRegistry

logger = logging.getLogger(__name__)


class PresenceSweeper:
    """Evicts users whose last activity is older than the stale threshold."""

    def __init__(
        self,
        registry: PresenceRegistry,
        interval_seconds: float = 300,
        stale_after_seconds: float = 3600,
    ) -> None:
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.stale_after = timedelta(seconds=stale_after_seconds)
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._task is not None and not self._task.done():
            logger.warning("Presence sweeper already running")
            return
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(
            f"Started presence sweeper (every {self.interval_seconds}s, "
            f"stale after {self.stale_after.total_seconds():.0f}s)"
        )

    async def stop(self) -> None:
        """Stop the sweep loop."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("Presence sweeper cancelled")
            logger.info("Stopped presence sweeper")

    async def sweep(self) -> int:
        """Run one sweep and close the evicted connections.

        Returns:
            Number of evicted users.
        """
        evicted = self.registry.evict_stale(self.stale_after)
        for user_id, connections in evicted.items():
            for connection in connections:
                try:
                    await connection.close()
                except Exception as e:
                    logger.warning(
                        f"Failed to close connection {connection.connection_id} of {user_id}: {e}"
                    )
        return len(evicted)

    async def _sweep_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                try:
                    await self.sweep()
                except Exception as e:
                    logger.error(f"Presence sweep failed: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Presence sweeper cancelled")
            raise
