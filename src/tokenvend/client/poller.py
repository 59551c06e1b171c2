"""Periodic dashboard refresh for API clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 30.0


class DashboardPoller(Generic[T]):
    """Refreshes a snapshot on a fixed timer.

    ``trigger()`` while a refresh is already running does nothing, so manual
    refreshes never queue up behind the timer. ``stop()`` cancels the timer and
    any refresh in flight.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        interval: float = DEFAULT_INTERVAL_SECONDS,
        on_update: Optional[Callable[[T], None]] = None,
    ) -> None:
        self._fetch = fetch
        self.interval = interval
        self._on_update = on_update
        self._inflight: Optional[asyncio.Task[T]] = None
        self._timer: Optional[asyncio.Task[None]] = None
        self.latest: Optional[T] = None
        self.refresh_count = 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def _refresh(self) -> T:
        snapshot = await self._fetch()
        self.latest = snapshot
        self.refresh_count += 1
        if self._on_update is not None:
            self._on_update(snapshot)
        return snapshot

    async def trigger(self) -> bool:
        """Refresh now. Returns False without doing anything if one is in flight."""
        if self.refreshing:
            return False
        self._inflight = asyncio.ensure_future(self._refresh())
        try:
            await self._inflight
        finally:
            self._inflight = None
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.trigger()
            except asyncio.CancelledError:
                raise
            except Exception:
                # Keep the last good snapshot; the next tick retries
                logger.warning("Dashboard refresh failed", exc_info=True)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._timer = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        for task in (self._timer, self._inflight):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._timer = None
        self._inflight = None
