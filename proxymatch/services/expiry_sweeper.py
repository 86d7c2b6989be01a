"""
Proxy Match: Stale-position sweeper

Runs ``GeoIndex.expire_stale`` on a fixed interval from an asyncio task.
The O(n) sweep itself executes in a worker thread so request handling on
the event loop is never stalled by a large index.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

import structlog

from proxymatch.services.geo_index import GeoIndex
from proxymatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("proxymatch.expiry_sweeper")


class ExpirySweeper:
    def __init__(
        self,
        geo_index: GeoIndex,
        interval_seconds: float,
        ttl: timedelta,
        clock: Clock = utcnow,
    ) -> None:
        self.geo_index = geo_index
        self.interval_seconds = interval_seconds
        self.ttl = ttl
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self.sweeps_completed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> list[str]:
        return self.geo_index.expire_stale(self._clock(), self.ttl)

    def start(self) -> None:
        if self.running:
            return
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")
        logger.info("sweeper_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop.set()
        await self._task
        self._task = None
        logger.info("sweeper_stopped", sweeps_completed=self.sweeps_completed)

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass

            try:
                expired = await asyncio.to_thread(self.sweep_once)
            except Exception:
                logger.exception("sweep_failed")
                continue
            self.sweeps_completed += 1
            logger.debug("sweep_complete", expired=len(expired), active=len(self.geo_index))
