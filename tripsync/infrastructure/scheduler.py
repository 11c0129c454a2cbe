"""Recurring timer that drives the reconciliation tick."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable

import anyio
from anyio import to_thread

from tripsync.application.use_cases.reconciliation import TickReport
from tripsync.utils import Clock, now_in_app_timezone

logger = logging.getLogger(__name__)

TickFunction = Callable[[datetime], "TickReport | None"]


class ReconciliationScheduler:
    """Invoke ``tick`` every ``interval_seconds`` until stopped.

    The tick runs in a worker thread because the store is synchronous. The first
    tick fires right after :meth:`start`. :meth:`stop` lets an in-flight tick
    finish before returning.
    """

    def __init__(
        self,
        tick: TickFunction,
        *,
        interval_seconds: float,
        clock: Clock = now_in_app_timezone,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._tick = tick
        self._interval = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stop_event: anyio.Event | None = None
        self.ticks = 0
        self.last_tick_at: datetime | None = None
        self.last_report: TickReport | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def start(self) -> None:
        if self.running:
            return
        self._stop_event = anyio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Reconciliation scheduler started (every %s seconds)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Reconciliation scheduler stopped after %s ticks", self.ticks)

    async def run_once(self) -> TickReport | None:
        """Run a single tick immediately, outside of the timer."""

        now = self._clock()
        report = await to_thread.run_sync(self._tick, now)
        self.ticks += 1
        self.last_tick_at = now
        if report is not None:
            self.last_report = report
        return report

    async def _run(self) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            started = time.monotonic()
            try:
                await self.run_once()
            except Exception:
                logger.exception("Reconciliation tick failed")
            delay = max(0.0, self._interval - (time.monotonic() - started))
            with anyio.move_on_after(delay):
                await self._stop_event.wait()

    def describe(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self._interval,
            "ticks": self.ticks,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
        }


__all__ = ["ReconciliationScheduler"]
