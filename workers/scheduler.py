"""
Subscription scheduler lifecycle.

Purpose:
- Arm a repeating timer that fires the dispatcher once per interval (60s by default)
- Start/stop exactly once per instance; repeated calls are no-ops
- Let the host process stop scheduling before it tears down the DB pool

Ticks are fired on wall-clock boundaries (second 0 of each minute) and each
tick runs as its own task, so a slow tick never delays the timer. Ticks may
overlap; they share no mutable state.

Usage:
    scheduler = SubscriptionScheduler(dispatcher)
    scheduler.start()        # inside a running event loop
    ...
    await scheduler.stop()   # no new tick starts after this returns
    await scheduler.drain()  # optionally wait for in-flight ticks
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Set

from core.clock import Clock, next_boundary, system_clock
from workers.dispatcher import SubscriptionDispatcher, TickReport

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SubscriptionScheduler:
    def __init__(self, dispatcher: SubscriptionDispatcher, interval_seconds: int = 60,
                 clock: Optional[Clock] = None, sleep: Sleep = asyncio.sleep):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self.clock = clock or system_clock()
        self._sleep = sleep
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.ticks_started = 0
        self.last_tick_at: Optional[datetime] = None
        self.last_report: Optional[TickReport] = None

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> asyncio.Task:
        """Arm the timer. Returns the running timer task if already started."""
        if self.running:
            return self._timer
        self._timer = asyncio.get_running_loop().create_task(self._run(), name="subscription-scheduler")
        logger.info("Subscription scheduler started (every %ss)", self.interval_seconds)
        return self._timer

    async def stop(self) -> None:
        """Disarm the timer. In-flight ticks keep running; no-op when stopped."""
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            # stop() itself being cancelled must still propagate
            if not timer.cancelled():
                raise
        logger.info("Subscription scheduler stopped")

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight ticks. Returns False if the timeout expired first."""
        pending = set(self._in_flight)
        if not pending:
            return True
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("%d tick(s) still running after %.1fs drain", len(not_done), timeout or 0)
        return not not_done

    def status(self) -> dict:
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "ticks_started": self.ticks_started,
            "in_flight": len(self._in_flight),
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "last_report": self.last_report.summary() if self.last_report else None,
        }

    async def _run(self) -> None:
        boundary: Optional[datetime] = None
        while True:
            now = self.clock()
            # an early wake-up must not re-arm for the boundary just fired
            base = max(now, boundary) if boundary is not None else now
            boundary = next_boundary(base, self.interval_seconds)
            await self._sleep((boundary - now).total_seconds())
            self._fire(max(self.clock(), boundary))

    def _fire(self, now: datetime) -> None:
        self.ticks_started += 1
        self.last_tick_at = now
        logger.debug("Scheduler tick %s", now.isoformat())
        task = asyncio.get_running_loop().create_task(self._tick(now), name=f"subscription-tick-{now:%H%M}")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _tick(self, now: datetime) -> None:
        try:
            self.last_report = await self.dispatcher.run_tick(now)
        except Exception:
            # run_tick isolates per-subscription and store failures itself
            logger.exception("Subscription tick crashed")
