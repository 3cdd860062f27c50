"""Fixed-period scheduler driving the monitoring engine.

Ticks fire on a fixed-rate timer. Each tick starts a cycle unless one is
still in flight, in which case the tick is dropped: cycles never overlap.

Shutdown stops the timer, gives an in-flight cycle ``shutdown_grace_seconds``
to finish, then cancels it. Cancellation lands on an await boundary of an
external call; the engine always issues an alert's send before deleting it.
"""

from __future__ import annotations

import asyncio
import contextlib

from pricewatch.engine import MonitoringEngine
from pricewatch.logging import get_logger
from pricewatch.models import CycleReport

logger = get_logger(__name__)


class CycleScheduler:
    """Owns the engine and the single-flight guard around ``run_cycle``.

    Args:
        engine: The monitoring engine to drive.
        period_seconds: Interval between ticks.
        shutdown_grace_seconds: How long ``stop`` waits for an in-flight cycle.
    """

    def __init__(
        self,
        engine: MonitoringEngine,
        period_seconds: float = 300.0,
        shutdown_grace_seconds: float = 30.0,
    ) -> None:
        self._engine = engine
        self._period = period_seconds
        self._grace = shutdown_grace_seconds
        self._cycle_lock = asyncio.Lock()
        self._running = False
        self._timer_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._cycle_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._last_report: CycleReport | None = None
        self._cycles_run = 0
        self._ticks_dropped = 0

    async def start(self) -> None:
        """Begin ticking in the background. The first cycle runs immediately."""
        if self._running:
            logger.warning("scheduler_already_running")
            return
        self._running = True
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info("scheduler_started", period_seconds=self._period)

    async def stop(self) -> None:
        """Stop ticking and let an in-flight cycle finish within the grace period."""
        self._running = False
        if self._timer_task is not None:
            self._timer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer_task
            self._timer_task = None

        cycle = self._cycle_task
        if cycle is not None and not cycle.done():
            logger.info("scheduler_waiting_for_cycle", grace_seconds=self._grace)
            try:
                await asyncio.wait_for(asyncio.shield(cycle), timeout=self._grace)
            except TimeoutError:
                logger.warning("scheduler_cancelling_cycle")
                cycle.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await cycle
        logger.info("scheduler_stopped")

    async def _timer_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._running:
            self.tick()
            next_tick += self._period
            # Skip tick slots that have already passed
            now = loop.time()
            while next_tick <= now:
                next_tick += self._period
            await asyncio.sleep(next_tick - now)

    def tick(self) -> asyncio.Task | None:  # type: ignore[type-arg]
        """Start a cycle in the background, or drop the tick if one is running."""
        if self.cycle_in_flight:
            self._ticks_dropped += 1
            logger.warning("cycle_skipped_in_flight", ticks_dropped=self._ticks_dropped)
            return None
        self._cycle_task = asyncio.create_task(self.run_once())
        return self._cycle_task

    async def run_once(self) -> CycleReport | None:
        """Run one cycle now. Returns None if another cycle holds the guard."""
        if self._cycle_lock.locked():
            self._ticks_dropped += 1
            logger.warning("cycle_skipped_in_flight", ticks_dropped=self._ticks_dropped)
            return None
        async with self._cycle_lock:
            try:
                report = await self._engine.run_cycle()
            except Exception as e:
                logger.error("cycle_failed", error=str(e), exc_info=True)
                return None
            self._cycles_run += 1
            self._last_report = report
            return report

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked() or (
            self._cycle_task is not None and not self._cycle_task.done()
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_report(self) -> CycleReport | None:
        return self._last_report

    def get_status(self) -> dict:
        """Return scheduler status for the health endpoint."""
        report = self._last_report
        return {
            "running": self._running,
            "cycle_in_flight": self.cycle_in_flight,
            "period_seconds": self._period,
            "cycles_run": self._cycles_run,
            "ticks_dropped": self._ticks_dropped,
            "last_cycle": None
            if report is None
            else {
                "cycle_id": report.cycle_id,
                "started_at": report.started_at,
                "duration_seconds": report.duration_seconds,
                "samples_written": report.samples_written,
                "increases_notified": report.increases_notified,
                "alerts_triggered": report.alerts_triggered,
                "errors": len(report.errors),
            },
        }
