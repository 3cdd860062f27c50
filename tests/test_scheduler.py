"""Tests for CycleScheduler: single-flight guard, tick dropping and shutdown grace."""

import asyncio

import pytest

from pricewatch.models import CycleReport
from pricewatch.scheduler import CycleScheduler


class FakeEngine:
    """Engine stand-in whose cycles block until released."""

    def __init__(self, block: bool = False, error: Exception | None = None) -> None:
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False
        self._block = block
        self._error = error
        if not block:
            self.release.set()

    async def run_cycle(self) -> CycleReport:
        self.calls += 1
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        report = CycleReport(cycle_id=f"c{self.calls}", started_at=0.0, samples_written=2)
        report.finished_at = 1.5
        return report


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_returns_report(self) -> None:
        engine = FakeEngine()
        scheduler = CycleScheduler(engine)  # type: ignore[arg-type]

        report = await scheduler.run_once()

        assert report is not None
        assert report.cycle_id == "c1"
        assert scheduler.last_report is report

    @pytest.mark.asyncio
    async def test_overlapping_call_is_skipped(self) -> None:
        engine = FakeEngine(block=True)
        scheduler = CycleScheduler(engine)  # type: ignore[arg-type]

        first = asyncio.create_task(scheduler.run_once())
        await engine.started.wait()
        second = await scheduler.run_once()
        engine.release.set()
        report = await first

        assert second is None
        assert report is not None
        assert engine.calls == 1

    @pytest.mark.asyncio
    async def test_engine_exception_returns_none(self) -> None:
        engine = FakeEngine(error=RuntimeError("boom"))
        scheduler = CycleScheduler(engine)  # type: ignore[arg-type]

        assert await scheduler.run_once() is None
        assert not scheduler.cycle_in_flight
        # Guard is released; the next cycle runs
        assert await scheduler.run_once() is None
        assert engine.calls == 2


class TestTick:
    @pytest.mark.asyncio
    async def test_tick_dropped_while_cycle_in_flight(self) -> None:
        engine = FakeEngine(block=True)
        scheduler = CycleScheduler(engine)  # type: ignore[arg-type]

        task = scheduler.tick()
        await engine.started.wait()

        assert task is not None
        assert scheduler.cycle_in_flight
        assert scheduler.tick() is None
        assert scheduler.get_status()["ticks_dropped"] == 1

        engine.release.set()
        await task
        assert not scheduler.cycle_in_flight
        assert engine.calls == 1


class TestStartStop:
    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self) -> None:
        engine = FakeEngine()
        scheduler = CycleScheduler(engine, period_seconds=3600)  # type: ignore[arg-type]

        await scheduler.start()
        await asyncio.wait_for(engine.started.wait(), timeout=1.0)
        await scheduler.stop()

        assert engine.calls == 1
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_ticks_repeat_at_period(self) -> None:
        engine = FakeEngine()
        scheduler = CycleScheduler(engine, period_seconds=0.05)  # type: ignore[arg-type]

        await scheduler.start()
        await asyncio.sleep(0.22)
        await scheduler.stop()

        assert engine.calls >= 3

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self) -> None:
        engine = FakeEngine()
        scheduler = CycleScheduler(engine, period_seconds=3600)  # type: ignore[arg-type]

        await scheduler.start()
        await scheduler.start()
        await asyncio.wait_for(engine.started.wait(), timeout=1.0)
        await scheduler.stop()

        assert engine.calls == 1

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_cycle(self) -> None:
        engine = FakeEngine(block=True)
        scheduler = CycleScheduler(  # type: ignore[arg-type]
            engine, period_seconds=3600, shutdown_grace_seconds=2.0
        )
        await scheduler.start()
        await engine.started.wait()

        asyncio.get_running_loop().call_later(0.05, engine.release.set)
        await scheduler.stop()

        assert not engine.cancelled
        assert scheduler.last_report is not None

    @pytest.mark.asyncio
    async def test_stop_cancels_after_grace(self) -> None:
        engine = FakeEngine(block=True)
        scheduler = CycleScheduler(  # type: ignore[arg-type]
            engine, period_seconds=3600, shutdown_grace_seconds=0.05
        )
        await scheduler.start()
        await engine.started.wait()

        await scheduler.stop()

        assert engine.cancelled
        assert scheduler.last_report is None
        assert not scheduler.cycle_in_flight


class TestStatus:
    @pytest.mark.asyncio
    async def test_status_before_any_cycle(self) -> None:
        scheduler = CycleScheduler(FakeEngine(), period_seconds=300)  # type: ignore[arg-type]

        status = scheduler.get_status()

        assert status == {
            "running": False,
            "cycle_in_flight": False,
            "period_seconds": 300,
            "cycles_run": 0,
            "ticks_dropped": 0,
            "last_cycle": None,
        }

    @pytest.mark.asyncio
    async def test_status_after_cycle(self) -> None:
        scheduler = CycleScheduler(FakeEngine())  # type: ignore[arg-type]
        await scheduler.run_once()

        status = scheduler.get_status()

        assert status["cycles_run"] == 1
        assert status["last_cycle"]["cycle_id"] == "c1"
        assert status["last_cycle"]["samples_written"] == 2
        assert status["last_cycle"]["duration_seconds"] == 1.5
