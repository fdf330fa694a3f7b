"""Tests for the monitor scheduler: enable/disable and the re-armed timer."""

from __future__ import annotations

import asyncio
import time

import pytest

from smith_monitor.monitor.scheduler import MonitorScheduler


class Cycle:
    """Counts invocations; optionally blocks until released."""

    def __init__(self, block: bool = False) -> None:
        self.calls = 0
        self.release = asyncio.Event()
        if not block:
            self.release.set()
        self.started = asyncio.Event()

    async def __call__(self) -> None:
        self.calls += 1
        self.started.set()
        await self.release.wait()


def make_scheduler(cycle: Cycle, connected: bool = True, initial_interval: int = 0) -> MonitorScheduler:
    return MonitorScheduler(cycle, lambda: connected, initial_interval, name="test")


class TestEnableDisable:
    @pytest.mark.asyncio
    async def test_enable_requires_connection(self) -> None:
        scheduler = make_scheduler(Cycle(), connected=False)
        assert scheduler.enable() is False
        assert not scheduler.enabled
        assert scheduler.next_run == 0

    @pytest.mark.asyncio
    async def test_enable_arms_initial_timer(self) -> None:
        scheduler = make_scheduler(Cycle(), initial_interval=5000)
        before = int(time.time() * 1000)
        assert scheduler.enable() is True
        assert scheduler.enabled
        assert before + 5000 <= scheduler.next_run <= int(time.time() * 1000) + 5000
        scheduler.disable()

    @pytest.mark.asyncio
    async def test_enable_twice_is_noop(self) -> None:
        scheduler = make_scheduler(Cycle(), initial_interval=5000)
        scheduler.enable()
        next_run = scheduler.next_run
        timer = scheduler._timer
        await asyncio.sleep(0.01)
        scheduler.enable()
        assert scheduler.next_run == next_run
        assert scheduler._timer is timer
        scheduler.disable()

    @pytest.mark.asyncio
    async def test_disable_cancels_timer(self) -> None:
        cycle = Cycle()
        scheduler = make_scheduler(cycle, initial_interval=20)
        scheduler.enable()
        scheduler.disable()
        assert not scheduler.enabled
        assert scheduler.next_run == 0

        await asyncio.sleep(0.05)
        assert cycle.calls == 0

    @pytest.mark.asyncio
    async def test_disable_when_disabled_is_noop(self) -> None:
        scheduler = make_scheduler(Cycle())
        scheduler.disable()
        assert not scheduler.enabled


class TestTimer:
    @pytest.mark.asyncio
    async def test_fires_cycle(self) -> None:
        cycle = Cycle()
        scheduler = make_scheduler(cycle, initial_interval=0)
        scheduler.enable()
        await asyncio.wait_for(cycle.started.wait(), timeout=1)
        assert cycle.calls == 1
        scheduler.disable()

    @pytest.mark.asyncio
    async def test_rearm_requires_enabled(self) -> None:
        scheduler = make_scheduler(Cycle())
        assert scheduler.rearm(10) is False
        assert scheduler.next_run == 0

    @pytest.mark.asyncio
    async def test_rearm_replaces_timer(self) -> None:
        cycle = Cycle()
        scheduler = make_scheduler(cycle, initial_interval=5000)
        scheduler.enable()
        first = scheduler._timer

        assert scheduler.rearm(10) is True
        assert first is not None and first.cancelled()
        await asyncio.wait_for(cycle.started.wait(), timeout=1)
        await asyncio.sleep(0.03)
        assert cycle.calls == 1  # the replaced 5s timer never fires a second cycle
        scheduler.disable()

    @pytest.mark.asyncio
    async def test_disable_mid_cycle_does_not_abort(self) -> None:
        cycle = Cycle(block=True)
        scheduler = make_scheduler(cycle, initial_interval=0)
        scheduler.enable()
        await asyncio.wait_for(cycle.started.wait(), timeout=1)
        assert scheduler.running

        scheduler.disable()
        assert scheduler.running
        cycle.release.set()
        await asyncio.sleep(0.01)
        assert not scheduler.running
        assert cycle.calls == 1

    @pytest.mark.asyncio
    async def test_firing_during_cycle_is_skipped(self) -> None:
        cycle = Cycle(block=True)
        scheduler = make_scheduler(cycle, initial_interval=0)
        scheduler.enable()
        await asyncio.wait_for(cycle.started.wait(), timeout=1)

        scheduler.rearm(0)
        await asyncio.sleep(0.02)
        assert cycle.calls == 1

        cycle.release.set()
        scheduler.disable()
        await asyncio.sleep(0.01)
