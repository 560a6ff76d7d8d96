"""Tests for ConnectivityMonitor edge detection."""

import asyncio

import pytest

from conftest import FakeProbe
from drsync.monitor import ConnectivityMonitor


class TestReport:
    """Transition callbacks fire only on flips."""

    def test_first_observation_is_baseline(self):
        monitor = ConnectivityMonitor(FakeProbe())
        seen: list[bool] = []
        monitor.on_transition(seen.append)

        monitor.report(True)

        assert seen == []
        assert monitor.currently_online() is True

    def test_flip_notifies_with_new_state(self):
        monitor = ConnectivityMonitor(FakeProbe())
        seen: list[bool] = []
        monitor.on_transition(seen.append)

        monitor.report(False)
        monitor.report(True)
        monitor.report(False)

        assert seen == [True, False]

    def test_same_state_is_silent(self):
        monitor = ConnectivityMonitor(FakeProbe())
        seen: list[bool] = []
        monitor.on_transition(seen.append)

        monitor.report(True)
        monitor.report(True)
        monitor.report(True)

        assert seen == []

    def test_offline_before_any_probe(self):
        monitor = ConnectivityMonitor(FakeProbe())
        assert monitor.currently_online() is False

    def test_failing_callback_does_not_block_others(self):
        monitor = ConnectivityMonitor(FakeProbe())
        seen: list[bool] = []

        def broken(online: bool) -> None:
            raise RuntimeError("boom")

        monitor.on_transition(broken)
        monitor.on_transition(seen.append)

        monitor.report(False)
        monitor.report(True)

        assert seen == [True]


class TestCheck:
    """Probe execution."""

    @pytest.mark.asyncio
    async def test_probe_result_is_recorded(self):
        probe = FakeProbe(online=True)
        monitor = ConnectivityMonitor(probe)

        assert await monitor.check() is True
        assert monitor.currently_online() is True
        assert probe.calls == 1

    @pytest.mark.asyncio
    async def test_probe_exception_counts_as_offline(self):
        async def exploding_probe() -> bool:
            raise OSError("network unreachable")

        monitor = ConnectivityMonitor(exploding_probe)
        monitor.report(True)
        seen: list[bool] = []
        monitor.on_transition(seen.append)

        assert await monitor.check() is False
        assert seen == [False]


class TestPolling:
    """Background polling lifecycle."""

    @pytest.mark.asyncio
    async def test_start_takes_baseline_then_polls(self):
        probe = FakeProbe(online=False)
        monitor = ConnectivityMonitor(probe, interval=0.01)
        seen: list[bool] = []
        monitor.on_transition(seen.append)

        await monitor.start()
        assert monitor.is_running
        assert probe.calls == 1
        assert seen == []

        probe.online = True
        for _ in range(100):
            if seen:
                break
            await asyncio.sleep(0.01)

        assert seen == [True]
        assert monitor.currently_online() is True

        await monitor.stop()
        assert not monitor.is_running

    @pytest.mark.asyncio
    async def test_start_twice_is_idempotent(self):
        probe = FakeProbe(online=True)
        monitor = ConnectivityMonitor(probe, interval=3600.0)

        await monitor.start()
        await monitor.start()

        assert probe.calls == 1
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        monitor = ConnectivityMonitor(FakeProbe())
        await monitor.stop()
        assert not monitor.is_running
