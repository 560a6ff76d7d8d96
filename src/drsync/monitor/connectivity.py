"""Network reachability monitor that reports offline/online edges."""

import asyncio
import logging
from typing import Awaitable, Callable

from drsync.logging import connectivity_logger, log_connectivity_change

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[bool]]


class ConnectivityMonitor:
    """Polls a reachability probe and reports state transitions.

    The first observation only sets the baseline; every later change of
    state is delivered to the registered transition callbacks with the new
    value. Callbacks run on the monitor's polling task, not on the caller
    that registered them.

    Example:
        monitor = ConnectivityMonitor(client.check_server, interval=10.0)
        monitor.on_transition(lambda online: print("online" if online else "offline"))
        await monitor.start()
    """

    def __init__(self, probe: Probe, interval: float = 10.0) -> None:
        """Initialize the monitor.

        Args:
            probe: Async callable returning True when the service is reachable
            interval: Seconds between probes
        """
        self._probe = probe
        self.interval = interval
        self._online: bool | None = None
        self._callbacks: list[Callable[[bool], None]] = []
        self._task: asyncio.Task | None = None
        self._log = connectivity_logger()

    def currently_online(self) -> bool:
        """Return the last observed reachability (False before any probe)."""
        return bool(self._online)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_transition(self, callback: Callable[[bool], None]) -> None:
        """Register callback for reachability flips.

        Args:
            callback: Function called with the new state on every edge
        """
        self._callbacks.append(callback)

    def report(self, online: bool) -> None:
        """Record an observation and notify callbacks if the state flipped."""
        previous = self._online
        self._online = online
        if previous is None or previous == online:
            return

        log_connectivity_change(self._log, online)
        for callback in self._callbacks:
            try:
                callback(online)
            except Exception as e:
                logger.error("Connectivity callback failed: %s", e, exc_info=True)

    async def check(self) -> bool:
        """Run the probe once and record the result.

        Probe exceptions count as offline.
        """
        try:
            online = bool(await self._probe())
        except Exception as e:
            logger.debug("Connectivity probe raised: %s", e)
            online = False
        self.report(online)
        return online

    async def start(self) -> None:
        """Take the baseline observation and start background polling."""
        if self.is_running:
            return

        await self.check()
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.check()

    async def stop(self) -> None:
        """Stop background polling."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
