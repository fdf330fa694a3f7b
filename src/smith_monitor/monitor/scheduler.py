"""Monitor scheduler: enable/disable state and the single re-armed timer.

States: Disabled -> Armed (enable while connected) -> Running (timer fired)
-> Armed (rearm while still enabled) or Disabled.

There is never more than one pending timer: every arm cancels the previous
handle. Disabling cancels the timer only, never a cycle that is already
running; that cycle simply finds the scheduler disabled and does not rearm.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from .runner import now_ms

logger = logging.getLogger(__name__)


class MonitorScheduler:
    """Drives one cycle at a time for a single monitor."""

    def __init__(
        self,
        run_cycle: Callable[[], Coroutine[Any, Any, Any]],
        is_connected: Callable[[], bool],
        initial_interval: int,
        name: str = "monitor",
    ) -> None:
        self.run_cycle = run_cycle
        self.is_connected = is_connected
        self.initial_interval = initial_interval
        self.name = name
        self.next_run: int = 0  # epoch ms, 0 while disabled
        self._enabled = False
        self._timer: asyncio.TimerHandle | None = None
        self._cycle: asyncio.Task[Any] | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def running(self) -> bool:
        """True while a cycle is in flight."""
        return self._cycle is not None and not self._cycle.done()

    def enable(self) -> bool:
        """Start scheduling. Returns the resulting enabled state."""
        if self._enabled:
            return True
        if not self.is_connected():
            logger.debug("Not enabling %s: producer not connected", self.name)
            return False
        self._enabled = True
        self._arm(self.initial_interval)
        logger.info("Scheduler enabled for %s (first run in %dms)", self.name, self.initial_interval)
        return True

    def disable(self) -> None:
        if not self._enabled:
            return
        self._enabled = False
        self._cancel_timer()
        self.next_run = 0
        logger.info("Scheduler disabled for %s", self.name)

    def rearm(self, delay: int) -> bool:
        """Replace the pending timer with one firing after ``delay`` ms."""
        if not self._enabled:
            return False
        self._arm(delay)
        return True

    def _arm(self, delay: int) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay / 1000, self._fire)
        self.next_run = now_ms() + delay

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self.running:
            # The in-flight cycle rearms when it completes
            logger.debug("Cycle for %s still running, skipping timer", self.name)
            return
        self._cycle = asyncio.create_task(self.run_cycle(), name=f"monitor-{self.name}")
        self._cycle.add_done_callback(self._cycle_done)

    def _cycle_done(self, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Monitor cycle error for %s", self.name, exc_info=error)
