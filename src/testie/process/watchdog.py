"""HangWatchdog — periodic "hung" warnings for tests that never finish."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from enum import Enum

from testie.process.models import TestCase

logger = logging.getLogger("testie.process.watchdog")

# (test, seconds since the test was created) → None
HungCallback = Callable[[TestCase, float], None]


class WatchdogState(Enum):
    ARMED = "armed"
    TERMINATED = "terminated"


class HangWatchdog:
    """One timer per test.

    Every *interval* seconds the watchdog reports the test as hung until
    :meth:`finish` is called. ``finish`` wakes the watchdog right away, so a
    finished test never gets a late warning.
    """

    def __init__(
        self,
        test: TestCase,
        interval: float,
        on_hung: HungCallback,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._test = test
        self._interval = interval
        self._on_hung = on_hung
        self._clock = clock
        self._finished = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.warnings = 0

    @property
    def state(self) -> WatchdogState:
        if self._task is not None and not self._task.done():
            return WatchdogState.ARMED
        return WatchdogState.TERMINATED

    def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name=f"watchdog-{self._test.key}")

    def finish(self) -> None:
        """Signal that the bound test reached a terminal state."""
        self._finished.set()

    async def cancel(self) -> None:
        """Abandon the timer (used when the run ends)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._finished.wait(), timeout=self._interval)
            except TimeoutError:
                if self._test.finished:
                    break
                self.warnings += 1
                elapsed = self._clock() - self._test.started_at
                try:
                    self._on_hung(self._test, elapsed)
                except Exception:
                    logger.warning("on_hung callback error for %s", self._test.key, exc_info=True)
                continue
            break
        logger.debug("Watchdog for %s terminated after %d warning(s)", self._test.key, self.warnings)
