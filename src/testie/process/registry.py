"""TestRegistry — keyed per-test state with one watchdog per test."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from testie.process.models import Counters, Outcome, TestCase, TestKey
from testie.process.watchdog import HangWatchdog, HungCallback

logger = logging.getLogger("testie.process.registry")


class TestRegistry:
    """Owns every :class:`TestCase` seen during a run.

    Only the dispatch loop mutates the registry. Watchdogs hold a reference
    to their test but learn about completion through :meth:`HangWatchdog.finish`.

    Parameters
    ----------
    hung_interval:
        Seconds between hung warnings for a test that has not finished.
    on_hung:
        Callback invoked by a watchdog for each hung warning.
    clock:
        Monotonic clock, injectable for tests.
    """

    __test__ = False  # Prevent pytest collection

    def __init__(
        self,
        hung_interval: float,
        on_hung: HungCallback,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._hung_interval = hung_interval
        self._on_hung = on_hung
        self._clock = clock
        self._tests: dict[TestKey, TestCase] = {}
        self._children: dict[TestKey, list[TestKey]] = {}
        self._watchdogs: dict[TestKey, HangWatchdog] = {}
        self.counters = Counters()

    def __len__(self) -> int:
        return len(self._tests)

    def __contains__(self, key: object) -> bool:
        return key in self._tests

    def get(self, key: TestKey) -> TestCase | None:
        return self._tests.get(key)

    def children(self, key: TestKey) -> list[TestKey]:
        """Subtests created under *key*, in creation order."""
        return list(self._children.get(key, ()))

    def watchdog(self, key: TestKey) -> HangWatchdog | None:
        return self._watchdogs.get(key)

    def ensure(self, key: TestKey) -> TestCase:
        """Return the test for *key*, creating it (and its watchdog) if new."""
        test = self._tests.get(key)
        if test is not None:
            return test

        parent = key.parent
        test = TestCase(key=key, started_at=self._clock(), parent=parent)
        self._tests[key] = test
        if parent is not None:
            self._children.setdefault(parent, []).append(key)

        watchdog = HangWatchdog(test, self._hung_interval, self._on_hung, clock=self._clock)
        self._watchdogs[key] = watchdog
        watchdog.start()
        logger.debug("Tracking %s (parent=%s)", key, parent)
        return test

    def append_output(self, key: TestKey, text: str) -> None:
        """Append *text* to the scrollback of an existing test."""
        test = self._tests.get(key)
        if test is None:
            raise KeyError(f"Unknown test {key}; call ensure() first")
        test.scrollback.append(text)

    def mark(self, key: TestKey, outcome: Outcome) -> bool:
        """Set the terminal outcome of *key* once.

        Returns False (and changes nothing) if the test already finished.
        """
        if not outcome.terminal:
            raise ValueError(f"{outcome.value!r} is not a terminal outcome")
        test = self.ensure(key)
        if test.finished:
            logger.warning(
                "Ignoring %s for %s: already %s", outcome.value, key, test.outcome.value
            )
            return False
        test.outcome = outcome
        self.counters.count(outcome)
        self._watchdogs[key].finish()
        return True

    async def shutdown(self) -> None:
        """Abandon all watchdogs still waiting on unfinished tests."""
        for watchdog in self._watchdogs.values():
            await watchdog.cancel()
