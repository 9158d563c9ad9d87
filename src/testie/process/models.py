"""Data models for the event stream — enums and dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Action(Enum):
    """Action field of a ``go test -json`` event.

    run    - the test has started running
    pause  - the test has been paused
    cont   - the test has continued running
    pass   - the test passed
    bench  - the benchmark printed log output but did not fail
    fail   - the test or benchmark failed
    output - the test printed output
    skip   - the test was skipped or the package contained no tests
    """

    RUN = "run"
    PAUSE = "pause"
    CONT = "cont"
    PASS = "pass"
    BENCH = "bench"
    FAIL = "fail"
    OUTPUT = "output"
    SKIP = "skip"


class Outcome(Enum):
    """Terminal state of a test. ``RUNNING`` is the only non-terminal value."""

    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self is not Outcome.RUNNING


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

SUBTEST_SEPARATOR = "/"


@dataclass(frozen=True)
class TestKey:
    """Identity of a test across the run."""

    __test__ = False  # Prevent pytest collection

    package: str
    name: str

    @property
    def parent(self) -> TestKey | None:
        """Key of the enclosing test for ``Parent/sub`` names, else None."""
        head, sep, _ = self.name.rpartition(SUBTEST_SEPARATOR)
        if not sep or not head:
            return None
        return TestKey(self.package, head)

    def __str__(self) -> str:
        return f"{self.package}.{self.name}"


@dataclass(frozen=True)
class Event:
    """One decoded line of ``go test -json`` output."""

    action: Action
    package: str
    test: str
    output: str = ""
    elapsed: float = 0.0
    time: datetime | None = None

    @property
    def key(self) -> TestKey:
        return TestKey(self.package, self.test)


@dataclass(frozen=True)
class Passthrough:
    """A line that is not a structured event (build errors, panics, ...)."""

    text: str


@dataclass
class TestCase:
    """Per-test state owned by the registry."""

    __test__ = False  # Prevent pytest collection

    key: TestKey
    started_at: float
    parent: TestKey | None = None
    scrollback: list[str] = field(default_factory=list)
    outcome: Outcome = Outcome.RUNNING

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def package(self) -> str:
        return self.key.package

    @property
    def finished(self) -> bool:
        return self.outcome.terminal


@dataclass
class Counters:
    """Aggregate outcome counts for the run."""

    failed: int = 0
    passed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.failed + self.passed + self.skipped

    def count(self, outcome: Outcome) -> None:
        if outcome is Outcome.FAILED:
            self.failed += 1
        elif outcome is Outcome.PASSED:
            self.passed += 1
        elif outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            raise ValueError(f"Cannot count non-terminal outcome {outcome.value!r}")

    def summary_line(self) -> str:
        return (
            f"{self.failed} failed, {self.passed} passed, "
            f"{self.skipped} skipped, {self.total} total"
        )
