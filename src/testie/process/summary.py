"""Exit policy — turns the final counters into a banner and an exit code."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testie.process.models import Counters
    from testie.ui.render import Renderer


class Verdict(Enum):
    """Why the run succeeded or failed, in priority order."""

    TESTS_FAILED = "tests_failed"
    RUNNER_ERROR = "runner_error"
    NO_TESTS = "no_tests"
    OK = "ok"

    @property
    def exit_code(self) -> int:
        return 0 if self is Verdict.OK else 1


def decide(counters: Counters, returncode: int | None) -> Verdict:
    if counters.failed > 0:
        return Verdict.TESTS_FAILED
    if returncode:
        return Verdict.RUNNER_ERROR
    if counters.total == 0:
        return Verdict.NO_TESTS
    return Verdict.OK


def report(renderer: Renderer, counters: Counters, returncode: int | None) -> int:
    """Render the summary line and the banner for the verdict; return the exit code."""
    renderer.summary(counters)
    verdict = decide(counters, returncode)
    if verdict is Verdict.TESTS_FAILED:
        renderer.failure_banner()
    elif verdict is Verdict.RUNNER_ERROR:
        assert returncode is not None
        renderer.runner_error(returncode)
        renderer.failure_banner()
    elif verdict is Verdict.NO_TESTS:
        renderer.no_tests()
    return verdict.exit_code
