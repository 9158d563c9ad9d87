"""Report rendering — status lines, scrollback, summary and banners."""

from __future__ import annotations

import logging
import re
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass

from colorama import Fore, Style

from testie.process.models import Action, Counters, Event, TestCase

logger = logging.getLogger("testie.ui.render")

Sink = Callable[[str], object]
WidthProvider = Callable[[], int]

# Matches the "    TestFoo: foo_test.go:12: " prefix that t.Logf adds.
_SLIM_RE = re.compile(r"^\s+Test[^:]+: [^.]+\.(go|s):\d+: ")

# Base warning thresholds in seconds, both scaled by RenderOptions.time_factor.
SLOW_THRESHOLD_S = 1.0
HUNG_THRESHOLD_S = 10.0

_PROGRESS_INTERVAL_S = 0.5
_MIN_PROGRESS_CHARS = 9

_LABELS: dict[Action, tuple[str, str]] = {
    Action.PASS: ("pass", Fore.GREEN),
    Action.FAIL: ("fail", Fore.RED),
    Action.SKIP: ("skip", Fore.YELLOW),
    Action.BENCH: ("bnch", Fore.YELLOW),
}


def terminal_width() -> int:
    """Default width provider: columns of the controlling terminal."""
    return shutil.get_terminal_size().columns


def progress_text(output: str) -> str:
    """Pick the text worth showing on the progress line from one output chunk.

    Walks the lines of *output* from the end and returns the first one with
    more than eight printable characters, with control bytes removed.
    """
    for raw in reversed(re.split(r"[\r\n]", output)):
        kept = "".join(c for c in raw if c == "\x1b" or " " <= c < "\x7f")
        if len(kept.strip()) >= _MIN_PROGRESS_CHARS:
            return kept.rstrip()
    return ""


@dataclass(frozen=True)
class RenderOptions:
    """Presentation switches plus the time factor for slow and hung warnings."""

    selection: bool = False
    short: bool = False
    slim: bool = True
    extra_verbose: bool = False
    debug: bool = False
    color: bool = True
    time_factor: float = 1.0

    @property
    def slow_threshold(self) -> float:
        return SLOW_THRESHOLD_S * self.time_factor

    @property
    def hung_threshold(self) -> float:
        return HUNG_THRESHOLD_S * self.time_factor


class Renderer:
    """Writes the report to *sink* and, if given, the same lines to *transcript*.

    *progress* is an optional interactive sink for the transient one-line
    view of the latest test output. It is cleared before each report line.
    """

    def __init__(
        self,
        sink: Sink,
        options: RenderOptions | None = None,
        transcript: Sink | None = None,
        progress: Sink | None = None,
        width: WidthProvider = terminal_width,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self.options = options or RenderOptions()
        self._transcript = transcript
        self._progress = progress
        self._width = width
        self._clock = clock
        self._progress_shown = False
        self._last_progress: float | None = None
        self.lines = 0

    # ── primitives ──────────────────────────────────────────────────

    def _paint(self, text: str, color: str) -> str:
        if not self.options.color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def write(self, text: str) -> None:
        """Emit report text to the sink and the transcript."""
        if not text:
            return
        self.clear_progress()
        self._sink(text)
        if self._transcript is not None:
            self._transcript(text)
        self.lines += text.count("\n")

    def clear_progress(self) -> None:
        if self._progress is None or not self._progress_shown:
            return
        self._progress("\r" + " " * self._width() + "\r")
        self._progress_shown = False

    def progress(self, output: str) -> None:
        """Show the latest test output on the progress line (throttled)."""
        if self._progress is None:
            return
        now = self._clock()
        if self._last_progress is not None and now - self._last_progress <= _PROGRESS_INTERVAL_S:
            return
        text = progress_text(output)
        if not text:
            return
        self.clear_progress()
        self._progress(text[: self._width()])
        self._progress_shown = True
        self._last_progress = now

    # ── per-event lines ─────────────────────────────────────────────

    def _timing(self, event: Event) -> str:
        if self.options.extra_verbose or event.action is Action.BENCH:
            return f"{event.elapsed:0.2f}s "
        return ""

    def status(self, event: Event) -> None:
        label, color = _LABELS[event.action]
        self.write(f"{self._paint(label, color)} {self._timing(event)}{event.test}\n")

    def slow_warning(self, event: Event) -> None:
        """Warn when *event* took at least the (scaled) slow threshold."""
        if event.elapsed >= self.options.slow_threshold:
            self.write(
                f"{self._paint('slow', Fore.BLUE)} {event.test} took {event.elapsed:0.2f}s\n"
            )

    def hung_warning(self, test: TestCase, elapsed: float) -> None:
        self.write(f"{self._paint('hung', Fore.BLUE)} {test.name}, ran for {elapsed:0.1f}s\n")

    def scrollback(self, test: TestCase) -> None:
        if self.options.short:
            return
        package = self._paint(test.package, Style.BRIGHT)
        if self.options.slim:
            self.write(f"in package {package}\nhere follows test output:\n")
            for line in test.scrollback:
                match = _SLIM_RE.match(line)
                self.write(line[match.end() :] if match else line)
        else:
            self.write(f"  in package {package}\n  here follows test output:\n")
            for line in test.scrollback:
                self.write(f"    {line}")

    def debug(self, event: Event) -> None:
        if self.options.debug:
            self.write(f"{event!r}\n")

    def passthrough(self, text: str) -> None:
        self.write(text)

    # ── summary ─────────────────────────────────────────────────────

    def summary(self, counters: Counters) -> None:
        self.write(counters.summary_line() + "\n")

    def failure_banner(self) -> None:
        self.write(self._paint("TEST FAILED", Fore.RED) + "\n")

    def runner_error(self, returncode: int) -> None:
        self.write(self._paint(f"go test exited with status {returncode}", Fore.RED) + "\n")

    def no_tests(self) -> None:
        self.write(self._paint("NO TESTS FOUND", Fore.RED) + "\n")
