"""Command-line entry point: ``testie ['go test' flags]``."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import sys
from typing import TYPE_CHECKING, TextIO

import colorama
from dotenv import load_dotenv

from testie.config import ConfigError, RunConfig
from testie.process.runner import GoBinaryNotFoundError, run_go_test
from testie.ui.render import Renderer

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

logger = logging.getLogger("testie.cli")

# Reports shorter than this are printed instead of paged.
PAGE_LINES = 30

HELP_TEXT = """
  usage: testie ['go test' flags]

  testie is a wrapper utility that executes 'go test' and formats
  the result in a more readable manner. The arguments to testie
  are the same as 'go test', but testie always adds '-json' and
  '-v' internally, so those are not necessary to specify.

  If the environment variable TESTIE is set, those arguments will
  also be passed to testie and 'go test'.

  testie warns if a test takes more than 1 second to complete
  ("slow"). testie also warns while a test is running if the test
  seems stuck ("hung"), which happens after 10s. Adjust these
  thresholds with the timefactor switch, -tf=XX, for example -tf=0.1
  to make 0.1s be considered slow and 1s be considered "stuck".

  Without arguments, testie prints:

  1) test results, and the scrollback of failed tests
  2) warnings about slow and hung tests
  3) a minimal summary at the end

    -s dont print any scrollback even on failures

    -v print scrollback of passing and skipped tests

    -vv also print test durations

    -tf=0.1 change slow/hung warnings threshold

    -no-slim do indent and keep t.Logf() annotations

    -no-page avoid automatic pagination

    -no-color plain output

    -d print every decoded event

"""


def _flushing(stream: TextIO) -> Callable[[str], None]:
    def _write(text: str) -> None:
        stream.write(text)
        stream.flush()

    return _write


def _should_page(config: RunConfig, stdout: TextIO) -> bool:
    return config.paginate and stdout.isatty() and shutil.which("less") is not None


def show_report(path: Path, lines: int, interesting: bool, stdout: TextIO) -> None:
    """Print the report at *path*, through ``less`` when it is long and worth reading."""
    if lines < PAGE_LINES or not interesting:
        stdout.write(path.read_text(encoding="utf-8", errors="replace"))
        stdout.flush()
        return
    subprocess.run(["less", "-SRn", str(path)], stdout=stdout, check=False)


def run(config: RunConfig, stdout: TextIO) -> int:
    """Run ``go test`` per *config*, writing to *stdout*. Returns the exit code."""
    interactive = stdout.isatty()
    paging = _should_page(config, stdout)
    options = config.render_options(color=interactive or paging)

    config.log_path.parent.mkdir(parents=True, exist_ok=True)
    with config.log_path.open("w", encoding="utf-8") as log:
        if paging:
            renderer = Renderer(log.write, options, progress=_flushing(stdout))
        else:
            renderer = Renderer(
                _flushing(stdout),
                options,
                transcript=log.write,
                progress=_flushing(stdout) if interactive else None,
            )
        rc = asyncio.run(run_go_test(config.go_args, renderer))

    if paging:
        show_report(config.log_path, renderer.lines, rc != 0 or config.selection, stdout)
    return rc


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point: load env, build config, run go test, exit with its verdict."""
    load_dotenv()
    argv = sys.argv[1:] if argv is None else argv

    try:
        config = RunConfig.from_args(argv)
    except ConfigError as exc:
        print(f"testie: {exc}", file=sys.stderr)
        print(HELP_TEXT, end="")
        sys.exit(2)

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if config.show_help:
        print(HELP_TEXT, end="")
        return

    colorama.just_fix_windows_console()
    try:
        rc = run(config, sys.stdout)
    except GoBinaryNotFoundError as exc:
        print(f"testie: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(rc)


if __name__ == "__main__":
    main()
