"""Launch ``go test -json -v`` and aggregate its output."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
from typing import TYPE_CHECKING

from testie.process.aggregator import Aggregator
from testie.process.monitor import OutputMonitor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from testie.ui.render import Renderer

logger = logging.getLogger("testie.process.runner")

_STATIC_ARGS = ("test", "-json", "-v")


class GoBinaryNotFoundError(FileNotFoundError):
    """No executable ``go`` on PATH."""


def find_go_binary(path: str | None = None) -> str:
    """Locate the ``go`` executable on *path* (default ``$PATH``)."""
    found = shutil.which("go", path=path)
    if found is None:
        raise GoBinaryNotFoundError("no go binary found on PATH")
    return found


def build_command(go: str, args: Sequence[str]) -> list[str]:
    """Full argv for the child: ``go test -json -v`` plus the user's args."""
    passed = [a for a in args if a not in _STATIC_ARGS[1:]]
    return [go, *_STATIC_ARGS, *passed]


async def run_go_test(
    args: Sequence[str],
    renderer: Renderer,
    go: str | None = None,
) -> int:
    """Run ``go test`` with *args* and render its report. Returns the exit code."""
    argv = build_command(go or find_go_binary(), args)
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    if process.stdout is None or process.stderr is None:
        raise RuntimeError("Failed to attach to go test output")

    logger.info("Spawned pid=%d: %s", process.pid, " ".join(argv))

    monitor = OutputMonitor({"stderr": process.stderr, "stdout": process.stdout})
    aggregator = Aggregator(renderer)
    try:
        rc = await aggregator.run(monitor, wait=process.wait)
    finally:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
    logger.info("go test pid=%d exited with code %s", process.pid, process.returncode)
    return rc
