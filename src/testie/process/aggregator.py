"""Aggregator — the dispatch loop tying decoder, registry, log and renderer together."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from testie.process import summary
from testie.process.decoder import decode_line
from testie.process.eventlog import EventLog
from testie.process.models import Action, Counters, Event, Outcome, Passthrough
from testie.process.registry import TestRegistry

if TYPE_CHECKING:
    from testie.process.monitor import OutputMonitor
    from testie.ui.render import Renderer

logger = logging.getLogger("testie.process.aggregator")

_OUTCOMES = {
    Action.PASS: Outcome.PASSED,
    Action.FAIL: Outcome.FAILED,
    Action.SKIP: Outcome.SKIPPED,
}


class Aggregator:
    """Single writer for all per-test state.

    Feed lines with :meth:`handle_line`, or let :meth:`run` pull them from
    an :class:`OutputMonitor` until both streams end.
    """

    def __init__(
        self,
        renderer: Renderer,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.renderer = renderer
        self.registry = TestRegistry(
            hung_interval=renderer.options.hung_threshold,
            on_hung=renderer.hung_warning,
            clock=clock,
        )
        self.log = EventLog(self.registry, renderer)

    @property
    def counters(self) -> Counters:
        return self.registry.counters

    def handle_line(self, line: bytes) -> None:
        decoded = decode_line(line)
        if decoded is None:
            return
        if isinstance(decoded, Passthrough):
            self.renderer.passthrough(decoded.text)
            return
        self.handle_event(decoded)

    def handle_event(self, event: Event) -> None:
        self.renderer.debug(event)
        key = event.key
        action = event.action

        # A repeated terminal event is dropped before it reaches the log.
        if action in _OUTCOMES and not self.registry.mark(key, _OUTCOMES[action]):
            return
        self.log.record(event)

        if action is Action.RUN:
            self.registry.ensure(key)
        elif action is Action.OUTPUT:
            self.registry.ensure(key)
            self.registry.append_output(key, event.output)
            self.renderer.progress(event.output)
        elif action is Action.BENCH:
            self.registry.ensure(key)
            self.log.flush()
        elif action in _OUTCOMES:
            self.log.flush()
        # pause/cont: recorded only

    async def run(
        self,
        monitor: OutputMonitor,
        wait: Callable[[], Awaitable[int | None]] | None = None,
    ) -> int:
        """Dispatch until both streams end, then summarize.

        *wait* returns the child's exit status once its streams are drained.
        """
        monitor.start()
        try:
            async for stream_name, line in monitor.lines():
                logger.debug("%s: %r", stream_name, line)
                self.handle_line(line)
            returncode = await wait() if wait is not None else None
        finally:
            await monitor.stop()
            await self.registry.shutdown()
        return self.finish(returncode)

    def finish(self, returncode: int | None = None) -> int:
        """Final flush, summary and banner. Returns the process exit code."""
        self.log.flush()
        self.renderer.clear_progress()
        return summary.report(self.renderer, self.counters, returncode)
