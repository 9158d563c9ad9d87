"""EventLog — ordered record of decoded events with an incremental flush cursor."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from testie.process.models import Action, Event

if TYPE_CHECKING:
    from testie.process.registry import TestRegistry
    from testie.ui.render import Renderer

logger = logging.getLogger("testie.process.eventlog")


class EventLog:
    """Append-only event list; :meth:`flush` renders each index exactly once."""

    def __init__(self, registry: TestRegistry, renderer: Renderer) -> None:
        self._registry = registry
        self._renderer = renderer
        self._events: list[Event] = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._events)

    @property
    def cursor(self) -> int:
        """Number of events already rendered."""
        return self._cursor

    def record(self, event: Event) -> None:
        self._events.append(event)

    def flush(self) -> int:
        """Render every event recorded since the last flush. Returns how many."""
        start = self._cursor
        for i in range(start, len(self._events)):
            self._render(self._events[i])
            self._cursor = i + 1
        return self._cursor - start

    def _render(self, event: Event) -> None:
        r = self._renderer
        selection = r.options.selection
        action = event.action

        if action is Action.SKIP:
            r.status(event)
            if selection:
                self._scrollback(event)
        elif action is Action.BENCH:
            r.status(event)
            self._scrollback(event)
        elif action is Action.PASS:
            r.status(event)
            if selection:
                self._scrollback(event)
            r.slow_warning(event)
        elif action is Action.FAIL:
            r.status(event)
            self._scrollback(event)
            r.slow_warning(event)
        # run, output, pause and cont render nothing here

    def _scrollback(self, event: Event) -> None:
        test = self._registry.get(event.key)
        if test is None:
            logger.debug("No test state for %s; skipping scrollback", event.key)
            return
        self._renderer.scrollback(test)
