"""Decode ``go test -json`` lines into events or passthrough text."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from testie.process.models import Action, Event, Passthrough

logger = logging.getLogger("testie.process.decoder")

_ACTIONS = {a.value: a for a in Action}

# Go emits nanoseconds; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


class _Malformed(Exception):
    pass


def _field(data: dict[str, Any], name: str, kind: type, default: Any) -> Any:
    value = data.get(name)
    if value is None:
        return default
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        try:
            return float(value)
        except OverflowError as exc:
            raise _Malformed(f"{name} out of range") from exc
    if not isinstance(value, kind) or isinstance(value, bool):
        raise _Malformed(f"{name} has type {type(value).__name__}")
    return value


def _parse_time(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    try:
        return datetime.fromisoformat(_FRACTION_RE.sub(r"\1", raw, count=1))
    except ValueError as exc:
        raise _Malformed(f"bad Time {raw!r}") from exc


def decode_line(line: bytes) -> Event | Passthrough | None:
    """Classify one raw line.

    Returns an :class:`Event` for a structured per-test record, a
    :class:`Passthrough` for anything that is not a structured record, and
    ``None`` for records that carry no test name (package summaries) or an
    action this version does not know about.
    """
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError:
        return Passthrough(line.decode("utf-8", errors="replace"))

    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        # deeply nested arrays exhaust the parser stack
        return Passthrough(text)
    if not isinstance(data, dict):
        return Passthrough(text)

    try:
        test = _field(data, "Test", str, "")
        action = _field(data, "Action", str, "")
        package = _field(data, "Package", str, "")
        output = _field(data, "Output", str, "")
        elapsed = _field(data, "Elapsed", float, 0.0)
        when = _parse_time(_field(data, "Time", str, None))
    except _Malformed as exc:
        logger.debug("Treating line as passthrough: %s", exc)
        return Passthrough(text)

    if not test:
        return None

    kind = _ACTIONS.get(action)
    if kind is None:
        logger.debug("Dropping event with unknown action %r for %s", action, test)
        return None

    return Event(
        action=kind,
        package=package,
        test=test,
        output=output,
        elapsed=elapsed,
        time=when,
    )
