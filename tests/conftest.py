"""Shared test fixtures for testie."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from testie.ui.render import Renderer, RenderOptions

LineFactory = Callable[..., bytes]


class Capture:
    """Collects everything written to a sink."""

    def __init__(self) -> None:
        self.chunks: list[str] = []

    def write(self, text: str) -> None:
        self.chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines()


@pytest.fixture
def capture() -> Capture:
    return Capture()


@pytest.fixture
def plain_options() -> RenderOptions:
    """Uncolored, unslimmed output so assertions can match text exactly."""
    return RenderOptions(color=False, slim=False)


@pytest.fixture
def renderer(capture: Capture, plain_options: RenderOptions) -> Renderer:
    return Renderer(capture.write, plain_options, width=lambda: 80)


@pytest.fixture
def event_line() -> LineFactory:
    """Build one ``go test -json`` line as bytes."""

    def _make(
        action: str,
        test: str = "TestA",
        package: str = "example.com/pkg",
        output: str | None = None,
        elapsed: float | None = None,
    ) -> bytes:
        record: dict[str, Any] = {
            "Time": "2024-05-01T10:00:00.123456789+02:00",
            "Action": action,
            "Package": package,
            "Test": test,
        }
        if output is not None:
            record["Output"] = output
        if elapsed is not None:
            record["Elapsed"] = elapsed
        return json.dumps(record).encode() + b"\n"

    return _make
