"""Run configuration parsed from the command line and the ``TESTIE`` environment variable."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from testie.ui.render import RenderOptions

logger = logging.getLogger("testie.config")

ENV_ARGS = "TESTIE"

# go test flags that name the tests to run; scrollback is shown for them.
_SELECTION_FLAGS = ("-run", "-bench")


class ConfigError(ValueError):
    """An invalid testie option."""


def _default_log_path() -> Path:
    return Path(tempfile.gettempdir()) / "testie.log"


@dataclass(frozen=True)
class RunConfig:
    """Immutable run configuration. Construct via ``from_args()`` or directly for tests."""

    go_args: tuple[str, ...] = ()
    time_factor: float = 1.0
    selection: bool = False
    short: bool = False
    slim: bool = True
    extra_verbose: bool = False
    debug: bool = False
    paginate: bool = True
    color: bool = True
    show_help: bool = False
    log_path: Path = field(default_factory=_default_log_path)

    @classmethod
    def from_args(
        cls,
        argv: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> RunConfig:
        """Split *argv* (plus ``$TESTIE``) into testie options and ``go test`` args.

        Raises ``ConfigError`` on a bad ``-tf`` value.
        """
        env = os.environ if env is None else env
        extra = env.get(ENV_ARGS, "").split()
        args = [*argv, *extra]

        opts: dict[str, object] = {}
        selection = False
        go_args: list[str] = []
        for arg in args:
            if arg in ("-h", "-help", "--help"):
                opts["show_help"] = True
            elif arg == "-v":
                selection = True
            elif arg == "-vv":
                selection = True
                opts["extra_verbose"] = True
            elif arg == "-s":
                opts["short"] = True
            elif arg == "-no-slim":
                opts["slim"] = False
            elif arg == "-no-page":
                opts["paginate"] = False
            elif arg == "-no-color":
                opts["color"] = False
            elif arg in ("-d", "-debug"):
                opts["debug"] = True
            elif arg.startswith("-tf="):
                opts["time_factor"] = _parse_time_factor(arg[len("-tf="):])
            elif arg == "-json":
                continue
            else:
                go_args.append(arg)
                if arg.split("=", 1)[0] in _SELECTION_FLAGS:
                    selection = True

        config = cls(go_args=tuple(go_args), selection=selection, **opts)  # type: ignore[arg-type]
        logger.debug("Config loaded — %s", config)
        return config

    def render_options(self, color: bool | None = None) -> RenderOptions:
        return RenderOptions(
            selection=self.selection,
            short=self.short,
            slim=self.slim,
            extra_verbose=self.extra_verbose,
            debug=self.debug,
            color=self.color if color is None else color and self.color,
            time_factor=self.time_factor,
        )


def _parse_time_factor(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"invalid -tf value {raw!r}") from exc
    if not value > 0.0:
        raise ConfigError(f"-tf must be positive, got {raw!r}")
    return value
