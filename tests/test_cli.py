"""Tests for testie.cli — entry point, help, paging decisions."""

from __future__ import annotations

import io
import os
import stat
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from testie import cli
from testie.config import RunConfig

if TYPE_CHECKING:
    from pathlib import Path

_PASSING = (
    '{"Action":"run","Package":"example.com/pkg","Test":"TestOK"}\n'
    '{"Action":"pass","Package":"example.com/pkg","Test":"TestOK","Elapsed":0.01}\n'
)


@pytest.fixture
def go_on_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Put a fake ``go`` that reports one passing test first on PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "go"
    script.write_text(f"#!/bin/sh\ncat <<'EOF'\n{_PASSING}EOF\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.delenv("TESTIE", raising=False)
    return script


class TestMain:
    def test_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        cli.main(["-h"])
        assert "usage: testie" in capsys.readouterr().out

    def test_bad_option_exits_2(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["-tf=zero"])
        assert exc_info.value.code == 2
        captured = capsys.readouterr()
        assert "-tf" in captured.err
        assert "usage: testie" in captured.out

    def test_missing_go_exits_2(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("PATH", str(tmp_path))
        monkeypatch.delenv("TESTIE", raising=False)
        with patch.object(cli, "run", side_effect=cli.GoBinaryNotFoundError("no go binary found")):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["-no-page"])
        assert exc_info.value.code == 2
        assert "no go binary" in capsys.readouterr().err

    def test_exit_code_comes_from_run(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TESTIE", raising=False)
        with patch.object(cli, "run", return_value=1) as run:
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["./..."])
        assert exc_info.value.code == 1
        config = run.call_args.args[0]
        assert config.go_args == ("./...",)


class TestRun:
    def test_plain_output_and_log(self, go_on_path: Path, tmp_path: Path) -> None:
        log_path = tmp_path / "logs" / "testie.log"
        out = io.StringIO()
        rc = cli.run(RunConfig(log_path=log_path), out)

        assert rc == 0
        text = out.getvalue()
        assert "pass TestOK" in text
        assert "\x1b[" not in text  # not a terminal, no colors
        assert text.endswith("0 failed, 1 passed, 0 skipped, 1 total\n")
        assert log_path.read_text() == text


class TestShowReport:
    def test_short_report_is_printed(self, tmp_path: Path) -> None:
        report = tmp_path / "testie.log"
        report.write_text("pass TestOK\n")
        out = io.StringIO()
        with patch.object(cli.subprocess, "run") as run:
            cli.show_report(report, lines=1, interesting=True, stdout=out)
        run.assert_not_called()
        assert out.getvalue() == "pass TestOK\n"

    def test_long_uninteresting_report_is_printed(self, tmp_path: Path) -> None:
        report = tmp_path / "testie.log"
        report.write_text("pass TestOK\n" * 40)
        out = io.StringIO()
        with patch.object(cli.subprocess, "run") as run:
            cli.show_report(report, lines=40, interesting=False, stdout=out)
        run.assert_not_called()
        assert out.getvalue().count("\n") == 40

    def test_long_failed_report_is_paged(self, tmp_path: Path) -> None:
        report = tmp_path / "testie.log"
        report.write_text("fail TestBad\n" * 40)
        out = MagicMock()
        with patch.object(cli.subprocess, "run") as run:
            cli.show_report(report, lines=40, interesting=True, stdout=out)
        run.assert_called_once_with(["less", "-SRn", str(report)], stdout=out, check=False)
