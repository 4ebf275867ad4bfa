"""Tests for the command-line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from conftest import FakeNotifier, FakeWindowQuery
from hostcmd import __main__ as cli
from hostcmd.server import ServerLoop
from hostcmd.settings import Settings


@pytest.fixture(autouse=True)
def _logging(reset_logging: None) -> None:
    return None


def test_channel_argument_is_required(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])

    assert exc_info.value.code == 2
    assert "channel" in capsys.readouterr().err


def test_missing_channel_exits_nonzero(tmp_path: Path) -> None:
    with patch.object(cli, "default_capabilities", return_value=(FakeWindowQuery(), FakeNotifier())):
        code = cli.main([str(tmp_path / "missing.pipe")])

    assert code == cli.EXIT_CHANNEL_FAILURE


def test_keyboard_interrupt_exit_code(tmp_path: Path) -> None:
    def interrupted(self: ServerLoop, max_cycles: Any = None) -> None:
        raise KeyboardInterrupt

    with patch.object(cli, "default_capabilities", return_value=(FakeWindowQuery(), FakeNotifier())), \
            patch.object(ServerLoop, "run", interrupted):
        code = cli.main([str(tmp_path / "chan")])

    assert code == cli.EXIT_INTERRUPTED


def test_flags_reach_the_loop(tmp_path: Path) -> None:
    seen: dict[str, Any] = {}

    def capture(self: ServerLoop, max_cycles: Any = None) -> None:
        seen["report_malformed"] = self.report_malformed
        seen["path"] = self.reader.path  # type: ignore[attr-defined]

    with patch.object(
        cli, "default_capabilities", return_value=(FakeWindowQuery(), FakeNotifier())
    ) as caps, patch.object(ServerLoop, "run", capture):
        code = cli.main(["--report-malformed", "--no-escape-markup", str(tmp_path / "chan")])

    assert code == 0
    assert seen == {"report_malformed": True, "path": str(tmp_path / "chan")}
    caps.assert_called_once_with(escape_markup=False)


def test_log_level_applied(tmp_path: Path) -> None:
    with patch.object(cli, "default_capabilities", return_value=(FakeWindowQuery(), FakeNotifier())):
        cli.main(["--log-level", "DEBUG", str(tmp_path / "missing.pipe")])

    assert logging.getLogger().level == logging.DEBUG


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])

    assert exc_info.value.code == 0
    assert "hostcmd" in capsys.readouterr().out


def test_unknown_env_log_level_falls_back_to_info(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(cli, "settings", Settings(log_level="trace"))

    assert cli.build_parser().parse_args([str(tmp_path / "chan")]).log_level == "INFO"

    with patch.object(cli, "default_capabilities", return_value=(FakeWindowQuery(), FakeNotifier())):
        code = cli.main([str(tmp_path / "missing.pipe")])

    assert code == cli.EXIT_CHANNEL_FAILURE
    assert logging.getLogger().level == logging.INFO
