"""Tests for :mod:`filemon.runner`."""
from __future__ import annotations

from pathlib import Path

import pytest

from filemon.errors import CommandTooLong, SpawnError
from filemon.models import ExitClassification, ExitKind
from filemon.runner import CommandRunner, build_command_line, join_path


def test_build_command_line_adds_separator() -> None:
    assert build_command_line("ls -l", "/tmp", "a.txt") == "ls -l /tmp/a.txt"


def test_build_command_line_does_not_double_separator() -> None:
    assert build_command_line("ls -l", "/tmp/", "a.txt") == "ls -l /tmp/a.txt"


def test_join_path() -> None:
    assert join_path("/srv/in", "x") == "/srv/in/x"
    assert join_path("/", "x") == "/x"


def test_build_command_line_rejects_overlong_result() -> None:
    with pytest.raises(CommandTooLong) as excinfo:
        build_command_line("echo", "/tmp", "a" * 50, max_length=20)

    assert excinfo.value.limit == 20
    assert excinfo.value.length == len("echo /tmp/" + "a" * 50)


def test_build_command_line_accepts_exact_limit() -> None:
    command = build_command_line("echo", "/tmp", "a", max_length=len("echo /tmp/a"))

    assert command == "echo /tmp/a"


def test_run_passes_path_to_command(tmp_path: Path) -> None:
    runner = CommandRunner()

    outcome = runner.run("touch", str(tmp_path), "made.txt")

    assert outcome == ExitClassification(ExitKind.EXITED, code=0)
    assert outcome.succeeded
    assert (tmp_path / "made.txt").exists()


def test_run_reports_exit_status(tmp_path: Path) -> None:
    outcome = CommandRunner().run("exit 3 #", str(tmp_path), "a.txt")

    assert outcome.kind is ExitKind.EXITED
    assert outcome.code == 3
    assert not outcome.succeeded


def test_run_reports_terminating_signal(tmp_path: Path) -> None:
    outcome = CommandRunner().run("kill -9 $$ #", str(tmp_path), "a.txt")

    assert outcome.kind is ExitKind.SIGNALED
    assert outcome.signal == 9
    assert outcome.code is None


def test_run_with_missing_shell_raises_spawn_error(tmp_path: Path) -> None:
    runner = CommandRunner(shell=str(tmp_path / "no-such-shell"))

    with pytest.raises(SpawnError):
        runner.run("true", str(tmp_path), "a.txt")


def test_classification_from_returncode() -> None:
    assert ExitClassification.from_returncode(0).to_dict() == {"kind": "exited", "code": 0}
    assert ExitClassification.from_returncode(-15).to_dict() == {"kind": "signaled", "signal": 15}
