from __future__ import annotations

import json
import os
import signal
from pathlib import Path

from filemon import cli


def test_cli_requires_directory_and_command(capsys) -> None:
    assert cli.main(["-c", "ls -l"]) == 1
    assert cli.main(["-d", "/tmp"]) == 1
    assert "usage: filemon" in capsys.readouterr().err


def test_cli_prints_help_when_arguments_missing(capsys) -> None:
    exit_code = cli.main([])

    assert exit_code == 1
    assert "-d PATH" in capsys.readouterr().err


def test_cli_rejects_missing_path(tmp_path: Path, capsys) -> None:
    exit_code = cli.main(["-d", str(tmp_path / "missing"), "-c", "ls -l"])

    assert exit_code == 1
    assert "absolute path" in capsys.readouterr().err


def test_cli_rejects_overlong_command(tmp_path: Path, capsys) -> None:
    exit_code = cli.main(["-d", str(tmp_path), "-c", "x" * 100_000])

    assert exit_code == 1
    assert "invalid command length" in capsys.readouterr().err


def test_cli_stops_cleanly_on_sigterm(tmp_path: Path, monkeypatch, fake_source_factory) -> None:
    created = []

    def read_then_signal(index: int) -> None:
        if index == 0:
            os.kill(os.getpid(), signal.SIGTERM)

    def make_source():
        source = fake_source_factory([None] * 50, after_read=read_then_signal)
        created.append(source)
        return source

    monkeypatch.setattr(cli, "NotificationSource", make_source)
    previous = signal.getsignal(signal.SIGTERM)
    log_file = tmp_path / "logs" / "filemon.log"

    exit_code = cli.main(["-d", str(tmp_path), "-c", "true", "--log-file", str(log_file)])

    assert exit_code == 0
    assert signal.getsignal(signal.SIGTERM) is previous
    (source,) = created
    assert source.closed
    assert source.removed == [1]
    assert source.reads < 50

    actions = [json.loads(line)["action"] for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert actions[0] == "config.loaded"
    assert "monitor.ready" in actions
    assert actions[-1] == "monitor.finished"


def test_cli_reports_failure_when_source_closes(tmp_path: Path, monkeypatch, fake_source_factory) -> None:
    monkeypatch.setattr(cli, "NotificationSource", lambda: fake_source_factory([]))

    exit_code = cli.main(["-d", str(tmp_path), "-c", "true", "--log-file", str(tmp_path / "f.log")])

    assert exit_code == 1


def test_cli_returns_failure_when_watch_release_fails(tmp_path: Path, monkeypatch, fake_source_factory) -> None:
    from filemon.errors import SourceError

    class StuckWatchSource(fake_source_factory):
        def rm_watch(self, handle: int) -> None:
            raise SourceError(f"inotify_rm_watch failed for wd {handle}: Bad file descriptor")

    monkeypatch.setattr(cli, "NotificationSource", lambda: StuckWatchSource([]))
    log_file = tmp_path / "f.log"

    exit_code = cli.main(["-d", str(tmp_path), "-c", "true", "--log-file", str(log_file)])

    assert exit_code == 1
    last = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert last["action"] == "monitor.error"
    assert "inotify_rm_watch" in last["message"]
