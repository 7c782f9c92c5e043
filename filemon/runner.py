"""Build and run the command for a file that arrived."""
from __future__ import annotations

import logging
import os
import subprocess

from .config import DEFAULT_SHELL, MAX_COMMAND_LENGTH
from .errors import CommandTooLong, SpawnError
from .logger import get_logger, log_event
from .models import ExitClassification, ExitKind

SEPARATOR = "/"


def join_path(directory: str, filename: str) -> str:
    """Join without doubling the separator when *directory* already ends in one."""

    if directory.endswith(SEPARATOR):
        return directory + filename
    return directory + SEPARATOR + filename


def build_command_line(
    base_command: str,
    directory: str,
    filename: str,
    *,
    max_length: int = MAX_COMMAND_LENGTH,
) -> str:
    """Return ``"<base_command> <directory>/<filename>"``.

    The path is appended verbatim, so the shell sees it exactly as the file is
    named. Raises :class:`CommandTooLong` when the encoded result is longer
    than *max_length* bytes.
    """

    command_line = f"{base_command} {join_path(directory, filename)}"
    length = len(os.fsencode(command_line))
    if length > max_length:
        raise CommandTooLong(length, max_length)
    return command_line


class CommandRunner:
    """Run one shell command per event and wait for it to finish."""

    def __init__(
        self,
        *,
        shell: str = DEFAULT_SHELL,
        max_length: int = MAX_COMMAND_LENGTH,
        logger: logging.Logger | None = None,
    ) -> None:
        self.shell = shell
        self.max_length = max_length
        self.logger = logger or get_logger("runner")

    def build(self, base_command: str, directory: str, filename: str) -> str:
        return build_command_line(base_command, directory, filename, max_length=self.max_length)

    def run(self, base_command: str, directory: str, filename: str) -> ExitClassification:
        command_line = self.build(base_command, directory, filename)
        log_event(
            self.logger,
            level=logging.INFO,
            action="command.built",
            message=f"cmd: {command_line}",
            extra={"command": command_line},
        )
        return self.execute(command_line)

    def execute(self, command_line: str) -> ExitClassification:
        """Run *command_line* under the shell and block until it terminates."""

        try:
            child = subprocess.Popen(command_line, shell=True, executable=self.shell)
        except OSError as exc:
            log_event(
                self.logger,
                level=logging.ERROR,
                action="child.spawn_failed",
                message="cannot fork",
                extra={"command": command_line, "error": repr(exc)},
            )
            raise SpawnError(f"cannot launch {self.shell}: {exc}") from exc

        log_event(
            self.logger,
            level=logging.INFO,
            action="child.spawned",
            message=f"[child process] pid={child.pid}",
            extra={"pid": child.pid},
        )
        returncode = child.wait()
        outcome = ExitClassification.from_returncode(returncode)

        if outcome.kind is ExitKind.SIGNALED:
            log_event(
                self.logger,
                level=logging.WARNING,
                action="child.signaled",
                message=f"child process killed by signal {outcome.signal}",
                extra={"pid": child.pid, **outcome.to_dict()},
            )
        else:
            log_event(
                self.logger,
                level=logging.DEBUG if outcome.succeeded else logging.WARNING,
                action="child.exited",
                message=f"child process terminated, exit status: {outcome.code}",
                extra={"pid": child.pid, **outcome.to_dict()},
            )
        return outcome


__all__ = ["CommandRunner", "build_command_line", "join_path"]
