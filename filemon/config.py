"""Configuration for a filemon run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .errors import ConfigError

EVENT_HEADER_SIZE = 16
NAME_MAX = 255


def _path_max() -> int:
    try:
        return os.pathconf("/", "PC_PATH_MAX")
    except (OSError, ValueError, AttributeError):
        return 4096


PATH_MAX = _path_max()
# Room for ten records carrying a maximum-length name each.
DEFAULT_BUFFER_SIZE = 10 * (EVENT_HEADER_SIZE + NAME_MAX + 1)
MAX_COMMAND_LENGTH = PATH_MAX * 2
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_SHELL = "/bin/sh"


@dataclass
class MonitorConfig:
    """Options that control how the monitor behaves."""

    paths: List[str]
    command: str
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_command_length: int = MAX_COMMAND_LENGTH
    poll_interval: float = DEFAULT_POLL_INTERVAL
    shell: str = DEFAULT_SHELL

    def validate(self) -> "MonitorConfig":
        if not self.paths:
            raise ConfigError("at least one file or directory to monitor is required")
        if not self.command or not self.command.strip():
            raise ConfigError("a command is required")
        if len(self.command.encode()) > self.max_command_length:
            raise ConfigError("invalid command length")
        if self.buffer_size < EVENT_HEADER_SIZE + NAME_MAX + 1:
            raise ConfigError(
                f"buffer size {self.buffer_size} cannot hold a maximum-length event"
            )
        if self.poll_interval <= 0:
            raise ConfigError("poll interval must be positive")
        return self


def resolve_paths(paths: Iterable[str | os.PathLike[str]]) -> List[str]:
    """Return the absolute, symlink-free form of every path.

    Raises :class:`ConfigError` for paths that do not exist. Duplicates are
    dropped, keeping the first occurrence.
    """

    resolved: List[str] = []
    for raw in paths:
        expanded = os.path.expanduser(os.fspath(raw))
        if not os.path.exists(expanded):
            raise ConfigError(f"error calculating absolute path for {raw}")
        absolute = os.path.realpath(expanded)
        if absolute not in resolved:
            resolved.append(absolute)
    return resolved


def build_config(paths: Sequence[str], command: str | None, **options: object) -> MonitorConfig:
    """Resolve *paths* and return a validated :class:`MonitorConfig`."""

    if not paths:
        raise ConfigError("at least one file or directory to monitor is required")
    if command is None:
        raise ConfigError("a command is required")
    config = MonitorConfig(paths=resolve_paths(paths), command=command, **options)  # type: ignore[arg-type]
    return config.validate()


__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "MAX_COMMAND_LENGTH",
    "MonitorConfig",
    "build_config",
    "resolve_paths",
]
