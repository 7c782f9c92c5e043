"""Exception hierarchy for filemon."""
from __future__ import annotations


class FilemonError(Exception):
    """Base class for every error raised by filemon."""


class ConfigError(FilemonError):
    """Startup configuration is unusable."""


class SourceError(FilemonError):
    """The notification source could not be opened or read."""


class WatchError(FilemonError):
    """A watch could not be registered for a path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot watch {path}: {reason}")
        self.path = path
        self.reason = reason


class UnknownHandle(FilemonError):
    """An event carried a watch handle that was never registered."""

    def __init__(self, handle: int) -> None:
        super().__init__(f"cannot find directory name for wd {handle}")
        self.handle = handle


class TruncatedRecord(FilemonError):
    """A notification buffer ended in the middle of a record."""

    def __init__(self, offset: int, length: int) -> None:
        super().__init__(f"truncated event record at offset {offset} of {length}")
        self.offset = offset
        self.length = length


class CommandTooLong(FilemonError):
    """The materialized command line exceeds the configured maximum."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"command line is {length} bytes, limit is {limit}")
        self.length = length
        self.limit = limit


class SpawnError(FilemonError):
    """A child process could not be launched."""


__all__ = [
    "CommandTooLong",
    "ConfigError",
    "FilemonError",
    "SourceError",
    "SpawnError",
    "TruncatedRecord",
    "UnknownHandle",
    "WatchError",
]
