"""Core dataclasses shared across filemon modules."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inotify_simple import flags


@dataclass(frozen=True, slots=True)
class WatchedPath:
    """An absolute path together with the watch handle the kernel issued for it."""

    path: str
    handle: int


@dataclass(frozen=True, slots=True)
class Event:
    """A single decoded change notification.

    ``mask`` uses the inotify bit values exposed by :data:`inotify_simple.flags`.
    ``name`` is ``None`` when the event concerns the watched path itself.
    """

    handle: int
    mask: int
    cookie: int = 0
    name: str | None = None

    def has(self, flag: int) -> bool:
        return bool(self.mask & flag)

    @property
    def is_overflow(self) -> bool:
        return self.has(flags.Q_OVERFLOW)


class ExitKind(str, Enum):
    """How a child process terminated."""

    EXITED = "exited"
    SIGNALED = "signaled"


@dataclass(frozen=True, slots=True)
class ExitClassification:
    """Outcome of one child command."""

    kind: ExitKind
    code: int | None = None
    signal: int | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitClassification":
        """Map a :mod:`subprocess` return code to a classification.

        Negative return codes mean the child was killed by that signal.
        """

        if returncode < 0:
            return cls(ExitKind.SIGNALED, signal=-returncode)
        return cls(ExitKind.EXITED, code=returncode)

    @property
    def succeeded(self) -> bool:
        return self.kind is ExitKind.EXITED and self.code == 0

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"kind": self.kind.value}
        if self.code is not None:
            payload["code"] = self.code
        if self.signal is not None:
            payload["signal"] = self.signal
        return payload


__all__ = ["Event", "ExitClassification", "ExitKind", "WatchedPath"]
