"""Association between watched paths and the handles inotify issued for them."""
from __future__ import annotations

import logging
from typing import Iterator, Protocol

from .errors import UnknownHandle
from .logger import get_logger, log_event
from .models import WatchedPath


class WatchSource(Protocol):
    """The part of a notification source the table needs."""

    closed: bool

    def add_watch(self, path: str) -> int: ...

    def rm_watch(self, handle: int) -> None: ...


class WatchTable:
    """Maps watch handles back to the absolute path that owns them."""

    def __init__(self, source: WatchSource, *, logger: logging.Logger | None = None) -> None:
        self._source = source
        self._by_handle: dict[int, WatchedPath] = {}
        self._released = False
        self.logger = logger or get_logger("watch")

    def register(self, path: str) -> int:
        """Watch *path* and return its handle.

        :class:`~filemon.errors.WatchError` from the source propagates
        unchanged. Registering a path the kernel already watches returns the
        existing handle.
        """

        log_event(
            self.logger,
            level=logging.INFO,
            action="watch.registering",
            message=f"watching {path}",
            extra={"path": path},
        )
        handle = self._source.add_watch(path)
        existing = self._by_handle.get(handle)
        if existing is None:
            self._by_handle[handle] = WatchedPath(path=path, handle=handle)
        log_event(
            self.logger,
            level=logging.DEBUG,
            action="watch.registered",
            message="watch added",
            extra={"path": path, "wd": handle, "duplicate": existing is not None},
        )
        return handle

    def resolve(self, handle: int) -> str:
        try:
            return self._by_handle[handle].path
        except KeyError:
            raise UnknownHandle(handle) from None

    def paths(self) -> list[str]:
        return [entry.path for entry in self._by_handle.values()]

    def release_all(self) -> int:
        """Remove every watch; returns how many were released.

        Safe to call more than once and after the source has been closed.
        """

        if self._released:
            return 0
        self._released = True
        released = 0
        if not self._source.closed:
            for handle in list(self._by_handle):
                self._source.rm_watch(handle)
                released += 1
        log_event(
            self.logger,
            level=logging.INFO,
            action="watch.released",
            message="watches released",
            extra={"count": released, "total": len(self._by_handle)},
        )
        return released

    def __len__(self) -> int:
        return len(self._by_handle)

    def __contains__(self, handle: object) -> bool:
        return handle in self._by_handle

    def __iter__(self) -> Iterator[WatchedPath]:
        return iter(list(self._by_handle.values()))


__all__ = ["WatchSource", "WatchTable"]
