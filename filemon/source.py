"""Linux inotify notification source."""
from __future__ import annotations

import errno
import logging
import os
import select

from inotify_simple import INotify, masks

from .errors import SourceError, WatchError
from .logger import get_logger, log_event

WATCH_MASK = masks.ALL_EVENTS


class NotificationSource:
    """Thin wrapper over :class:`inotify_simple.INotify` that hands out raw bytes.

    ``read_into`` fills a caller-owned buffer instead of parsing events so the
    monitor can decode them itself.
    """

    def __init__(self, inotify: INotify | None = None, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("source")
        if inotify is None:
            try:
                inotify = INotify()
            except OSError as exc:
                raise SourceError(f"inotify_init failed: {exc.strerror or exc}") from exc
        self._inotify = inotify
        self._poller = select.poll()
        self._poller.register(self._inotify.fileno(), select.POLLIN)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def fileno(self) -> int:
        return self._inotify.fileno()

    def add_watch(self, path: str, mask: int = WATCH_MASK) -> int:
        try:
            return self._inotify.add_watch(path, mask)
        except OSError as exc:
            raise WatchError(path, _describe_errno(exc)) from exc

    def rm_watch(self, handle: int) -> None:
        if self._closed:
            return
        try:
            self._inotify.rm_watch(handle)
        except OSError as exc:
            # EINVAL: the kernel already dropped the watch (path deleted or unmounted).
            if exc.errno != errno.EINVAL:
                raise SourceError(f"inotify_rm_watch failed for wd {handle}: {exc.strerror or exc}") from exc

    def read_into(self, buffer: bytearray, timeout: float | None = None) -> int | None:
        """Read the next batch into *buffer*.

        Returns the number of bytes read, ``0`` if the source reached end of
        file, or ``None`` when nothing arrived within *timeout* seconds or the
        wait was interrupted by a signal.
        """

        if self._closed:
            raise SourceError("notification source is closed")
        timeout_ms = None if timeout is None else max(int(timeout * 1000), 0)
        try:
            if not self._poller.poll(timeout_ms):
                return None
            return os.readv(self._inotify.fileno(), [buffer])
        except InterruptedError:
            return None
        except OSError as exc:
            raise SourceError(f"read() error: {exc.strerror or exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._poller.unregister(self._inotify.fileno())
        except (KeyError, ValueError):
            pass
        self._inotify.close()
        log_event(
            self.logger,
            level=logging.DEBUG,
            action="source.closed",
            message="inotify file descriptor closed",
        )

    def __enter__(self) -> "NotificationSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _describe_errno(exc: OSError) -> str:
    if exc.errno == errno.ENOSPC:
        return "inotify watch limit reached (fs.inotify.max_user_watches)"
    if exc.errno == errno.ENOENT:
        return "no such file or directory"
    if exc.errno == errno.EACCES:
        return "permission denied"
    return exc.strerror or str(exc)


__all__ = ["NotificationSource", "WATCH_MASK"]
