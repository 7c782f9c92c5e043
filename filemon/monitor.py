"""Monitor loop: read notifications, decode them and dispatch qualifying events."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from .config import MonitorConfig
from .decoder import decode_events, describe_mask
from .errors import CommandTooLong, FilemonError, UnknownHandle
from .logger import get_logger, log_event
from .models import Event
from .policy import EventPolicy
from .runner import CommandRunner
from .watch_table import WatchTable

LOGGER_NAME = "monitor"


class MonitorSource(Protocol):
    """Operations the loop needs from a notification source."""

    closed: bool

    def add_watch(self, path: str) -> int: ...

    def rm_watch(self, handle: int) -> None: ...

    def read_into(self, buffer: bytearray, timeout: float | None = None) -> int | None: ...

    def close(self) -> None: ...


class StopFlag:
    """Cooperative shutdown request, safe to set from a signal handler."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


class MonitorState(Enum):
    RUNNING = auto()
    STOPPING = auto()


@dataclass(slots=True)
class MonitorResult:
    """Summary returned once the loop has stopped."""

    success: bool
    batches: int = 0
    events: int = 0
    dispatched: int = 0
    skipped: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "batches": self.batches,
            "events": self.events,
            "dispatched": self.dispatched,
            "skipped": self.skipped,
            "error": self.error,
        }


class MonitorLoop:
    """Single-threaded event-to-command dispatcher.

    Batches are read into a buffer owned by the loop, decoded in order and
    each qualifying event runs the configured command to completion before
    the next event is looked at. The loop ends when *stop_flag* is set or on
    the first fatal error; either way every watch is released and the source
    closed.
    """

    def __init__(
        self,
        config: MonitorConfig,
        source: MonitorSource,
        *,
        stop_flag: StopFlag | None = None,
        policy: EventPolicy | None = None,
        runner: CommandRunner | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.stop_flag = stop_flag or StopFlag()
        self.policy = policy or EventPolicy()
        self.runner = runner or CommandRunner(
            shell=config.shell,
            max_length=config.max_command_length,
        )
        self.logger = logger or get_logger(LOGGER_NAME)
        self.table = WatchTable(source, logger=self.logger)
        self.state = MonitorState.RUNNING
        self._buffer = bytearray(config.buffer_size)
        self._started = False
        self._finished = False
        self._result = MonitorResult(success=True)

    def start(self) -> None:
        """Register a watch for every configured path."""

        if self._started:
            return
        for path in self.config.paths:
            self.table.register(path)
        self._started = True
        log_event(
            self.logger,
            level=logging.INFO,
            action="monitor.ready",
            message="ready!",
            extra={"paths": self.table.paths(), "command": self.config.command},
        )

    def run(self) -> MonitorResult:
        result = self._result
        try:
            self.start()
            while self.state is MonitorState.RUNNING:
                if self._stop_requested():
                    break
                num_bytes = self.source.read_into(self._buffer, self.config.poll_interval)
                if num_bytes is None:
                    continue
                if num_bytes == 0:
                    self._fail("read() from inotify fd returned 0!")
                    break
                result.batches += 1
                log_event(
                    self.logger,
                    level=logging.DEBUG,
                    action="monitor.read",
                    message=f"read {num_bytes} bytes from inotify fd",
                    extra={"bytes": num_bytes},
                )
                self._process_batch(num_bytes)
        except FilemonError as exc:
            self._fail(str(exc), error=exc)
        finally:
            self.shutdown()
        return result

    def shutdown(self) -> None:
        """Release watches and close the source; only the first call acts."""

        if self._finished:
            return
        self._finished = True
        self.state = MonitorState.STOPPING
        log_event(
            self.logger,
            level=logging.INFO,
            action="monitor.stopping",
            message="stopping monitor",
            extra=self._result.to_dict(),
        )
        try:
            self.table.release_all()
        finally:
            self.source.close()

    def _process_batch(self, num_bytes: int) -> None:
        for event in decode_events(self._buffer, num_bytes):
            self._result.events += 1
            self._dispatch(event)
            if self._stop_requested():
                break

    def _dispatch(self, event: Event) -> None:
        if event.is_overflow:
            self._result.skipped += 1
            log_event(
                self.logger,
                level=logging.WARNING,
                action="event.overflow",
                message="event queue overflowed, some events were dropped",
                extra={"wd": event.handle, "mask": event.mask},
            )
            return

        try:
            directory = self.table.resolve(event.handle)
        except UnknownHandle:
            log_event(
                self.logger,
                level=logging.ERROR,
                action="event.unresolved",
                message=f"cannot find directory name for wd {event.handle}",
                extra={"wd": event.handle, "name": event.name, "raw_mask": event.mask},
            )
            raise
        log_event(
            self.logger,
            level=logging.INFO,
            action="event.decoded",
            message=f"event [dir_name='{directory}' wd={event.handle}]",
            extra={
                "dir": directory,
                "wd": event.handle,
                "cookie": event.cookie,
                "name": event.name,
                "mask": describe_mask(event.mask),
                "raw_mask": event.mask,
            },
        )

        decision = self.policy.decide(event)
        if not decision.qualifies:
            self._result.skipped += 1
            log_event(
                self.logger,
                level=logging.DEBUG,
                action="event.skipped",
                message=f"ignoring event for {event.name or '*no file name*'}",
                extra={"name": event.name, **decision.to_dict()},
            )
            return

        try:
            self.runner.run(self.config.command, directory, event.name)
        except CommandTooLong as exc:
            self._result.skipped += 1
            log_event(
                self.logger,
                level=logging.ERROR,
                action="command.too_long",
                message="Command buffer overflow",
                extra={"dir": directory, "name": event.name, "length": exc.length, "limit": exc.limit},
            )
            return
        self._result.dispatched += 1

    def _stop_requested(self) -> bool:
        if self.stop_flag.is_set():
            self.state = MonitorState.STOPPING
            return True
        return False

    def _fail(self, message: str, *, error: Exception | None = None) -> None:
        self.state = MonitorState.STOPPING
        self._result.success = False
        self._result.error = message
        extra: dict[str, object] = {}
        if error is not None:
            extra["error_type"] = type(error).__name__
            extra.update(_error_context(error))
        log_event(
            self.logger,
            level=logging.ERROR,
            action="monitor.error",
            message=message,
            extra=extra,
        )


def _error_context(error: Exception) -> dict[str, object]:
    context: dict[str, object] = {}
    for attribute, key in (("path", "path"), ("handle", "wd"), ("offset", "offset"), ("length", "length")):
        value = getattr(error, attribute, None)
        if value is not None:
            context[key] = value
    return context


__all__ = ["MonitorLoop", "MonitorResult", "MonitorSource", "MonitorState", "StopFlag"]
