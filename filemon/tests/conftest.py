from __future__ import annotations

import logging
from typing import Callable, Iterable

import pytest

from filemon.logger import LOGGER_NAME


class FakeSource:
    """Scripted notification source.

    Each item of *batches* is served by one ``read_into`` call: ``bytes`` are
    copied into the buffer, ``None`` simulates an interrupted read. Once the
    script is exhausted the source reports end of file.
    """

    def __init__(
        self,
        batches: Iterable[bytes | None] = (),
        *,
        after_read: Callable[[int], None] | None = None,
    ) -> None:
        self.batches = list(batches)
        self.after_read = after_read
        self.closed = False
        self.close_calls = 0
        self.reads = 0
        self.watches: dict[str, int] = {}
        self.removed: list[int] = []
        self._next_handle = 1

    def add_watch(self, path: str) -> int:
        if path not in self.watches:
            self.watches[path] = self._next_handle
            self._next_handle += 1
        return self.watches[path]

    def rm_watch(self, handle: int) -> None:
        self.removed.append(handle)

    def read_into(self, buffer: bytearray, timeout: float | None = None) -> int | None:
        index = self.reads
        self.reads += 1
        if not self.batches:
            return 0
        item = self.batches.pop(0)
        if self.after_read:
            self.after_read(index)
        if item is None:
            return None
        buffer[: len(item)] = item
        return len(item)

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1


@pytest.fixture()
def fake_source_factory():
    return FakeSource


@pytest.fixture(autouse=True)
def _quiet_logger():
    logger = logging.getLogger(LOGGER_NAME)
    previous = list(logger.handlers)
    for handler in previous:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in previous:
        logger.addHandler(handler)
