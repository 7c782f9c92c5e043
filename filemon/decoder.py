"""Decode raw inotify buffers into :class:`~filemon.models.Event` records.

A buffer holds zero or more records back to back. Each record is a
``struct inotify_event`` header (``wd``, ``mask``, ``cookie``, ``len``)
followed by ``len`` bytes of NUL-padded file name. The kernel never splits a
record across reads, so a buffer that ends inside a record means the reader
and the source disagree on framing.
"""
from __future__ import annotations

import os
import struct
from typing import Iterator

from inotify_simple import flags

from .errors import TruncatedRecord
from .models import Event

_HEADER = struct.Struct("iIII")
HEADER_SIZE = _HEADER.size


def decode_events(buffer: bytes | bytearray | memoryview, length: int | None = None) -> Iterator[Event]:
    """Yield every event stored in the first *length* bytes of *buffer*.

    Raises :class:`TruncatedRecord` when the records do not end exactly at
    *length*. Events are yielded lazily, so records before the damaged one are
    still produced.
    """

    view = memoryview(buffer)
    if length is None:
        length = len(view)
    if length > len(view):
        raise ValueError(f"length {length} exceeds buffer of {len(view)} bytes")

    offset = 0
    while offset < length:
        if offset + HEADER_SIZE > length:
            raise TruncatedRecord(offset, length)
        wd, mask, cookie, name_len = _HEADER.unpack_from(view, offset)
        name_start = offset + HEADER_SIZE
        name_end = name_start + name_len
        if name_end > length:
            raise TruncatedRecord(offset, length)

        name: str | None = None
        if name_len:
            raw = bytes(view[name_start:name_end]).rstrip(b"\0")
            name = os.fsdecode(raw)

        yield Event(handle=wd, mask=mask, cookie=cookie, name=name)
        offset = name_end


def encode_event(
    handle: int,
    mask: int,
    cookie: int = 0,
    name: str | None = None,
    *,
    align: int = HEADER_SIZE,
) -> bytes:
    """Serialize one record in the layout :func:`decode_events` reads.

    The name is NUL-terminated and padded to a multiple of *align*, the way
    the kernel pads it.
    """

    raw = b""
    if name:
        raw = os.fsencode(name) + b"\0"
        remainder = len(raw) % align
        if remainder:
            raw += b"\0" * (align - remainder)
    return _HEADER.pack(handle, mask, cookie, len(raw)) + raw


_MASK_NAMES = (
    (flags.ACCESS, "IN_ACCESS"),
    (flags.ATTRIB, "IN_ATTRIB"),
    (flags.CLOSE_NOWRITE, "IN_CLOSE_NOWRITE"),
    (flags.CLOSE_WRITE, "IN_CLOSE_WRITE"),
    (flags.CREATE, "IN_CREATE"),
    (flags.DELETE, "IN_DELETE"),
    (flags.DELETE_SELF, "IN_DELETE_SELF"),
    (flags.IGNORED, "IN_IGNORED"),
    (flags.ISDIR, "IN_ISDIR"),
    (flags.MODIFY, "IN_MODIFY"),
    (flags.MOVE_SELF, "IN_MOVE_SELF"),
    (flags.MOVED_FROM, "IN_MOVED_FROM"),
    (flags.MOVED_TO, "IN_MOVED_TO"),
    (flags.OPEN, "IN_OPEN"),
    (flags.Q_OVERFLOW, "IN_Q_OVERFLOW"),
    (flags.UNMOUNT, "IN_UNMOUNT"),
)


def describe_mask(mask: int) -> str:
    """Render *mask* as space separated ``IN_*`` names."""

    return " ".join(label for bit, label in _MASK_NAMES if mask & bit)


__all__ = ["HEADER_SIZE", "decode_events", "describe_mask", "encode_event"]
