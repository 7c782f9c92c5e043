"""Structured logging utilities for filemon."""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, SysLogHandler
from pathlib import Path
from typing import Any

LOGGER_NAME = "filemon"
SYSLOG_IDENT = "filemon"

_LOG_FORMAT = "%(message)s"
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5
_SYSLOG_ADDRESS = "/dev/log"


def configure_logging(
    log_path: Path | None = None,
    *,
    level: int = logging.INFO,
    syslog: bool = False,
    max_bytes: int = _MAX_BYTES,
    backup_count: int = _BACKUP_COUNT,
) -> logging.Logger:
    """Configure and return the ``filemon`` logger.

    Output goes to a rotating file when *log_path* is given and to stderr
    otherwise. With *syslog* set, records are also forwarded to the local
    syslog daemon. Calling this again replaces the previous handlers.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
                errors="backslashreplace",
            )
        )
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    syslog_error: OSError | None = None
    if syslog:
        try:
            handlers.append(_syslog_handler())
        except OSError as exc:
            syslog_error = exc

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)

    if syslog_error is not None:
        log_event(
            logger,
            level=logging.WARNING,
            action="logging.syslog_unavailable",
            message=f"cannot connect to syslog at {_SYSLOG_ADDRESS}",
            extra={"error": repr(syslog_error)},
        )
    return logger


def _syslog_handler() -> logging.Handler:
    handler = SysLogHandler(address=_SYSLOG_ADDRESS)
    handler.ident = f"{SYSLOG_IDENT}: "
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger or one of its children."""

    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_event(
    logger: logging.Logger,
    *,
    level: int,
    action: str,
    message: str,
    extra: dict[str, Any] | None = None,
) -> None:
    """Emit one JSON object describing *action*."""

    if not logger.isEnabledFor(level):
        return

    payload: dict[str, Any] = {
        "ts": _utcnow_iso(),
        "level": logging.getLevelName(level),
        "action": action,
        "message": message,
    }
    if extra:
        payload.update(extra)

    line = json.dumps(payload, ensure_ascii=False, default=str)
    # Undecodable file names carry lone surrogates; emit them as JSON escapes.
    line = line.encode("utf-8", "backslashreplace").decode("utf-8")
    logger.log(level, line)


def _utcnow_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger", "log_event"]
