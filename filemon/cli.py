"""Command line interface for filemon."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import DEFAULT_POLL_INTERVAL, build_config
from .errors import ConfigError, FilemonError
from .logger import configure_logging, log_event
from .monitor import MonitorLoop, StopFlag
from .source import NotificationSource

DESCRIPTION = (
    "Monitors one or more files or directories specified as parameters; when a file "
    "event (IN_CLOSE_WRITE or IN_MOVED_TO) is detected, executes an action on it."
)
EPILOG = 'Example: filemon -d /tmp/ -d /srv/incoming -c "ls -l"'

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.directories or args.command is None:
        parser.print_help(sys.stderr)
        return 1

    level = logging.DEBUG if args.verbose else getattr(logging, args.log_level)
    logger = configure_logging(args.log_file, level=level, syslog=args.syslog)

    try:
        config = build_config(args.directories, args.command, poll_interval=args.poll_interval)
    except ConfigError as exc:
        log_event(logger, level=logging.ERROR, action="config.invalid", message=str(exc))
        print(f"filemon: {exc}", file=sys.stderr)
        return 1

    log_event(
        logger,
        level=logging.INFO,
        action="config.loaded",
        message=f"command: {config.command}",
        extra={"command": config.command, "paths": config.paths, "count": len(config.paths)},
    )

    stop_flag = StopFlag()
    try:
        with _stop_on_signals(stop_flag):
            source = NotificationSource()
            result = MonitorLoop(config, source, stop_flag=stop_flag).run()
    except FilemonError as exc:
        log_event(logger, level=logging.ERROR, action="monitor.error", message=str(exc))
        return 1

    log_event(
        logger,
        level=logging.INFO if result.success else logging.ERROR,
        action="monitor.finished",
        message="monitor stopped" if result.success else f"monitor failed: {result.error}",
        extra=result.to_dict(),
    )
    return 0 if result.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="filemon", description=DESCRIPTION, epilog=EPILOG)
    parser.add_argument(
        "-d",
        "--directory",
        dest="directories",
        action="append",
        default=[],
        metavar="PATH",
        help="File or directory to monitor (repeatable)",
    )
    parser.add_argument("-c", "--command", help="Command to run; the file path is appended")
    parser.add_argument("--log-file", type=Path, help="Write logs to a rotating file instead of stderr")
    parser.add_argument("--syslog", action="store_true", help="Also send logs to the local syslog daemon")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Shorthand for --log-level DEBUG")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help="Seconds between checks for a shutdown request while idle",
    )
    return parser


@contextmanager
def _stop_on_signals(stop_flag: StopFlag) -> Iterator[None]:
    """Set *stop_flag* on SIGINT/SIGTERM while the block runs."""

    def _handle_signal(signum: int, frame: object) -> None:
        stop_flag.set()

    previous = {signum: signal.signal(signum, _handle_signal) for signum in _STOP_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
