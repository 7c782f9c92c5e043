"""filemon package exports."""

from .cli import main as cli_main
from .config import MonitorConfig
from .errors import FilemonError
from .models import Event, ExitClassification, ExitKind, WatchedPath
from .monitor import MonitorLoop, MonitorResult, StopFlag

__all__ = [
    "cli_main",
    "Event",
    "ExitClassification",
    "ExitKind",
    "FilemonError",
    "MonitorConfig",
    "MonitorLoop",
    "MonitorResult",
    "StopFlag",
    "WatchedPath",
]
