"""Process control: PID file and runtime logging reconfiguration."""

from .pidfile import PidFile, find_pid_file, read_pid
from .reload import LoggingReloader, ReconfigureLogging

__all__ = [
    "PidFile",
    "find_pid_file",
    "read_pid",
    "LoggingReloader",
    "ReconfigureLogging",
]
