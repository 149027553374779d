"""PID file written by a running bridge so it can be signalled."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

from toolbridge.core.settings import PID_FILE_NAME

logger = logging.getLogger(__name__)


class PidFile:
    """Context manager that owns a PID file for the current process.

    On exit the file is removed only if it still holds our PID, so a second
    bridge that overwrote it keeps its own file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.pid = os.getpid()

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(self.pid), encoding="utf-8")
        logger.info("PID file written", extra={"path": str(self.path), "pid": self.pid})

    def remove(self) -> None:
        if read_pid(self.path) != self.pid:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("PID file removed", extra={"path": str(self.path)})

    def __enter__(self) -> "PidFile":
        self.write()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.remove()


def read_pid(path: Union[str, Path]) -> Optional[int]:
    """PID stored in a PID file, or None if missing or not a number."""
    try:
        return int(Path(path).read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


def pid_file_locations(name: str = PID_FILE_NAME) -> Iterable[Path]:
    cwd = Path.cwd()
    yield cwd / name
    yield cwd / "logs" / name
    yield Path("/var/run") / name
    yield Path(tempfile.gettempdir()) / name


def find_pid_file(name: str = PID_FILE_NAME) -> Optional[Path]:
    """Locate a bridge PID file in the usual places."""
    for path in pid_file_locations(name):
        if path.is_file():
            return path
    return None
