"""Logging configuration for the bridge.

Logging is switched on and off, re-levelled and redirected to another file
while the bridge is running. The live configuration is an immutable
``LoggingConfig`` held by ``LogControl``; reconfiguration swaps the whole
object under a lock, and every log record is filtered against a single
snapshot, so concurrent log calls never see a half-applied change.

Console output goes to stderr because stdout carries the stdio transport.
"""

import json
import logging
import logging.handlers
import sys
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LogLevel(str, Enum):
    """Verbosity levels understood by the CLI and the control file."""

    NONE = "none"
    ERROR = "error"
    INFO = "info"
    DEBUG = "debug"

    @property
    def threshold(self) -> int:
        """Minimum stdlib level that passes at this verbosity."""
        return {
            LogLevel.NONE: logging.CRITICAL + 1,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]

    @classmethod
    def parse(cls, value: Union[str, "LogLevel", None]) -> "LogLevel":
        """Parse a level name, falling back to INFO for unknown values."""
        if isinstance(value, LogLevel):
            return value
        if value is None:
            return cls.INFO
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INFO


class LoggingConfig(BaseModel):
    """Process-wide logging configuration.

    Attributes:
        enabled: Whether any log output is produced
        level: Verbosity threshold
        file_path: Optional log file, in addition to stderr
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = False
    level: LogLevel = Field(LogLevel.INFO, alias="logLevel")
    file_path: Optional[str] = Field(None, alias="logFile")

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, v: Any) -> LogLevel:
        return LogLevel.parse(v)

    @field_validator("file_path", mode="before")
    @classmethod
    def _empty_path_is_none(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    def to_file_dict(self) -> Dict[str, Any]:
        """Representation written to the control file."""
        return {
            "enabled": self.enabled,
            "logFile": self.file_path or "",
            "logLevel": self.level.value,
        }

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LoggingConfig":
        """Read a control file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the content is not a valid configuration
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("logging configuration must be a JSON object")
        return cls.model_validate(data)


class LogControl:
    """Holds the live logging configuration and the file handler it implies."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        self._lock = threading.Lock()
        self._config = config or LoggingConfig()
        self._file_handler: Optional[logging.Handler] = None
        self._logger: Optional[logging.Logger] = None
        self._formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    def snapshot(self) -> LoggingConfig:
        """Current configuration. The returned object never changes."""
        return self._config

    def attach(self, logger: logging.Logger) -> None:
        """Bind to the logger that receives the file handler."""
        with self._lock:
            self._logger = logger
            self._swap_file_handler(self._config)

    def reconfigure(self, config: LoggingConfig) -> LoggingConfig:
        """Atomically replace the configuration; returns the previous one."""
        with self._lock:
            previous = self._config
            if (previous.enabled, previous.file_path) != (config.enabled, config.file_path):
                self._swap_file_handler(config)
            self._config = config
        return previous

    def allows(self, record: logging.LogRecord) -> bool:
        config = self._config
        return config.enabled and record.levelno >= config.level.threshold

    def close(self) -> None:
        """Close the log file, if any."""
        with self._lock:
            self._remove_file_handler()

    def _remove_file_handler(self) -> None:
        if self._file_handler is None:
            return
        if self._logger is not None:
            self._logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def _swap_file_handler(self, config: LoggingConfig) -> None:
        self._remove_file_handler()
        if self._logger is None or not (config.enabled and config.file_path):
            return
        try:
            path = Path(config.file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                path,
                maxBytes=10_000_000,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
        except OSError as e:
            print(f"Failed to initialize log file {config.file_path}: {e}", file=sys.stderr)
            return
        handler.setFormatter(self._formatter)
        handler.addFilter(LogControlFilter(self))
        self._logger.addHandler(handler)
        self._file_handler = handler


class LogControlFilter(logging.Filter):
    """Drops records the current configuration does not allow."""

    def __init__(self, control: LogControl):
        super().__init__()
        self.control = control

    def filter(self, record: logging.LogRecord) -> bool:
        return self.control.allows(record)


def setup_logging(
    config: Optional[LoggingConfig] = None,
    control: Optional[LogControl] = None
) -> LogControl:
    """Configure logging for the bridge.

    Args:
        config: Initial configuration. Defaults to disabled logging.
        control: Existing control to reuse (mostly for tests)

    Returns:
        The LogControl that owns the live configuration
    """
    control = control or LogControl()
    if config is not None:
        control.reconfigure(config)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Replace any console handler from a previous call
    for handler in list(root_logger.handlers):
        if getattr(handler, "_toolbridge_console", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler.addFilter(LogControlFilter(control))
    console_handler._toolbridge_console = True
    root_logger.addHandler(console_handler)

    control.attach(root_logger)

    snapshot = control.snapshot()
    if snapshot.level is not LogLevel.DEBUG:
        for logger_name in ['asyncio', 'aiohttp', 'httpx', 'httpcore', 'sse_starlette']:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging initialized", extra={
        "level": snapshot.level.value,
        "log_file": snapshot.file_path
    })
    return control
