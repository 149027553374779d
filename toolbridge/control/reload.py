"""Runtime reconfiguration of logging.

A ``ReconfigureLogging`` message carries a complete new configuration and is
applied in one step. The SIGUSR1 handler is one way to deliver it: on the
signal the control file is read and, if valid, applied.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from toolbridge.logging_config import LogControl, LoggingConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconfigureLogging:
    """Request to replace the live logging configuration."""

    config: LoggingConfig


class LoggingReloader:
    """Applies logging reconfiguration requests to a LogControl.

    Attributes:
        control: The live logging control
        control_file: JSON file read on ``reload``
    """

    def __init__(self, control: LogControl, control_file: Union[str, Path]):
        self.control = control
        self.control_file = Path(control_file)

    def apply(self, message: ReconfigureLogging) -> LoggingConfig:
        """Apply a reconfiguration; returns the previous configuration."""
        previous = self.control.reconfigure(message.config)
        # Logged after the swap so the record follows the new settings
        logger.info("Logging reconfigured", extra={
            "enabled": message.config.enabled,
            "level": message.config.level.value,
            "log_file": message.config.file_path
        })
        return previous

    def read_message(self) -> Optional[ReconfigureLogging]:
        """Read the control file.

        Returns:
            The request, or None if the file is missing or invalid
        """
        if not self.control_file.exists():
            logger.debug("No logging control file at %s", self.control_file)
            return None
        try:
            return ReconfigureLogging(LoggingConfig.from_file(self.control_file))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Error reading logging control file %s: %s", self.control_file, e)
            return None

    def reload(self) -> bool:
        """Apply the control file if it holds a valid configuration."""
        message = self.read_message()
        if message is None:
            return False
        self.apply(message)
        return True

    def install_signal_handler(self, loop: asyncio.AbstractEventLoop) -> bool:
        """Reload on SIGUSR1. Returns False where the platform has no such signal."""
        sigusr1 = getattr(signal, "SIGUSR1", None)
        if sigusr1 is None:
            return False
        try:
            loop.add_signal_handler(sigusr1, self.reload)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning("Cannot install SIGUSR1 handler: %s", e)
            return False
        return True
