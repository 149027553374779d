"""Change the logging configuration of a running bridge.

Updates the logging control file and signals the bridge (SIGUSR1) to reload
it. Usage::

    toolbridge-toggle-logging --enable --log-level debug --log-file bridge.log
    toolbridge-toggle-logging --status
"""

import argparse
import json
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from toolbridge.control.pidfile import find_pid_file, read_pid
from toolbridge.core.settings import CONTROL_FILE_NAME, PID_FILE_NAME
from toolbridge.logging_config import LoggingConfig, LogLevel


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Toggle logging of a running toolbridge process")
    toggle = parser.add_mutually_exclusive_group()
    toggle.add_argument("--enable", action="store_true", default=None, help="Enable logging")
    toggle.add_argument("--disable", action="store_true", default=None, help="Disable logging")
    parser.add_argument("--log-file", type=str, help="Set log file path")
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=[level.value for level in LogLevel],
        help="Set log level"
    )
    parser.add_argument("--status", action="store_true", default=None, help="Show current logging status")
    parser.add_argument("--control-file", type=str, default=None, help=argparse.SUPPRESS)
    parser.add_argument("--pid-file", type=str, default=None, help=argparse.SUPPRESS)

    args = parser.parse_args(argv)
    if all(getattr(args, name) is None for name in ("enable", "disable", "log_file", "log_level", "status")):
        parser.error("At least one option must be specified")
    return args


def read_config(path: Path) -> LoggingConfig:
    """Current control file contents, or the defaults."""
    if path.exists():
        try:
            return LoggingConfig.from_file(path)
        except (OSError, ValueError, ValidationError) as e:
            print(f"Error reading config file: {e}", file=sys.stderr)
    return LoggingConfig()


def write_config(path: Path, config: LoggingConfig) -> bool:
    try:
        path.write_text(json.dumps(config.to_file_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        print(f"Error writing config file: {e}", file=sys.stderr)
        return False
    print(f"Configuration saved to {path}")
    return True


def signal_process(pid_file: Optional[Path]) -> bool:
    """Ask the bridge owning ``pid_file`` to reload its logging configuration."""
    if pid_file is None or not pid_file.exists():
        print("PID file not found. Is the server running?", file=sys.stderr)
        return False

    pid = read_pid(pid_file)
    if pid is None:
        print("Invalid PID in file", file=sys.stderr)
        return False

    try:
        os.kill(pid, signal.SIGUSR1)
    except (OSError, AttributeError) as e:
        print(f"Error signaling process: {e}", file=sys.stderr)
        return False
    print(f"Signal sent to process {pid} to reload configuration")
    return True


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_arguments(argv)
    control_file = Path(args.control_file) if args.control_file else Path.cwd() / CONTROL_FILE_NAME
    config = read_config(control_file)
    changes = {}

    if args.enable:
        changes["enabled"] = True
        print("Logging enabled")
    if args.disable:
        changes["enabled"] = False
        print("Logging disabled")
    if args.log_file is not None:
        changes["file_path"] = args.log_file or None
        print(f"Log file set to: {args.log_file}")
    if args.log_level is not None:
        changes["level"] = LogLevel(args.log_level)
        print(f"Log level set to: {args.log_level}")

    if changes:
        config = config.model_copy(update=changes)

    if args.status:
        print("Current logging configuration:")
        print(f"- Enabled: {str(config.enabled).lower()}")
        print(f"- Log file: {config.file_path or '(none)'}")
        print(f"- Log level: {config.level.value}")

    if changes and write_config(control_file, config):
        pid_file = Path(args.pid_file) if args.pid_file else find_pid_file(PID_FILE_NAME)
        signal_process(pid_file)


if __name__ == "__main__":
    main()
