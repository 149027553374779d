"""Tests for the toggle-logging command."""

import json
import os
import signal
from unittest.mock import patch

import pytest

from toolbridge import toggle_logging


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so the default control file lands in tmp_path."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_requires_an_option(capsys):
    with pytest.raises(SystemExit) as exc_info:
        toggle_logging.parse_arguments([])

    assert exc_info.value.code == 2
    assert "At least one option must be specified" in capsys.readouterr().err


def test_enable_and_disable_conflict():
    with pytest.raises(SystemExit):
        toggle_logging.parse_arguments(["--enable", "--disable"])


def test_enable_writes_control_file_and_signals(workdir, capsys):
    """Test that a change is saved and the running bridge is signalled."""
    (workdir / "toolbridge.pid").write_text("4321")

    with patch("toolbridge.toggle_logging.os.kill") as kill:
        toggle_logging.main(["--enable", "--log-level", "debug", "--log-file", "bridge.log"])

    saved = json.loads((workdir / ".toolbridge-logging.json").read_text())
    assert saved == {"enabled": True, "logFile": "bridge.log", "logLevel": "debug"}
    kill.assert_called_once_with(4321, signal.SIGUSR1)

    out = capsys.readouterr().out
    assert "Logging enabled" in out
    assert "Signal sent to process 4321 to reload configuration" in out


def test_changes_merge_with_existing_file(workdir):
    control_file = workdir / ".toolbridge-logging.json"
    control_file.write_text(json.dumps({"enabled": True, "logFile": "old.log", "logLevel": "error"}))

    with patch("toolbridge.toggle_logging.os.kill"):
        toggle_logging.main(["--disable"])

    assert json.loads(control_file.read_text()) == {"enabled": False, "logFile": "old.log", "logLevel": "error"}


def test_status_only_does_not_write(workdir, capsys):
    toggle_logging.main(["--status"])

    out = capsys.readouterr().out
    assert "- Enabled: false" in out
    assert "- Log file: (none)" in out
    assert "- Log level: info" in out
    assert not (workdir / ".toolbridge-logging.json").exists()


def test_missing_pid_file(workdir, capsys):
    with patch("toolbridge.toggle_logging.find_pid_file", return_value=None):
        toggle_logging.main(["--disable"])

    assert "PID file not found. Is the server running?" in capsys.readouterr().err
    assert (workdir / ".toolbridge-logging.json").exists()


def test_invalid_pid(workdir, capsys):
    pid_file = workdir / "bad.pid"
    pid_file.write_text("abc")

    assert toggle_logging.signal_process(pid_file) is False
    assert "Invalid PID in file" in capsys.readouterr().err


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="SIGUSR1 not available")
def test_signal_error_is_reported(workdir, capsys):
    pid_file = workdir / "toolbridge.pid"
    pid_file.write_text(str(os.getpid()))

    with patch("toolbridge.toggle_logging.os.kill", side_effect=ProcessLookupError("no such process")):
        assert toggle_logging.signal_process(pid_file) is False

    assert "Error signaling process" in capsys.readouterr().err
