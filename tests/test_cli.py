"""Tests for the bridge command-line entry point."""

import asyncio
import os
import signal
from unittest.mock import patch

import pytest

from toolbridge.cli import build_bridge, build_settings, parse_arguments, run
from toolbridge.core.errors import ConfigError, UpstreamConnectionError
from toolbridge.forwarding import DirectForwarder, HttpForwarder
from toolbridge.mcp.bridge import ToolCatalogBridge


@pytest.fixture
def settings_for(tmp_path):
    """Factory for settings that keep process files inside tmp_path."""
    def _make_settings(*argv: str):
        args = parse_arguments([
            "--pid-file", str(tmp_path / "toolbridge.pid"),
            "--control-file", str(tmp_path / "control.json"),
            *argv
        ])
        return build_settings(args, env_file=None)
    return _make_settings


def test_parse_arguments_defaults_to_none():
    """Test that flags not given do not override the environment."""
    args = parse_arguments([])
    assert all(value is None for value in vars(args).values())


def test_parse_arguments():
    args = parse_arguments(["--port", "4000", "--log-level", "DEBUG", "--enable", "--forward-mode", "jsonrpc"])

    assert args.port == 4000
    assert args.log_level == "debug"
    assert args.log_enabled is True
    assert args.forward_mode == "jsonrpc"


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("TOOLBRIDGE_PORT", "4001")
    monkeypatch.setenv("TOOLBRIDGE_HOST", "envhost")

    settings = build_settings(parse_arguments(["--port", "5001"]), env_file=None)

    assert settings.port == 5001
    assert settings.host == "envhost"


def test_upstream_command_selects_stdio(settings_for):
    settings = settings_for("--upstream-command", "node", "--upstream-arg", "server.js")

    assert settings.upstream_transport == "stdio"
    assert settings.upstream_config().target == "node server.js"


@pytest.mark.parametrize("mode,forwarder_type", [("http", HttpForwarder), ("direct", DirectForwarder)])
def test_build_bridge(settings_for, mode, forwarder_type):
    bridge = build_bridge(settings_for("--forward-mode", mode))

    assert isinstance(bridge, ToolCatalogBridge)
    assert isinstance(bridge.forwarder, forwarder_type)
    assert bridge.connection.config.url == "http://localhost:3001/sse"


def test_build_bridge_invalid_upstream(settings_for):
    settings = settings_for()
    settings.upstream_transport = "stdio"

    with pytest.raises(ConfigError):
        build_bridge(settings)


@pytest.mark.asyncio
async def test_run_serves_until_client_disconnects(settings_for, mock_connection, log_control, tmp_path):
    """Test a full run: start, serve, shut down, clean up."""
    settings = settings_for("--forward-mode", "direct")
    seen = {}

    async def serve(server):
        seen["tools"] = [tool.name for tool in server.list_tools()]
        seen["pid_file_exists"] = (tmp_path / "toolbridge.pid").exists()

    with patch("toolbridge.cli.UpstreamConnection", return_value=mock_connection):
        exit_code = await run(settings, log_control, serve=serve)

    assert exit_code == 0
    assert seen == {"tools": ["exec_command", "repeat"], "pid_file_exists": True}
    assert not (tmp_path / "toolbridge.pid").exists()
    mock_connection.close.assert_called_once()


@pytest.mark.asyncio
async def test_run_stops_on_signal(settings_for, mock_connection, log_control):
    """Test that a stop signal shuts the bridge down cleanly."""
    settings = settings_for("--forward-mode", "direct")

    async def serve(server):
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.Event().wait()

    with patch("toolbridge.cli.UpstreamConnection", return_value=mock_connection):
        exit_code = await asyncio.wait_for(run(settings, log_control, serve=serve), timeout=10)

    assert exit_code == 0
    mock_connection.close.assert_called_once()


@pytest.mark.asyncio
async def test_run_exits_1_when_upstream_unreachable(settings_for, mock_connection, log_control, tmp_path):
    settings = settings_for("--forward-mode", "direct")
    mock_connection.connect.side_effect = UpstreamConnectionError("Failed to connect to MCP server at x: refused")

    async def serve(server):
        pytest.fail("should not serve")

    with patch("toolbridge.cli.UpstreamConnection", return_value=mock_connection):
        exit_code = await run(settings, log_control, serve=serve)

    assert exit_code == 1
    assert not (tmp_path / "toolbridge.pid").exists()


@pytest.mark.asyncio
async def test_run_exits_1_on_bad_configuration(settings_for, log_control):
    settings = settings_for()
    settings.upstream_transport = "stdio"

    assert await run(settings, log_control) == 1
