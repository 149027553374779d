"""Command-line entry point for the bridge.

Connects to the main MCP server, republishes its tools over stdio and runs
until SIGINT/SIGTERM or until the stdio client goes away. SIGUSR1 reloads the
logging control file.
"""

import argparse
import asyncio
import logging
import signal
import sys
import time
from typing import Awaitable, Callable, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from toolbridge.control.pidfile import PidFile
from toolbridge.control.reload import LoggingReloader
from toolbridge.core.errors import ConfigError, RegistrationError, UpstreamConnectionError
from toolbridge.core.settings import BridgeSettings
from toolbridge.forwarding.factory import FORWARD_MODES, create_forwarder
from toolbridge.logging_config import LogControl, LogLevel, setup_logging
from toolbridge.mcp.bridge import ToolCatalogBridge
from toolbridge.mcp.connection import UpstreamConnection
from toolbridge.mcp.server import ToolServer

logger = logging.getLogger(__name__)

ServeFn = Callable[[ToolServer], Awaitable[None]]


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Every option defaults to None so that only flags actually given override
    the environment.
    """
    parser = argparse.ArgumentParser(description="Expose an MCP server's tools through a forwarding bridge")
    parser.add_argument("--host", type=str, help="Host of the main MCP server")
    parser.add_argument("--port", "-p", type=int, help="Port of the main MCP server")
    parser.add_argument("--log-file", type=str, help="Path to log file")
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=[level.value for level in LogLevel],
        help="Log level"
    )
    parser.add_argument(
        "--log-enabled", "--enable",
        dest="log_enabled",
        action="store_const",
        const=True,
        help="Enable logging"
    )
    parser.add_argument("--forward-mode", choices=FORWARD_MODES, help="How tool calls are forwarded")
    parser.add_argument("--origin-url", type=str, help="HTTP origin for forwarded calls")
    parser.add_argument("--upstream-url", type=str, help="SSE URL of the main MCP server")
    parser.add_argument("--upstream-command", type=str, help="Spawn the upstream server over stdio")
    parser.add_argument(
        "--upstream-arg",
        dest="upstream_args",
        action="append",
        help="Argument for --upstream-command (repeatable)"
    )
    parser.add_argument("--pid-file", type=str, help="Where to write the PID file")
    parser.add_argument("--control-file", type=str, help="Logging control file read on SIGUSR1")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, env_file: Optional[str] = ".env") -> BridgeSettings:
    """Merge command line flags over environment settings.

    Raises:
        ValidationError: If a value is invalid
    """
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    if "upstream_command" in overrides:
        overrides["upstream_transport"] = "stdio"
    return BridgeSettings(env_file=env_file, **overrides)


def build_bridge(settings: BridgeSettings) -> ToolCatalogBridge:
    """Wire the upstream connection, outward server and forwarder together.

    Raises:
        ConfigError: If the settings do not describe a usable bridge
    """
    connection = UpstreamConnection(settings.upstream_config())
    server = ToolServer(settings.server_name, drain_timeout=settings.drain_timeout)
    forwarder = create_forwarder(
        settings.forward_mode,
        connection=connection,
        origin_url=settings.resolved_origin_url,
        timeout=settings.http_timeout
    )
    return ToolCatalogBridge(connection, server, forwarder)


async def serve_stdio(server: ToolServer) -> None:
    await server.serve_stdio()


def _install_stop_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> List[int]:
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning("Cannot install handler for %s: %s", sig, e)
            continue
        installed.append(sig)
    return installed


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop, signals: List[int]) -> None:
    for sig in signals:
        loop.remove_signal_handler(sig)


async def serve_until_stopped(
    bridge: ToolCatalogBridge,
    reloader: LoggingReloader,
    serve: ServeFn = serve_stdio
) -> None:
    """Serve the outward side until a stop signal arrives or serving ends."""
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    signals = _install_stop_handlers(loop, stop)
    if reloader.install_signal_handler(loop):
        signals.append(signal.SIGUSR1)

    serve_task = asyncio.create_task(serve(bridge.server))
    stop_task = asyncio.create_task(stop.wait())
    try:
        await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop_task.cancel()
        _remove_signal_handlers(loop, signals)

    if stop.is_set():
        logger.info("Received shutdown signal")
    elif serve_task.exception() is not None:
        logger.error("Outward transport failed: %s", serve_task.exception())
    else:
        logger.info("Outward client disconnected")

    # Closing the outward server cancels its connection task
    await bridge.close()
    if not serve_task.done():
        serve_task.cancel()
        await asyncio.wait({serve_task}, timeout=ToolServer.CANCEL_TIMEOUT)


async def run(
    settings: BridgeSettings,
    control: Optional[LogControl] = None,
    serve: ServeFn = serve_stdio
) -> int:
    """Run one bridge process.

    Returns:
        Exit code: 0 on normal shutdown, 1 if startup failed
    """
    start_time = time.time()
    control = setup_logging(settings.logging_config(), control)
    pid_file = PidFile(settings.pid_file)
    try:
        pid_file.write()
    except OSError as e:
        logger.error("Failed to write PID file %s: %s", settings.pid_file, e)

    try:
        try:
            bridge = build_bridge(settings)
        except ConfigError as e:
            logger.error("Invalid configuration: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            return 1

        try:
            await bridge.start()
        except (UpstreamConnectionError, RegistrationError) as e:
            logger.error("Failed to start bridge: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            await bridge.close()
            return 1

        reloader = LoggingReloader(control, settings.control_file)
        await serve_until_stopped(bridge, reloader, serve)
        logger.info("Bridge stopped", extra={
            "duration_ms": int((time.time() - start_time) * 1000)
        })
        return 0
    finally:
        pid_file.remove()
        control.close()


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = parse_arguments(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
