"""Common test fixtures for the entire test suite."""

import logging
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from toolbridge.logging_config import LogControl
from toolbridge.mcp.connection import UpstreamConnection
from toolbridge.types import ToolDescriptor, create_success_response


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Fixture to ensure no environment variables affect tests.

    This fixture runs automatically for all tests to ensure a clean environment.
    """
    env_vars = [
        "TOOLBRIDGE_HOST", "TOOLBRIDGE_PORT", "TOOLBRIDGE_FORWARD_MODE",
        "TOOLBRIDGE_ORIGIN_URL", "TOOLBRIDGE_UPSTREAM_URL", "TOOLBRIDGE_UPSTREAM_TRANSPORT",
        "TOOLBRIDGE_UPSTREAM_COMMAND", "TOOLBRIDGE_LOG_ENABLED", "TOOLBRIDGE_LOG_LEVEL",
        "TOOLBRIDGE_LOG_FILE", "TOOLBRIDGE_PID_FILE", "TOOLBRIDGE_CONTROL_FILE"
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handlers that setup_logging adds to the root logger."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def log_control():
    """A LogControl that is closed after the test."""
    control = LogControl()
    yield control
    control.close()


@pytest.fixture
def tool_descriptor():
    """Factory for upstream tool descriptors.

    Example:
        def test_something(tool_descriptor):
            tool = tool_descriptor("exec_command", {"command": {"type": "string"}}, ["command"])
    """
    def _make_descriptor(
        name: str,
        properties: Optional[Dict[str, Any]] = None,
        required: Optional[List[str]] = None,
        description: str = "Test tool"
    ) -> ToolDescriptor:
        schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
        if required:
            schema["required"] = required
        return ToolDescriptor(name=name, description=description, parameter_schema=schema)
    return _make_descriptor


@pytest.fixture
def sample_catalog(tool_descriptor) -> List[ToolDescriptor]:
    """A small upstream catalog."""
    return [
        tool_descriptor(
            "exec_command",
            {
                "command": {"type": "string", "description": "Command to run"},
                "tabId": {"type": "integer", "minimum": 0}
            },
            ["command"]
        ),
        tool_descriptor(
            "repeat",
            {"count": {"type": "integer", "minimum": 1, "default": 5}}
        )
    ]


@pytest.fixture
def mock_connection(sample_catalog):
    """An UpstreamConnection with its MCP side mocked out."""
    connection = AsyncMock(spec=UpstreamConnection)
    connection.list_tools.return_value = sample_catalog
    connection.invoke.return_value = create_success_response("upstream ok")
    return connection


@pytest.fixture
async def origin():
    """A real HTTP origin serving ``POST /api/tool/{name}``.

    Tests set ``origin.reply`` to an async callable ``(name, body) -> web.Response``.
    Every request is recorded in ``origin.requests``.
    """
    requests: List[Dict[str, Any]] = []

    async def default_reply(name: str, body: Any) -> web.Response:
        return web.json_response({"echo": body})

    state = {"reply": default_reply}

    async def handle(request: web.Request) -> web.Response:
        body = await request.json()
        name = request.match_info["name"]
        requests.append({"name": name, "body": body})
        return await state["reply"](name, body)

    app = web.Application()
    app.router.add_post("/api/tool/{name}", handle)
    server = TestServer(app)
    await server.start_server()

    class Origin:
        def __init__(self):
            self.requests = requests

        @property
        def url(self) -> str:
            return str(server.make_url("")).rstrip("/")

        @property
        def reply(self):
            return state["reply"]

        @reply.setter
        def reply(self, fn):
            state["reply"] = fn

    try:
        yield Origin()
    finally:
        await server.close()