"""Tests for direct forwarding and forwarder construction."""

import pytest

from toolbridge.core.errors import ConfigError
from toolbridge.forwarding import (
    DirectBodyCodec,
    DirectForwarder,
    Forwarder,
    HttpForwarder,
    JsonRpcCodec,
    create_forwarder,
)
from toolbridge.types import ForwardRequest, create_error_response


@pytest.mark.asyncio
async def test_direct_returns_upstream_result(mock_connection):
    """Test that the upstream result is returned unmodified."""
    forwarder = DirectForwarder(mock_connection)

    result = await forwarder.forward("exec_command", {"command": "ls"})

    assert result is mock_connection.invoke.return_value
    mock_connection.invoke.assert_called_once_with("exec_command", {"command": "ls"})


@pytest.mark.asyncio
async def test_direct_passes_upstream_errors_through(mock_connection):
    upstream_error = create_error_response("upstream said no")
    mock_connection.invoke.return_value = upstream_error

    result = await DirectForwarder(mock_connection).forward("exec_command", {})

    assert result is upstream_error


@pytest.mark.asyncio
async def test_direct_exception_becomes_error(mock_connection):
    mock_connection.invoke.side_effect = ConnectionResetError("session lost")

    result = await DirectForwarder(mock_connection).forward("exec_command", {})

    assert result.isError
    assert result.content[0].text == "Error forwarding request: session lost"


@pytest.mark.asyncio
async def test_forward_contains_strategy_bugs():
    """Test that an exception escaping a strategy is still an envelope."""
    class BrokenForwarder(Forwarder):
        async def forward_request(self, request: ForwardRequest):
            raise KeyError()

    result = await BrokenForwarder().forward("tool", None)

    assert result.isError
    assert result.content[0].text == "Error forwarding request: KeyError"


def test_create_direct_forwarder(mock_connection):
    forwarder = create_forwarder("direct", connection=mock_connection)
    assert isinstance(forwarder, DirectForwarder)
    assert forwarder.mode == "direct"


@pytest.mark.parametrize("mode,codec_type", [("http", DirectBodyCodec), ("jsonrpc", JsonRpcCodec)])
def test_create_http_forwarders(mode, codec_type):
    forwarder = create_forwarder(mode, origin_url="http://localhost:3001", timeout=5)

    assert isinstance(forwarder, HttpForwarder)
    assert isinstance(forwarder.codec, codec_type)
    assert forwarder.mode == mode
    assert forwarder.timeout == 5


def test_create_forwarder_errors(mock_connection):
    with pytest.raises(ConfigError, match="Unknown forward mode"):
        create_forwarder("smoke-signals", origin_url="http://x")
    with pytest.raises(ConfigError):
        create_forwarder("direct")
    with pytest.raises(ConfigError):
        create_forwarder("http", connection=mock_connection)
