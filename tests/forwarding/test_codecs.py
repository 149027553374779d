"""Tests for the HTTP request codecs."""

import json

import pytest

from toolbridge.forwarding.codecs import DirectBodyCodec, JsonRpcCodec
from toolbridge.types import ForwardFailure, ForwardRequest, ForwardSuccess


@pytest.fixture
def request_():
    return ForwardRequest(tool_name="exec_command", arguments={"command": "ls"})


def test_direct_body_encode(request_):
    assert DirectBodyCodec().encode(request_) == {"command": "ls"}


def test_direct_body_envelope_passthrough(request_):
    payload = {"content": [{"type": "text", "text": "hello"}]}
    result = DirectBodyCodec().decode(request_, payload)

    assert isinstance(result, ForwardSuccess)
    assert result.envelope.content[0].text == "hello"
    assert not result.envelope.isError


def test_direct_body_is_error_becomes_failure(request_):
    payload = {"content": [{"type": "text", "text": "nope"}], "isError": True}
    result = DirectBodyCodec().decode(request_, payload)

    assert isinstance(result, ForwardFailure)
    assert json.loads(result.message) == payload


@pytest.mark.parametrize("payload", [{"a": 1}, [1, 2], 42, "text", None, {"content": "not a list"}])
def test_direct_body_bare_payload_is_wrapped(request_, payload):
    result = DirectBodyCodec().decode(request_, payload)

    assert isinstance(result, ForwardSuccess)
    assert json.loads(result.envelope.content[0].text) == payload


def test_jsonrpc_encode_uses_increasing_ids(request_):
    codec = JsonRpcCodec()
    first = codec.encode(request_)
    second = codec.encode(request_)

    assert first == {"jsonrpc": "2.0", "method": "exec_command", "params": {"command": "ls"}, "id": 1}
    assert second["id"] == 2


@pytest.mark.parametrize("result,text", [
    ({"a": 1}, json.dumps({"a": 1}, indent=2)),
    ([1, 2], json.dumps([1, 2], indent=2)),
    ("done", "done"),
    (42, "42"),
    (True, "true"),
    (None, "null"),
])
def test_jsonrpc_result(request_, result, text):
    decoded = JsonRpcCodec().decode(request_, {"jsonrpc": "2.0", "id": 1, "result": result})

    assert isinstance(decoded, ForwardSuccess)
    assert decoded.envelope.content[0].text == text


def test_jsonrpc_error(request_):
    error = {"code": -32601, "message": "Method not found"}
    decoded = JsonRpcCodec().decode(request_, {"jsonrpc": "2.0", "id": 1, "error": error})

    assert isinstance(decoded, ForwardFailure)
    assert json.loads(decoded.message) == error


@pytest.mark.parametrize("payload", [{"jsonrpc": "2.0", "id": 1}, [1], "text"])
def test_jsonrpc_malformed(request_, payload):
    decoded = JsonRpcCodec().decode(request_, payload)

    assert isinstance(decoded, ForwardFailure)
    assert decoded.message.startswith("Malformed JSON-RPC response")
