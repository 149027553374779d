"""Request/response codecs for HTTP re-dispatch.

Two wire formats exist for ``POST /api/tool/{name}``:

- ``DirectBodyCodec``: the arguments are the request body, and the reply is
  either an envelope or a bare payload
- ``JsonRpcCodec``: the arguments travel in a JSON-RPC 2.0 request, and the
  reply is ``{"result": ...}`` or ``{"error": ...}``

A deployment uses one or the other; the codec is fixed when the forwarder is
built.
"""

import itertools
import json
from abc import ABC, abstractmethod
from typing import Any

from mcp.types import CallToolResult

from toolbridge.types.envelope import create_json_response, create_success_response, is_envelope
from toolbridge.types.models import ForwardFailure, ForwardRequest, ForwardResult, ForwardSuccess


class RequestCodec(ABC):
    """Encodes a call into a request body and decodes the parsed reply."""

    name: str = ""

    @abstractmethod
    def encode(self, request: ForwardRequest) -> Any:
        """Build the JSON request body."""
        pass

    @abstractmethod
    def decode(self, request: ForwardRequest, payload: Any) -> ForwardResult:
        """Interpret a successfully parsed JSON reply."""
        pass


class DirectBodyCodec(RequestCodec):
    """Arguments as the body; replies are envelopes or bare payloads."""

    name = "http"

    def encode(self, request: ForwardRequest) -> Any:
        return request.arguments

    def decode(self, request: ForwardRequest, payload: Any) -> ForwardResult:
        if isinstance(payload, dict) and payload.get("isError"):
            return ForwardFailure(json.dumps(payload))
        if is_envelope(payload):
            return ForwardSuccess(CallToolResult.model_validate(payload))
        return ForwardSuccess(create_json_response(payload))


class JsonRpcCodec(RequestCodec):
    """JSON-RPC 2.0 request envelope with monotonically increasing ids."""

    name = "jsonrpc"

    def __init__(self, first_id: int = 1):
        self._ids = itertools.count(first_id)

    def encode(self, request: ForwardRequest) -> Any:
        return {
            "jsonrpc": "2.0",
            "method": request.tool_name,
            "params": request.arguments,
            "id": next(self._ids)
        }

    def decode(self, request: ForwardRequest, payload: Any) -> ForwardResult:
        if not isinstance(payload, dict):
            return ForwardFailure(f"Malformed JSON-RPC response: {json.dumps(payload)}")
        if payload.get("error") is not None:
            return ForwardFailure(json.dumps(payload["error"]))
        if "result" not in payload:
            return ForwardFailure("Malformed JSON-RPC response: missing result and error")

        result = payload["result"]
        if isinstance(result, (dict, list)):
            return ForwardSuccess(create_json_response(result))
        if isinstance(result, str):
            return ForwardSuccess(create_success_response(result))
        return ForwardSuccess(create_success_response(json.dumps(result)))
