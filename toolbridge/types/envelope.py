"""Response-envelope helpers.

Every tool call answered by the bridge ends in exactly one
``mcp.types.CallToolResult``. These helpers build the common shapes.
"""

import json
from typing import Any, Dict, Optional

from mcp.types import CallToolResult, ImageContent, TextContent
from pydantic import ValidationError


def create_success_response(text: str, metadata: Optional[Dict[str, Any]] = None) -> CallToolResult:
    """Wrap plain text in a successful envelope."""
    payload: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if metadata is not None:
        payload["_meta"] = metadata
    return CallToolResult.model_validate(payload)


def create_json_response(data: Any) -> CallToolResult:
    """Wrap a structured value as pretty-printed JSON text."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(data, indent=2))]
    )


def create_error_response(message: str) -> CallToolResult:
    """Wrap an error message in a failed envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=message)],
        isError=True
    )


def create_image_response(data: str, mime_type: str) -> CallToolResult:
    """Wrap base64 image data in a successful envelope."""
    return CallToolResult(
        content=[ImageContent(type="image", data=data, mimeType=mime_type)]
    )


def is_envelope(payload: Any) -> bool:
    """Check whether a decoded reply already has the envelope shape.

    A payload counts as an envelope when it is a mapping with a ``content``
    list whose items all declare a ``type`` and the whole mapping validates
    as a ``CallToolResult``.
    """
    if not isinstance(payload, dict):
        return False
    content = payload.get("content")
    if not isinstance(content, list):
        return False
    if not all(isinstance(item, dict) and "type" in item for item in content):
        return False
    try:
        CallToolResult.model_validate(payload)
    except ValidationError:
        return False
    return True
