"""Type definitions for the toolbridge package."""

from .envelope import (
    create_error_response,
    create_image_response,
    create_json_response,
    create_success_response,
    is_envelope,
)
from .models import (
    ForwardFailure,
    ForwardRequest,
    ForwardResult,
    ForwardSuccess,
    ToolDescriptor,
    ToolHandler,
)

__all__ = [
    "ToolDescriptor",
    "ForwardRequest",
    "ForwardResult",
    "ForwardSuccess",
    "ForwardFailure",
    "ToolHandler",
    "create_success_response",
    "create_json_response",
    "create_error_response",
    "create_image_response",
    "is_envelope",
]
