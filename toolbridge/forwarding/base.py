"""Base class for call forwarding strategies.

A forwarder takes one validated tool call and produces exactly one envelope.
``forward`` is the boundary: whatever happens underneath (transport errors,
remote errors, malformed replies, bugs in a strategy) ends as an envelope
and is never raised to the outward transport.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from mcp.types import CallToolResult

from toolbridge.types.models import ForwardFailure, ForwardRequest, ForwardResult
from toolbridge.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Readable cause for an exception, unwrapping exception groups."""
    while isinstance(error, BaseExceptionGroup) and error.exceptions:
        error = error.exceptions[0]
    return str(error) or type(error).__name__


def forwarding_failure(error: BaseException) -> ForwardFailure:
    return ForwardFailure(f"Error forwarding request: {describe_error(error)}")


class Forwarder(ABC):
    """Forwards tool calls to wherever they are really executed.

    Forwarders hold no per-call state, so one instance serves any number of
    concurrent calls.
    """

    mode: str = ""

    async def open(self) -> None:
        """Acquire resources needed before the first call."""

    async def close(self) -> None:
        """Release resources. Safe to call more than once."""

    async def forward(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> CallToolResult:
        """Forward one call and normalize the outcome into an envelope."""
        request = ForwardRequest(tool_name=tool_name, arguments=dict(arguments or {}))
        try:
            result = await self.forward_request(request)
        except Exception as e:
            logger.error("Error forwarding %s: %s", tool_name, sanitize_log_message(describe_error(e)))
            result = forwarding_failure(e)
        return result.to_envelope()

    @abstractmethod
    async def forward_request(self, request: ForwardRequest) -> ForwardResult:
        """Transmit one call and decode the reply.

        Args:
            request: The call to forward

        Returns:
            ForwardSuccess or ForwardFailure
        """
        pass
