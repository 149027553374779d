"""Direct pass-through forwarding over the upstream MCP session."""

import logging
import time

from toolbridge.forwarding.base import Forwarder, describe_error, forwarding_failure
from toolbridge.mcp.connection import UpstreamConnection
from toolbridge.types.models import ForwardRequest, ForwardResult, ForwardSuccess
from toolbridge.utils.log_utils import redact_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)


class DirectForwarder(Forwarder):
    """Invokes the tool on the still-open upstream connection.

    The upstream already answers in envelope shape, so its result is returned
    unmodified, including results that carry ``isError``.
    """

    mode = "direct"

    def __init__(self, connection: UpstreamConnection):
        self.connection = connection

    async def forward_request(self, request: ForwardRequest) -> ForwardResult:
        start_time = time.time()
        logger.debug("Forwarding %s to upstream session", request.tool_name,
                     extra=redact_sensitive_data({"arguments": request.arguments}))
        try:
            result = await self.connection.invoke(request.tool_name, request.arguments)
        except Exception as e:
            logger.error("Error forwarding %s to upstream: %s", request.tool_name,
                         sanitize_log_message(describe_error(e)), extra={
                             "duration_ms": int((time.time() - start_time) * 1000)
                         })
            return forwarding_failure(e)

        logger.debug("Upstream answered %s", request.tool_name, extra={
            "is_error": result.isError,
            "duration_ms": int((time.time() - start_time) * 1000)
        })
        return ForwardSuccess(result)
