"""HTTP re-dispatch of tool calls to the main server's REST API.

Each call is a single ``POST {origin}/api/tool/{toolName}`` with a JSON body;
there are no retries. Replies are normalized as follows:

- non-2xx status: failure ``HTTP error! status: <code>, Response: <body>``
- body that is not JSON: success with the raw text, verbatim
- JSON body: interpreted by the codec
- any transport exception: failure ``Error forwarding request: <cause>``
"""

import json
import logging
import time
from typing import Optional
from urllib.parse import quote

import aiohttp

from toolbridge.forwarding.base import Forwarder, describe_error, forwarding_failure
from toolbridge.forwarding.codecs import RequestCodec
from toolbridge.types.envelope import create_success_response
from toolbridge.types.models import ForwardFailure, ForwardRequest, ForwardResult, ForwardSuccess
from toolbridge.utils.log_utils import redact_sensitive_data, sanitize_log_message, truncate

logger = logging.getLogger(__name__)


def _decode(raw: bytes, charset: Optional[str]) -> str:
    """Decode a reply body, replacing bytes that are not valid in its charset."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


class HttpForwarder(Forwarder):
    """Forwards calls to an HTTP origin using a request codec.

    Attributes:
        origin_url: Base URL of the origin, without trailing slash
        codec: Wire format for requests and replies
        timeout: Optional total timeout per request in seconds
    """

    def __init__(
        self,
        origin_url: str,
        codec: RequestCodec,
        *,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.origin_url = origin_url.rstrip("/")
        self.codec = codec
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def mode(self) -> str:
        return self.codec.name

    def url_for(self, tool_name: str) -> str:
        return f"{self.origin_url}/api/tool/{quote(tool_name, safe='')}"

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            kwargs = {}
            if self.timeout is not None:
                kwargs["timeout"] = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(**kwargs)
            self._owns_session = True
        return self._session

    async def open(self) -> None:
        self._ensure_session()

    async def close(self) -> None:
        session, self._session = self._session, None
        if session is not None and self._owns_session and not session.closed:
            await session.close()

    async def forward_request(self, request: ForwardRequest) -> ForwardResult:
        start_time = time.time()
        url = self.url_for(request.tool_name)
        body = self.codec.encode(request)
        logger.debug("Forwarding to %s", url, extra=redact_sensitive_data({
            "tool_name": request.tool_name,
            "body": body
        }))

        try:
            session = self._ensure_session()
            async with session.post(url, json=body) as response:
                status = response.status
                charset = response.charset
                raw = await response.read()
        except Exception as e:
            logger.error("Error forwarding %s to main server: %s", request.tool_name,
                         sanitize_log_message(describe_error(e)), extra={
                             "duration_ms": int((time.time() - start_time) * 1000)
                         })
            return forwarding_failure(e)

        duration_ms = int((time.time() - start_time) * 1000)
        text = _decode(raw, charset)
        if not 200 <= status < 300:
            logger.error("HTTP error! Status: %s, Response: %s", status,
                         sanitize_log_message(truncate(text)), extra={"duration_ms": duration_ms})
            return ForwardFailure(f"HTTP error! status: {status}, Response: {text}")

        logger.debug("Raw response text: %s", truncate(text), extra={"duration_ms": duration_ms})
        try:
            payload = json.loads(text)
        except ValueError:
            logger.debug("Response for %s is not JSON, returning raw text", request.tool_name)
            return ForwardSuccess(create_success_response(text))

        result = self.codec.decode(request, payload)
        if isinstance(result, ForwardFailure):
            logger.error("Error in response for %s: %s", request.tool_name,
                         sanitize_log_message(truncate(result.message)))
        return result
