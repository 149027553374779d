"""Builds the forwarder selected by ``forward_mode``."""

import logging
from typing import Optional

from toolbridge.core.errors import ConfigError
from toolbridge.forwarding.base import Forwarder
from toolbridge.forwarding.codecs import DirectBodyCodec, JsonRpcCodec
from toolbridge.forwarding.direct import DirectForwarder
from toolbridge.forwarding.http import HttpForwarder
from toolbridge.mcp.connection import UpstreamConnection

logger = logging.getLogger(__name__)

FORWARD_MODES = ("http", "jsonrpc", "direct")


def create_forwarder(
    mode: str,
    *,
    connection: Optional[UpstreamConnection] = None,
    origin_url: Optional[str] = None,
    timeout: Optional[float] = None
) -> Forwarder:
    """Create a forwarder for the given mode.

    Args:
        mode: ``http`` (arguments as body), ``jsonrpc`` or ``direct``
        connection: Upstream connection, required for ``direct``
        origin_url: HTTP origin, required for ``http`` and ``jsonrpc``
        timeout: Optional total HTTP timeout in seconds

    Raises:
        ConfigError: If the mode is unknown or its dependency is missing
    """
    if mode == "direct":
        if connection is None:
            raise ConfigError("Direct forwarding requires an upstream connection")
        forwarder: Forwarder = DirectForwarder(connection)
    elif mode in ("http", "jsonrpc"):
        if not origin_url:
            raise ConfigError(f"{mode} forwarding requires an origin URL")
        codec = DirectBodyCodec() if mode == "http" else JsonRpcCodec()
        forwarder = HttpForwarder(origin_url, codec, timeout=timeout)
    else:
        raise ConfigError(f"Unknown forward mode: {mode}. Expected one of: {', '.join(FORWARD_MODES)}")

    logger.info("Using %s forwarding", mode, extra={"origin_url": origin_url})
    return forwarder
