"""Forwarding of proxy tool calls to where they are executed."""

from .base import Forwarder, describe_error
from .codecs import DirectBodyCodec, JsonRpcCodec, RequestCodec
from .direct import DirectForwarder
from .factory import FORWARD_MODES, create_forwarder
from .http import HttpForwarder

__all__ = [
    "Forwarder",
    "describe_error",
    "RequestCodec",
    "DirectBodyCodec",
    "JsonRpcCodec",
    "DirectForwarder",
    "HttpForwarder",
    "FORWARD_MODES",
    "create_forwarder",
]
