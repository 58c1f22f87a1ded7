"""RPC substrate: wire contracts, locators, channels, and the process runtime."""

from __future__ import annotations

from taskaccess.transport.channel import Channel, SocketChannel
from taskaccess.transport.contracts import CallRequest, CallResponse, ErrorDetail, ObjectRef
from taskaccess.transport.locator import Endpoint, parse_endpoint, parse_object_locator
from taskaccess.transport.runtime import TransportRuntime, active_runtime, strip_runtime_args

__all__ = [
    "CallRequest",
    "CallResponse",
    "Channel",
    "Endpoint",
    "ErrorDetail",
    "ObjectRef",
    "SocketChannel",
    "TransportRuntime",
    "active_runtime",
    "parse_endpoint",
    "parse_object_locator",
    "strip_runtime_args",
]
