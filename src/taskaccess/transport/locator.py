"""Parsing of ``corbaloc:`` style object and endpoint locators.

Supported forms::

    corbaloc:iiop:host[:port]/Key      (also ``tcp:`` or the empty protocol ``:``)
    corbaloc:iiop:1.2@host:port/Key    (GIOP version prefix is accepted and ignored)
    corbaloc:unix:/path/to/socket/Key

Endpoint-only locators omit the ``/Key`` suffix for ``iiop``; for ``unix`` the
whole remainder is the socket path.
"""

from __future__ import annotations

from dataclasses import dataclass

from taskaccess.constants import DEFAULT_IIOP_PORT
from taskaccess.errors import InvalidLocatorError

_SCHEME = "corbaloc:"
_TCP_PROTOCOLS = {"", "iiop", "tcp"}


@dataclass(frozen=True)
class Endpoint:
    """Describes how to reach a process hosting remote objects.

    Attributes:
        transport: The transport type (``tcp`` or ``socket``).
        address: Host name for tcp, file path for socket.
        port: TCP port when *transport* is ``tcp``; ``None`` for socket transport.
    """

    transport: str
    address: str
    port: int | None = None

    @property
    def locator(self) -> str:
        if self.transport == "socket":
            return f"{_SCHEME}unix:{self.address}"
        return f"{_SCHEME}iiop:{self.address}:{self.port}"

    def __str__(self) -> str:
        if self.transport == "socket":
            return f"socket://{self.address}"
        return f"tcp://{self.address}:{self.port}"


def _split_protocol(locator: str) -> tuple[str, str]:
    if not locator.startswith(_SCHEME):
        raise InvalidLocatorError(locator, f"expected '{_SCHEME}' prefix")
    rest = locator[len(_SCHEME) :]
    protocol, sep, body = rest.partition(":")
    if not sep:
        raise InvalidLocatorError(locator, "missing protocol separator")
    return protocol.lower(), body


def _parse_host_port(locator: str, hostport: str) -> Endpoint:
    if "@" in hostport:
        _version, _, hostport = hostport.partition("@")
    host, sep, raw_port = hostport.partition(":")
    if not host:
        raise InvalidLocatorError(locator, "missing host")
    if not sep:
        return Endpoint(transport="tcp", address=host, port=DEFAULT_IIOP_PORT)
    try:
        port = int(raw_port)
    except ValueError:
        raise InvalidLocatorError(locator, f"bad port {raw_port!r}") from None
    if not 0 < port < 65536:
        raise InvalidLocatorError(locator, f"port out of range: {port}")
    return Endpoint(transport="tcp", address=host, port=port)


def parse_object_locator(locator: str) -> tuple[Endpoint, str]:
    """Split an object locator into its endpoint and object key."""
    protocol, body = _split_protocol(locator)
    if protocol == "unix":
        path, sep, key = body.rpartition("/")
        if not sep or not path or not key:
            raise InvalidLocatorError(locator, "expected <socket path>/<key>")
        return Endpoint(transport="socket", address=path), key
    if protocol in _TCP_PROTOCOLS:
        hostport, sep, key = body.partition("/")
        if not sep or not key:
            raise InvalidLocatorError(locator, "missing object key")
        return _parse_host_port(locator, hostport), key
    raise InvalidLocatorError(locator, f"unsupported protocol {protocol!r}")


def parse_endpoint(locator: str) -> Endpoint:
    """Parse an endpoint-only locator (no object key)."""
    protocol, body = _split_protocol(locator)
    if protocol == "unix":
        if not body:
            raise InvalidLocatorError(locator, "missing socket path")
        return Endpoint(transport="socket", address=body)
    if protocol in _TCP_PROTOCOLS:
        return _parse_host_port(locator, body.rstrip("/"))
    raise InvalidLocatorError(locator, f"unsupported protocol {protocol!r}")


__all__ = ["Endpoint", "parse_endpoint", "parse_object_locator"]
