"""Blocking, newline-framed JSON channel to a remote endpoint."""

from __future__ import annotations

import json
import logging
import socket
import threading
from typing import TYPE_CHECKING, Protocol

from taskaccess.constants import MAX_LINE_BYTES
from taskaccess.errors import (
    ConnectionFailedError,
    ProtocolError,
    TransportClosedError,
    TransportTimeout,
)
from taskaccess.transport.contracts import CallRequest, CallResponse

if TYPE_CHECKING:
    from typing import BinaryIO

    from taskaccess.transport.locator import Endpoint

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Anything able to carry one request and return its response."""

    @property
    def is_connected(self) -> bool: ...

    def call(self, request: CallRequest, *, timeout: float) -> CallResponse: ...

    def close(self) -> None: ...


class SocketChannel:
    """Synchronous channel over a TCP or Unix domain socket.

    The connection is opened lazily on the first call and reused afterwards.
    Any timeout or framing problem closes the socket, so the next call starts
    from a fresh connection.

    Usage::

        with SocketChannel(endpoint, connect_timeout=3.0) as channel:
            request = CallRequest(target="NameService", operation="_is_a")
            response = channel.call(request, timeout=5.0)
    """

    def __init__(self, endpoint: Endpoint, *, connect_timeout: float) -> None:
        self._endpoint = endpoint
        self._connect_timeout = connect_timeout
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> SocketChannel:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def endpoint(self) -> Endpoint:
        """Endpoint descriptor currently used by this channel."""
        return self._endpoint

    @property
    def is_connected(self) -> bool:
        """Whether the channel currently holds an open socket."""
        return self._sock is not None

    def _connect(self) -> None:
        ep = self._endpoint
        try:
            if ep.transport == "socket":
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(self._connect_timeout)
                try:
                    sock.connect(ep.address)
                except OSError:
                    sock.close()
                    raise
            else:
                sock = socket.create_connection(
                    (ep.address, ep.port),
                    timeout=self._connect_timeout,
                )
        except TimeoutError as exc:
            raise TransportTimeout(f"Timed out connecting to {ep}") from exc
        except OSError as exc:
            raise ConnectionFailedError(f"Cannot connect to {ep}: {exc}") from exc

        self._sock = sock
        self._reader = sock.makefile("rb")
        logger.debug("Channel connected: %s", ep)

    def _disconnect(self) -> None:
        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                logger.debug("Error closing reader for %s", self._endpoint, exc_info=True)
            self._reader = None
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                logger.debug("Error closing socket for %s", self._endpoint, exc_info=True)
            self._sock = None
            logger.debug("Channel disconnected: %s", self._endpoint)

    def close(self) -> None:
        """Close the connection; further calls raise ``TransportClosedError``."""
        with self._lock:
            self._closed = True
            self._disconnect()

    def call(self, request: CallRequest, *, timeout: float) -> CallResponse:
        """Send *request* and block until its response arrives.

        Raises:
            TransportClosedError: If the channel was closed.
            ConnectionFailedError: If the endpoint cannot be reached or drops the connection.
            TransportTimeout: If no response arrives within *timeout* seconds.
            ProtocolError: If the response cannot be decoded or does not match.
        """
        line = request.model_dump_json() + "\n"
        with self._lock:
            if self._closed:
                raise TransportClosedError(f"Channel to {self._endpoint} is closed")
            if self._sock is None:
                self._connect()
            assert self._sock is not None and self._reader is not None

            try:
                self._sock.settimeout(timeout)
                self._sock.sendall(line.encode("utf-8"))
                raw = self._reader.readline(MAX_LINE_BYTES + 1)
            except TimeoutError as exc:
                self._disconnect()
                msg = f"{request.operation} on {request.target!r} timed out after {timeout}s"
                raise TransportTimeout(msg) from exc
            except OSError as exc:
                self._disconnect()
                msg = f"Connection to {self._endpoint} failed: {exc}"
                raise ConnectionFailedError(msg) from exc

            if not raw:
                self._disconnect()
                raise ConnectionFailedError(f"Connection closed by {self._endpoint}")
            if len(raw) > MAX_LINE_BYTES:
                self._disconnect()
                raise ProtocolError("Response exceeded max line size")

            try:
                response = CallResponse.model_validate(json.loads(raw))
            except ValueError as exc:
                self._disconnect()
                raise ProtocolError(f"Invalid response from {self._endpoint}") from exc

            if response.request_id != request.request_id:
                self._disconnect()
                msg = (
                    "Response request_id mismatch: "
                    f"expected {request.request_id}, got {response.request_id}"
                )
                raise ProtocolError(msg)

        return response


__all__ = ["Channel", "SocketChannel"]
