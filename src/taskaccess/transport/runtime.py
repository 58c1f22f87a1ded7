"""Process-wide RPC runtime: argument handling, initial references, invocation.

Only one ``TransportRuntime`` may be alive in a process at a time.  A second
construction raises ``RuntimeActiveError`` until the first one is destroyed.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from taskaccess.constants import NAME_SERVICE, RUNTIME_ARG_PREFIX
from taskaccess.errors import (
    RuntimeActiveError,
    RuntimeArgumentError,
    TransportClosedError,
    TransportError,
    error_from_wire,
)
from taskaccess.transport.channel import SocketChannel
from taskaccess.transport.contracts import CallRequest, ObjectRef
from taskaccess.transport.locator import Endpoint, parse_endpoint, parse_object_locator

if TYPE_CHECKING:
    from collections.abc import Callable

    from taskaccess.config import AccessConfig
    from taskaccess.transport.channel import Channel

    ChannelFactory = Callable[[Endpoint, float], Channel]

logger = logging.getLogger(__name__)

_claim_lock = threading.Lock()
_active_runtime: TransportRuntime | None = None


def active_runtime() -> TransportRuntime | None:
    """Return the live runtime of this process, if any."""
    return _active_runtime


def _default_channel_factory(endpoint: Endpoint, connect_timeout: float) -> Channel:
    return SocketChannel(endpoint, connect_timeout=connect_timeout)


@dataclass
class RuntimeOptions:
    """Runtime options collected from ``-ORB<Name> <value>`` argument pairs."""

    init_refs: dict[str, str] = field(default_factory=dict)
    default_init_ref: str | None = None
    call_timeout: float | None = None
    connect_timeout: float | None = None
    trace_level: int = 0


def _milliseconds(option: str, value: str) -> float:
    try:
        millis = int(value)
    except ValueError:
        raise RuntimeArgumentError(f"{option} expects milliseconds, got {value!r}") from None
    if millis <= 0:
        raise RuntimeArgumentError(f"{option} must be positive, got {millis}")
    return millis / 1000.0


def strip_runtime_args(args: list[str]) -> RuntimeOptions:
    """Remove runtime options from *args* in place and return them parsed.

    Every ``-ORB<Name>`` option takes exactly one value.  Arguments that are
    not runtime options keep their relative order.
    """
    options = RuntimeOptions()
    remaining: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if not arg.startswith(RUNTIME_ARG_PREFIX):
            remaining.append(arg)
            i += 1
            continue
        if i + 1 >= len(args):
            raise RuntimeArgumentError(f"{arg} requires a value")
        name, value = arg[len(RUNTIME_ARG_PREFIX) :], args[i + 1]
        i += 2

        match name:
            case "InitRef":
                service, sep, locator = value.partition("=")
                if not sep or not service or not locator:
                    msg = f"-ORBInitRef expects <name>=<locator>, got {value!r}"
                    raise RuntimeArgumentError(msg)
                options.init_refs[service] = locator
            case "DefaultInitRef":
                options.default_init_ref = value.rstrip("/")
            case "clientCallTimeOutPeriod":
                options.call_timeout = _milliseconds(arg, value)
            case "clientConnectTimeOutPeriod":
                options.connect_timeout = _milliseconds(arg, value)
            case "traceLevel":
                try:
                    options.trace_level = int(value)
                except ValueError:
                    raise RuntimeArgumentError(f"{arg} expects an integer, got {value!r}") from None
            case _:
                logger.warning("Ignoring unsupported runtime option %s %s", arg, value)

    args[:] = remaining
    return options


class TransportRuntime:
    """Handle to the RPC substrate connecting this process to remote objects.

    The runtime owns one channel per remote endpoint and routes every
    invocation through it with the configured per-call timeout.

    Usage::

        runtime = TransportRuntime.from_args(sys.argv, config)
        try:
            ref = runtime.resolve_initial_references("NameService")
            ...
        finally:
            runtime.destroy()
    """

    def __init__(
        self,
        *,
        init_refs: dict[str, str] | None = None,
        default_init_ref: str | None = None,
        call_timeout: float,
        connect_timeout: float,
        trace_level: int = 0,
        channel_factory: ChannelFactory | None = None,
    ) -> None:
        global _active_runtime
        with _claim_lock:
            if _active_runtime is not None:
                msg = "A transport runtime is already active in this process"
                raise RuntimeActiveError(msg)
            _active_runtime = self

        self._init_refs = dict(init_refs or {})
        self._default_init_ref = default_init_ref
        self._call_timeout = call_timeout
        self._connect_timeout = connect_timeout
        self._trace_level = trace_level
        self._channel_factory = channel_factory or _default_channel_factory
        self._channels: dict[Endpoint, Channel] = {}
        self._channels_lock = threading.Lock()
        self._destroyed = False

        self._traced_level: int | None = None
        if trace_level > 0:
            trace_logger = logging.getLogger("taskaccess.transport")
            self._traced_level = trace_logger.level
            trace_logger.setLevel(logging.DEBUG)
        logger.debug(
            "Transport runtime started: call_timeout=%ss connect_timeout=%ss",
            call_timeout,
            connect_timeout,
        )

    @classmethod
    def from_args(
        cls,
        args: list[str] | None,
        config: AccessConfig,
        *,
        channel_factory: ChannelFactory | None = None,
    ) -> TransportRuntime:
        """Start the runtime, consuming runtime options from *args*.

        Command-line options take precedence over *config*.
        """
        options = strip_runtime_args(args) if args is not None else RuntimeOptions()
        init_refs = dict(options.init_refs)
        if config.name_service and NAME_SERVICE not in init_refs:
            init_refs[NAME_SERVICE] = config.name_service
        return cls(
            init_refs=init_refs,
            default_init_ref=options.default_init_ref,
            call_timeout=options.call_timeout or config.call_timeout,
            connect_timeout=options.connect_timeout or config.connect_timeout,
            trace_level=options.trace_level,
            channel_factory=channel_factory,
        )

    @property
    def call_timeout(self) -> float:
        return self._call_timeout

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    @property
    def trace_level(self) -> int:
        return self._trace_level

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def resolve_initial_references(self, service: str) -> ObjectRef | None:
        """Return the reference configured for *service*, or ``None`` (nil).

        Raises:
            InvalidLocatorError: If the configured locator is malformed.
        """
        self._check_alive()
        locator = self._init_refs.get(service)
        if locator is None and self._default_init_ref is not None:
            locator = f"{self._default_init_ref}/{service}"
        if locator is None:
            logger.debug("No initial reference configured for %s", service)
            return None
        endpoint, key = parse_object_locator(locator)
        return ObjectRef(key=key, endpoint=endpoint.locator)

    def endpoint_of(self, ref: ObjectRef) -> Endpoint:
        if ref.endpoint is None:
            msg = f"Reference {ref.key!r} carries no endpoint"
            raise TransportError(msg)
        return parse_endpoint(ref.endpoint)

    def adopt(self, ref: ObjectRef, origin: ObjectRef) -> ObjectRef:
        """Give *ref* the endpoint of *origin* when it was sent without one."""
        if ref.endpoint is not None:
            return ref
        return ref.model_copy(update={"endpoint": origin.endpoint})

    def _channel_for(self, endpoint: Endpoint) -> Channel:
        with self._channels_lock:
            channel = self._channels.get(endpoint)
            if channel is None:
                channel = self._channel_factory(endpoint, self._connect_timeout)
                self._channels[endpoint] = channel
            return channel

    def invoke(
        self,
        ref: ObjectRef,
        operation: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Invoke *operation* on the object behind *ref* and return its result.

        Raises:
            TransportClosedError: If the runtime was destroyed.
            TransportError: On any transport fault or remote exception.
        """
        self._check_alive()
        channel = self._channel_for(self.endpoint_of(ref))
        request = CallRequest(target=ref.key, operation=operation, params=params or {})
        logger.debug("-> %s.%s %s", ref.key, operation, request.params)
        response = channel.call(request, timeout=self._call_timeout)
        if not response.ok:
            error = response.error
            code = error.code if error is not None else "UNKNOWN"
            message = error.message if error is not None else ""
            logger.debug("<- %s.%s raised %s", ref.key, operation, code)
            raise error_from_wire(code, message)
        logger.debug("<- %s.%s ok", ref.key, operation)
        return response.result or {}

    def is_a(self, ref: ObjectRef, type_id: str) -> bool:
        """Ask the remote object whether it implements *type_id*."""
        result = self.invoke(ref, "_is_a", {"type_id": type_id})
        return bool(result.get("value", False))

    def destroy(self) -> None:
        """Close every channel and release the process-wide claim.

        Calling ``destroy()`` more than once is a no-op.
        """
        global _active_runtime
        if self._destroyed:
            return
        self._destroyed = True
        with self._channels_lock:
            channels = list(self._channels.values())
            self._channels.clear()
        try:
            for channel in channels:
                channel.close()
        finally:
            with _claim_lock:
                if _active_runtime is self:
                    _active_runtime = None
            if self._traced_level is not None:
                logging.getLogger("taskaccess.transport").setLevel(self._traced_level)
        logger.debug("Transport runtime destroyed")

    def _check_alive(self) -> None:
        if self._destroyed:
            raise TransportClosedError("Transport runtime has been destroyed")


__all__ = [
    "RuntimeOptions",
    "TransportRuntime",
    "active_runtime",
    "strip_runtime_args",
]
