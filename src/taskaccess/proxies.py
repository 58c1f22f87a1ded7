"""Typed client-side proxies for remote objects, and narrowing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from taskaccess.constants import CONTROL_TASK_TYPE_ID

if TYPE_CHECKING:
    from taskaccess.transport.contracts import ObjectRef
    from taskaccess.transport.runtime import TransportRuntime

logger = logging.getLogger(__name__)


class ObjectProxy:
    """Generic handle to a remote object reachable through a runtime.

    Subclasses set ``type_id`` to the repository id they represent.  A proxy
    stays usable only while its runtime is alive; afterwards every call raises
    ``TransportClosedError``.
    """

    type_id: ClassVar[str] = ""

    def __init__(self, runtime: TransportRuntime, ref: ObjectRef) -> None:
        self._runtime = runtime
        self._ref = ref

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self._ref.key!r}, endpoint={self._ref.endpoint!r})"

    @property
    def ref(self) -> ObjectRef:
        return self._ref

    @property
    def runtime(self) -> TransportRuntime:
        return self._runtime

    def _invoke(self, operation: str, **params: Any) -> dict[str, Any]:
        return self._runtime.invoke(self._ref, operation, params)

    def _is_a(self, type_id: str) -> bool:
        return self._runtime.is_a(self._ref, type_id)


def narrow[P: ObjectProxy](
    runtime: TransportRuntime,
    ref: ObjectRef | None,
    proxy_cls: type[P],
) -> P | None:
    """Convert a generic reference into a *proxy_cls* handle.

    Returns ``None`` (nil) when *ref* is nil or the remote object does not
    implement ``proxy_cls.type_id``.  A reference that already advertises the
    expected type id is accepted without a round trip.

    Raises:
        TransportError: If the ``_is_a`` round trip fails.
    """
    if ref is None:
        return None
    if ref.type_id and ref.type_id == proxy_cls.type_id:
        return proxy_cls(runtime, ref)
    if not runtime.is_a(ref, proxy_cls.type_id):
        logger.debug("Reference %s is not a %s", ref.key, proxy_cls.type_id)
        return None
    return proxy_cls(runtime, ref)


class ControlTaskProxy(ObjectProxy):
    """Handle to a remote control task server."""

    type_id = CONTROL_TASK_TYPE_ID

    def get_name(self) -> str:
        """Name the task server was registered with."""
        return str(self._invoke("getName").get("value", ""))

    def get_description(self) -> str:
        return str(self._invoke("getDescription").get("value", ""))

    def get_task_state(self) -> str:
        """Current state of the remote task, as reported by the server."""
        return str(self._invoke("getTaskState").get("value", ""))


__all__ = ["ControlTaskProxy", "ObjectProxy", "narrow"]
