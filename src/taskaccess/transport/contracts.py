"""Wire contract types for registry and remote-object calls."""

from __future__ import annotations

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_request_id() -> str:
    return uuid4().hex


class ObjectRef(BaseModel):
    """Serializable reference to a remote object.

    ``endpoint`` is a locator of the process hosting the object; ``None``
    means the object lives behind the same endpoint as the reference's sender.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Object key understood by the hosting endpoint")
    type_id: str = Field(
        default="",
        description="Most-derived repository id advertised for the object",
    )
    endpoint: str | None = Field(
        default=None,
        description="corbaloc-style locator of the hosting endpoint",
    )


class WireNameComponent(BaseModel):
    id: str
    kind: str = ""


class WireBinding(BaseModel):
    binding_name: list[WireNameComponent]
    binding_type: Literal["nobject", "ncontext"] = "nobject"


class CallRequest(BaseModel):
    """Envelope for a single invocation on a remote object."""

    request_id: str = Field(
        default_factory=_new_request_id,
        description="Unique identifier for this request",
    )
    target: str = Field(description="Key of the object the operation is invoked on")
    operation: str = Field(description="Operation name (e.g. 'resolve', 'next_n', 'getName')")
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation-specific parameters",
    )


class ErrorDetail(BaseModel):
    """Structured error information returned inside a ``CallResponse``."""

    code: str = Field(description="Exception name (e.g. 'NotFound', 'OBJECT_NOT_EXIST')")
    message: str = Field(default="", description="Human-readable error description")


class CallResponse(BaseModel):
    """Envelope for the reply to a ``CallRequest``.

    ``ok`` is *True* when the operation completed; ``result`` then carries the
    return payload.  When ``ok`` is *False*, ``error`` names the raised
    exception.
    """

    request_id: str
    ok: bool
    result: dict[str, Any] | None = None
    error: ErrorDetail | None = None

    @staticmethod
    def success(request_id: str, result: dict[str, Any] | None = None) -> CallResponse:
        """Create a successful response."""
        return CallResponse(request_id=request_id, ok=True, result=result)

    @staticmethod
    def failure(request_id: str, *, code: str, message: str = "") -> CallResponse:
        """Create a failure response with an error detail."""
        return CallResponse(
            request_id=request_id,
            ok=False,
            error=ErrorDetail(code=code, message=message),
        )


__all__ = [
    "CallRequest",
    "CallResponse",
    "ErrorDetail",
    "ObjectRef",
    "WireBinding",
    "WireNameComponent",
]
