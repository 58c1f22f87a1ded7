"""Exception tree for registry discovery and the RPC substrate."""

from __future__ import annotations

from enum import StrEnum

NONEXISTENT_OR_WRONG_TYPE = "This server does not exist or has the wrong type."


class TaskAccessError(Exception):
    """Base for every error raised by taskaccess."""


class NotInitializedError(TaskAccessError):
    """Raised when a discovery operation runs before ``init()`` or after ``shutdown()``."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation}() requires an initialized TaskAccess; call init() first")
        self.operation = operation


# ── Discovery errors ──────────────────────────────────────────────────


class DiscoveryErrorCode(StrEnum):
    """Machine-readable cause attached to a ``DiscoveryError``."""

    NOT_FOUND = "NOT_FOUND"
    WRONG_TYPE = "WRONG_TYPE"
    TIMEOUT = "TIMEOUT"
    TRANSPORT = "TRANSPORT"
    REGISTRY_UNAVAILABLE = "REGISTRY_UNAVAILABLE"


class DiscoveryError(TaskAccessError):
    """The target does not exist, or exists but is not of the expected type.

    ``NOT_FOUND`` and ``WRONG_TYPE`` share the same ``reason`` text; use
    ``code`` to tell them apart.
    """

    def __init__(
        self,
        reason: str = NONEXISTENT_OR_WRONG_TYPE,
        *,
        code: DiscoveryErrorCode = DiscoveryErrorCode.NOT_FOUND,
        name: str | None = None,
    ) -> None:
        self.reason = reason
        self.code = code
        self.name = name
        message = f"{name}: {reason}" if name else reason
        super().__init__(message)


class RegistryUnavailableError(DiscoveryError):
    """Raised when the naming service cannot be located."""

    def __init__(self, reason: str = "could not acquire NameService") -> None:
        super().__init__(reason, code=DiscoveryErrorCode.REGISTRY_UNAVAILABLE)


# ── Transport errors ──────────────────────────────────────────────────


class TransportError(TaskAccessError):
    """Fault raised by the RPC substrate."""

    code: str = "TRANSPORT"


class ConnectionFailedError(TransportError):
    """The remote endpoint could not be reached."""

    code = "COMM_FAILURE"


class TransportTimeout(TransportError):
    """A remote call did not complete within the per-call timeout."""

    code = "TIMEOUT"


class TransportClosedError(TransportError):
    """The runtime or channel was used after being destroyed."""

    code = "OBJECT_NOT_EXIST"


class ProtocolError(TransportError):
    """A malformed or mismatched frame was received."""

    code = "MARSHAL"


class RemoteSystemError(TransportError):
    """A system-level failure reported by the remote peer."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code


class NamingError(TransportError):
    """User exception raised by a naming context operation."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code


class NameNotFoundError(NamingError):
    """The name, or one of its leading segments, is not bound."""

    def __init__(self, message: str = "name not bound") -> None:
        super().__init__(message, code="NotFound")


class CannotProceedError(NamingError):
    def __init__(self, message: str = "cannot proceed") -> None:
        super().__init__(message, code="CannotProceed")


class InvalidNameError(NamingError):
    def __init__(self, message: str = "invalid name") -> None:
        super().__init__(message, code="InvalidName")


_NAMING_ERRORS: dict[str, type[NamingError]] = {
    "NotFound": NameNotFoundError,
    "CannotProceed": CannotProceedError,
    "InvalidName": InvalidNameError,
}


def error_from_wire(code: str, message: str) -> TransportError:
    """Build the exception matching an error code received on the wire."""
    naming_cls = _NAMING_ERRORS.get(code)
    if naming_cls is not None:
        return naming_cls(message)
    if code in {"AlreadyBound", "NotEmpty"}:
        return NamingError(message, code=code)
    if code == "TIMEOUT":
        return TransportTimeout(message)
    return RemoteSystemError(message, code=code)


class RuntimeActiveError(TaskAccessError):
    """Raised when a second transport runtime is started in the same process."""


class RuntimeArgumentError(TaskAccessError, ValueError):
    """Raised when a runtime option on the command line is malformed."""


class InvalidLocatorError(ValueError):
    """Raised when an object locator string cannot be parsed."""

    def __init__(self, locator: str, detail: str) -> None:
        super().__init__(f"Invalid locator {locator!r}: {detail}")
        self.locator = locator


__all__ = [
    "NONEXISTENT_OR_WRONG_TYPE",
    "CannotProceedError",
    "ConnectionFailedError",
    "DiscoveryError",
    "DiscoveryErrorCode",
    "InvalidLocatorError",
    "InvalidNameError",
    "NameNotFoundError",
    "NamingError",
    "NotInitializedError",
    "ProtocolError",
    "RegistryUnavailableError",
    "RemoteSystemError",
    "RuntimeActiveError",
    "RuntimeArgumentError",
    "TaskAccessError",
    "TransportClosedError",
    "TransportError",
    "TransportTimeout",
    "error_from_wire",
]
