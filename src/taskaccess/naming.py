"""Naming-service client: names, bindings, contexts, and paginated listing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from taskaccess.constants import BINDING_ITERATOR_TYPE_ID, NAMING_CONTEXT_TYPE_ID
from taskaccess.errors import InvalidNameError, NameNotFoundError, ProtocolError, TransportError
from taskaccess.proxies import ObjectProxy, narrow
from taskaccess.transport.contracts import ObjectRef, WireBinding, WireNameComponent

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


# ── Names ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class NameComponent:
    """One path segment of a hierarchical name."""

    id: str
    kind: str = ""

    def __str__(self) -> str:
        return f"{self.id}.{self.kind}" if self.kind else self.id

    def to_wire(self) -> WireNameComponent:
        return WireNameComponent(id=self.id, kind=self.kind)


class Name(tuple[NameComponent, ...]):
    """Ordered sequence of name components, resolved relative to a context."""

    __slots__ = ()

    def __new__(cls, components: Iterable[NameComponent] = ()) -> Name:
        parts = tuple(components)
        if not parts:
            raise InvalidNameError("a name needs at least one component")
        for part in parts:
            if not part.id:
                raise InvalidNameError("name components must have a non-empty id")
        return super().__new__(cls, parts)

    @classmethod
    def of(cls, *ids: str) -> Name:
        """Build a name from plain segment ids."""
        return cls(NameComponent(segment) for segment in ids)

    @classmethod
    def from_path(cls, path: str) -> Name:
        """Parse ``a/b.kind/c`` into a name."""
        components = []
        for segment in path.strip("/").split("/"):
            ident, _, kind = segment.partition(".")
            components.append(NameComponent(ident, kind))
        return cls(components)

    @classmethod
    def from_wire(cls, components: Iterable[WireNameComponent]) -> Name:
        return cls(NameComponent(c.id, c.kind) for c in components)

    def to_wire(self) -> list[dict[str, str]]:
        return [part.to_wire().model_dump() for part in self]

    def __str__(self) -> str:
        return "/".join(str(part) for part in self)


class BindingType(StrEnum):
    OBJECT = "nobject"
    CONTEXT = "ncontext"


@dataclass(frozen=True, slots=True)
class Binding:
    """One entry of a naming context."""

    binding_name: Name
    binding_type: BindingType = BindingType.OBJECT

    @classmethod
    def from_wire(cls, raw: WireBinding) -> Binding:
        return cls(Name.from_wire(raw.binding_name), BindingType(raw.binding_type))


def _validated[M: BaseModel](model: type[M], raw: object, operation: str) -> M:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ProtocolError(f"{operation} returned a malformed {model.__name__}") from exc


def _bindings_from(payload: object, operation: str) -> list[Binding]:
    if not isinstance(payload, list):
        raise ProtocolError(f"{operation} returned bindings of type {type(payload).__name__}")
    return [Binding.from_wire(_validated(WireBinding, item, operation)) for item in payload]


# ── Proxies ───────────────────────────────────────────────────────────


class BindingIterator(ObjectProxy):
    """Server-side cursor over the bindings of a context."""

    type_id = BINDING_ITERATOR_TYPE_ID

    def next_n(self, how_many: int) -> tuple[bool, list[Binding]]:
        """Fetch up to *how_many* more bindings.

        Returns ``(more, bindings)``; ``more`` is false once the iterator
        had nothing left to return.
        """
        result = self._invoke("next_n", how_many=how_many)
        bindings = _bindings_from(result.get("bindings"), "next_n")
        return bool(result.get("more", bool(bindings))), bindings

    def destroy(self) -> None:
        self._invoke("destroy")


class NamingContext(ObjectProxy):
    """Handle to a naming context on the registry."""

    type_id = NAMING_CONTEXT_TYPE_ID

    def resolve(self, name: Name) -> ObjectRef:
        """Resolve *name* relative to this context.

        Raises:
            NameNotFoundError: If any segment of *name* is unbound.
            ProtocolError: If the registry answers with a malformed reference.
            TransportError: On any other registry fault.
        """
        result = self._invoke("resolve", name=name.to_wire())
        raw_ref = result.get("ref")
        if raw_ref is None:
            raise NameNotFoundError(f"{name} resolved to a nil reference")
        return self._runtime.adopt(_validated(ObjectRef, raw_ref, "resolve"), self._ref)

    def resolve_context(self, name: Name) -> NamingContext | None:
        """Resolve *name* and narrow it to a naming context (``None`` if it is not one)."""
        return narrow(self._runtime, self.resolve(name), NamingContext)

    def list(self, how_many: int) -> tuple[list[Binding], BindingIterator | None]:
        """Return up to *how_many* bindings now, plus an iterator for the rest."""
        result = self._invoke("list", how_many=how_many)
        bindings = _bindings_from(result.get("bindings"), "list")
        raw_iterator = result.get("iterator")
        if raw_iterator is None:
            return bindings, None
        iterator_ref = _validated(ObjectRef, raw_iterator, "list")
        iterator_ref = self._runtime.adopt(iterator_ref, self._ref)
        return bindings, BindingIterator(self._runtime, iterator_ref)


def iter_bindings(context: NamingContext, page_size: int) -> Iterator[Binding]:
    """Lazily yield every binding of *context*, fetching *page_size* per round trip.

    The server-side iterator is destroyed once exhausted or abandoned.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    immediate, iterator = context.list(0)
    yield from immediate
    if iterator is None:
        return
    try:
        while True:
            more, page = iterator.next_n(page_size)
            yield from page
            if not more or not page:
                break
    finally:
        try:
            iterator.destroy()
        except TransportError:
            logger.debug("Could not destroy binding iterator %s", iterator.ref.key, exc_info=True)


# ── Context lookup result ─────────────────────────────────────────────


class LookupStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    WRONG_TYPE = "wrong_type"
    FAULT = "fault"


@dataclass(frozen=True, slots=True)
class ContextLookup:
    """Outcome of resolving a naming context.

    ``error`` is set only for ``FAULT``.
    """

    status: LookupStatus
    context: NamingContext | None = None
    error: TransportError | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


def lookup_context(root: NamingContext, name: Name) -> ContextLookup:
    """Resolve *name* under *root* without raising for the expected outcomes.

    A binding that exists but is not a context is reported as ``WRONG_TYPE``.
    Exceptions other than ``TransportError`` propagate.
    """
    try:
        context = root.resolve_context(name)
    except NameNotFoundError:
        return ContextLookup(LookupStatus.NOT_FOUND)
    except TransportError as exc:
        return ContextLookup(LookupStatus.FAULT, error=exc)
    if context is None:
        return ContextLookup(LookupStatus.WRONG_TYPE)
    return ContextLookup(LookupStatus.FOUND, context=context)


__all__ = [
    "Binding",
    "BindingIterator",
    "BindingType",
    "ContextLookup",
    "LookupStatus",
    "Name",
    "NameComponent",
    "NamingContext",
    "iter_bindings",
    "lookup_context",
]
