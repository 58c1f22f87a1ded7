"""Discovery facade: locate the registry, list control tasks, and connect to them."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from taskaccess.config import AccessConfig
from taskaccess.constants import NAME_SERVICE
from taskaccess.errors import (
    DiscoveryError,
    DiscoveryErrorCode,
    InvalidLocatorError,
    InvalidNameError,
    NameNotFoundError,
    NotInitializedError,
    RegistryUnavailableError,
    RuntimeActiveError,
    RuntimeArgumentError,
    TransportError,
    TransportTimeout,
)
from taskaccess.naming import LookupStatus, Name, NamingContext, iter_bindings, lookup_context
from taskaccess.proxies import ControlTaskProxy, ObjectProxy, narrow
from taskaccess.transport.runtime import TransportRuntime

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from taskaccess.transport.runtime import ChannelFactory

logger = logging.getLogger(__name__)


def _discovery_error(exc: TransportError, name: str) -> DiscoveryError:
    """Fold a transport fault into the unified discovery error."""
    if isinstance(exc, NameNotFoundError):
        return DiscoveryError(code=DiscoveryErrorCode.NOT_FOUND, name=name)
    if isinstance(exc, TransportTimeout):
        return DiscoveryError(f"timed out: {exc}", code=DiscoveryErrorCode.TIMEOUT, name=name)
    return DiscoveryError(f"registry fault: {exc}", code=DiscoveryErrorCode.TRANSPORT, name=name)


class TaskAccess:
    """Locates control tasks through the naming service and connects to them.

    A ``TaskAccess`` owns the process's transport runtime and the registry
    root context for as long as it is initialized.  Both are set together by
    ``init()`` and cleared together by ``shutdown()``.

    Usage::

        access = TaskAccess(AccessConfig.load())
        if not access.init(sys.argv):
            sys.exit(1)
        try:
            for name in access.list_task_names():
                task = access.find_task(name)
                print(name, task.get_task_state())
        finally:
            access.shutdown()

    Or as a context manager, which raises ``RegistryUnavailableError`` when
    initialization fails::

        with TaskAccess(config) as access:
            task = access.find_task("alpha")
    """

    def __init__(
        self,
        config: AccessConfig | None = None,
        *,
        channel_factory: ChannelFactory | None = None,
    ) -> None:
        self._config = config or AccessConfig()
        self._channel_factory = channel_factory
        self._runtime: TransportRuntime | None = None
        self._root: NamingContext | None = None

    def __enter__(self) -> TaskAccess:
        if not self.init():
            raise RegistryUnavailableError("could not initialize the transport runtime")
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    @property
    def config(self) -> AccessConfig:
        return self._config

    @property
    def transport(self) -> TransportRuntime | None:
        """The live transport runtime, or ``None`` when uninitialized."""
        return self._runtime

    @property
    def registry_root(self) -> NamingContext | None:
        """The root naming context, or ``None`` when uninitialized."""
        return self._root

    @property
    def is_initialized(self) -> bool:
        return self._runtime is not None

    # ── Lifecycle ─────────────────────────────────────────────────────

    def init(self, args: list[str] | None = None) -> bool:
        """Start the transport runtime and acquire the registry root.

        Runtime options (``-ORB<Name> <value>``) are removed from *args* in
        place.  Returns ``False`` without changing any state when this access
        is already initialized or another runtime is active in the process,
        and ``False`` after a full rollback when the naming service cannot be
        acquired.
        """
        if self._runtime is not None:
            logger.warning("TaskAccess is already initialized; ignoring init()")
            return False

        try:
            runtime = TransportRuntime.from_args(
                args,
                self._config,
                channel_factory=self._channel_factory,
            )
        except RuntimeActiveError:
            logger.error("Transport init: another runtime is already active in this process")
            return False
        except RuntimeArgumentError as exc:
            logger.error("Transport init: %s", exc)
            return False

        try:
            root_ref = runtime.resolve_initial_references(NAME_SERVICE)
            if root_ref is None:
                logger.error("TaskAccess could not acquire NameService.")
                raise RegistryUnavailableError()
            root = narrow(runtime, root_ref, NamingContext)
            if root is None:
                logger.error("NameService reference %s is not a naming context.", root_ref.key)
                raise RegistryUnavailableError("NameService is not a naming context")
        except (RegistryUnavailableError, TransportError, InvalidLocatorError) as exc:
            logger.error("Transport init: %s", exc)
            runtime.destroy()
            return False
        except BaseException:
            runtime.destroy()
            raise

        self._runtime = runtime
        self._root = root
        logger.info("Found NameService at %s.", root.ref.endpoint)
        return True

    def shutdown(self) -> None:
        """Release the registry root and destroy the runtime. Never raises.

        Calling it without a successful ``init()`` does nothing.
        """
        runtime = self._runtime
        if runtime is None:
            logger.debug("shutdown() called on an uninitialized TaskAccess")
            return
        self._root = None
        self._runtime = None
        try:
            runtime.destroy()
        except Exception:
            logger.exception("Transport shutdown: fault raised while destroying the runtime")
            return
        logger.info("Transport runtime destroyed.")

    def _require_root(self, operation: str) -> NamingContext:
        if self._root is None:
            raise NotInitializedError(operation)
        return self._root

    # ── Enumeration ───────────────────────────────────────────────────

    def iter_task_names(self) -> Iterator[str]:
        """Lazily yield the names bound under the tasks context.

        Yields nothing when the context does not exist.  Registry faults
        raise ``DiscoveryError``.

        Raises:
            NotInitializedError: If called before ``init()``.
        """
        root = self._require_root("iter_task_names")
        context_name = self._config.tasks_context
        lookup = lookup_context(root, Name.of(context_name))
        match lookup.status:
            case LookupStatus.NOT_FOUND:
                logger.info("No '%s' context in the registry; no tasks known.", context_name)
                return iter(())
            case LookupStatus.WRONG_TYPE:
                logger.error("'%s' is bound but is not a naming context.", context_name)
                raise DiscoveryError(code=DiscoveryErrorCode.WRONG_TYPE, name=context_name)
            case LookupStatus.FAULT:
                assert lookup.error is not None
                logger.error("Registry fault resolving '%s': %s", context_name, lookup.error)
                raise _discovery_error(lookup.error, context_name) from lookup.error
        assert lookup.context is not None
        return self._walk(lookup.context, context_name)

    def _walk(self, context: NamingContext, context_name: str) -> Iterator[str]:
        try:
            with contextlib.closing(iter_bindings(context, self._config.page_size)) as bindings:
                for binding in bindings:
                    yield binding.binding_name[0].id
        except TransportError as exc:
            logger.error("Registry fault listing '%s': %s", context_name, exc)
            raise _discovery_error(exc, context_name) from exc

    def list_task_names(self) -> list[str]:
        """Return every task name in discovery order (the registry's order)."""
        return list(self.iter_task_names())

    # ── Resolution ────────────────────────────────────────────────────

    def resolve[P: ObjectProxy](
        self,
        path: Name | str,
        proxy_cls: type[P],
        *,
        verify: Callable[[P], object] | None = None,
        label: str | None = None,
    ) -> P:
        """Resolve *path* from the registry root and narrow it to *proxy_cls*.

        *verify*, when given, is called on the narrowed proxy to force a round
        trip to the object before it is returned.  *label* is the name reported
        in ``DiscoveryError.name``; it defaults to the full path.

        Raises:
            NotInitializedError: If called before ``init()``.
            DiscoveryError: If the path is unbound, the object has the wrong
                type, or a transport fault occurs.
        """
        root = self._require_root("resolve")
        display = str(path)
        label = display if label is None else label
        try:
            name = path if isinstance(path, Name) else Name.from_path(path)
            proxy = narrow(root.runtime, root.resolve(name), proxy_cls)
            if proxy is None:
                logger.error("Object '%s' is not a %s.", display, proxy_cls.__name__)
                raise DiscoveryError(code=DiscoveryErrorCode.WRONG_TYPE, name=label)
            if verify is not None:
                verify(proxy)
        except DiscoveryError:
            raise
        except NameNotFoundError as exc:
            logger.info("No such name '%s' in the registry.", display)
            raise _discovery_error(exc, label) from exc
        except TransportError as exc:
            logger.error("Transport fault raised when resolving '%s': %s", display, exc)
            raise _discovery_error(exc, label) from exc
        except Exception:
            logger.exception("Unexpected error while resolving '%s'", display)
            raise
        return proxy

    def find_task(self, name: str) -> ControlTaskProxy:
        """Connect to the control task registered as *name*.

        The returned handle has answered ``get_name()`` at least once.

        Raises:
            NotInitializedError: If called before ``init()``.
            DiscoveryError: If the task does not exist, is not a control task,
                or cannot be reached.
        """
        self._require_root("find_task")
        try:
            path = Name.of(self._config.tasks_context, name)
        except InvalidNameError as exc:
            raise DiscoveryError(code=DiscoveryErrorCode.NOT_FOUND, name=name) from exc
        remote_names: list[str] = []
        try:
            task = self.resolve(
                path,
                ControlTaskProxy,
                verify=lambda proxy: remote_names.append(proxy.get_name()),
                label=name,
            )
        except DiscoveryError as exc:
            if exc.code is DiscoveryErrorCode.WRONG_TYPE:
                logger.error("Failed to acquire ControlTaskServer '%s'.", name)
            raise
        logger.info("Successfully connected to ControlTaskServer '%s'.", remote_names[0])
        return task


@contextlib.contextmanager
def open_task_access(
    args: list[str] | None = None,
    config: AccessConfig | None = None,
    *,
    channel_factory: ChannelFactory | None = None,
) -> Iterator[TaskAccess]:
    """Initialize a ``TaskAccess`` for the duration of a ``with`` block.

    Shutdown runs on every exit path, including exceptions raised inside the
    block.

    Raises:
        RegistryUnavailableError: If initialization fails.
    """
    access = TaskAccess(config, channel_factory=channel_factory)
    if not access.init(args):
        raise RegistryUnavailableError("could not initialize the transport runtime")
    try:
        yield access
    finally:
        access.shutdown()


__all__ = ["TaskAccess", "open_task_access"]
