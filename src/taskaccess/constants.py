"""Protocol constants shared across the client."""

from __future__ import annotations

NAME_SERVICE = "NameService"
DEFAULT_TASKS_CONTEXT = "ControlTasks"
DEFAULT_PAGE_SIZE = 10
DEFAULT_CALL_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 3.0
DEFAULT_IIOP_PORT = 2809  # omniNames default

NAMING_CONTEXT_TYPE_ID = "IDL:omg.org/CosNaming/NamingContext:1.0"
BINDING_ITERATOR_TYPE_ID = "IDL:omg.org/CosNaming/BindingIterator:1.0"
CONTROL_TASK_TYPE_ID = "IDL:RTT/Corba/ControlTask:1.0"

MAX_LINE_BYTES = 4 * 1024 * 1024  # 4 MiB per JSON line (without framing overhead)

RUNTIME_ARG_PREFIX = "-ORB"

__all__ = [
    "BINDING_ITERATOR_TYPE_ID",
    "CONTROL_TASK_TYPE_ID",
    "DEFAULT_CALL_TIMEOUT",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_IIOP_PORT",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_TASKS_CONTEXT",
    "MAX_LINE_BYTES",
    "NAME_SERVICE",
    "NAMING_CONTEXT_TYPE_ID",
    "RUNTIME_ARG_PREFIX",
]
