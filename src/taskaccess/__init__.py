"""taskaccess: discover control task servers through a naming registry and connect to them."""

from taskaccess.access import TaskAccess, open_task_access
from taskaccess.config import AccessConfig
from taskaccess.errors import DiscoveryError, DiscoveryErrorCode, NotInitializedError
from taskaccess.proxies import ControlTaskProxy

__version__ = "0.1.0"

__all__ = [
    "AccessConfig",
    "ControlTaskProxy",
    "DiscoveryError",
    "DiscoveryErrorCode",
    "NotInitializedError",
    "TaskAccess",
    "open_task_access",
]
