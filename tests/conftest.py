"""Pytest fixtures for taskaccess tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from taskaccess.access import TaskAccess
from taskaccess.config import AccessConfig
from taskaccess.transport.runtime import active_runtime
from tests.helpers.fake_registry import NAME_SERVICE_LOCATOR, FakeChannelFactory, FakeRegistry

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="taskaccess-tests-"))
os.environ["TASKACCESS_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")
for _name in (
    "TASKACCESS_NAME_SERVICE",
    "TASKACCESS_TASKS_CONTEXT",
    "TASKACCESS_PAGE_SIZE",
    "TASKACCESS_CALL_TIMEOUT",
    "TASKACCESS_CONNECT_TIMEOUT",
):
    os.environ.pop(_name, None)

if TYPE_CHECKING:
    from collections.abc import Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture(autouse=True)
def _release_runtime() -> Generator[None, None, None]:
    """Make sure no test leaks the process-wide transport runtime."""
    yield
    runtime = active_runtime()
    if runtime is not None:
        runtime.destroy()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def channels(registry: FakeRegistry) -> FakeChannelFactory:
    return FakeChannelFactory(registry)


@pytest.fixture
def config() -> AccessConfig:
    return AccessConfig(name_service=NAME_SERVICE_LOCATOR)


@pytest.fixture
def access(
    config: AccessConfig,
    channels: FakeChannelFactory,
) -> Generator[TaskAccess, None, None]:
    """An initialized ``TaskAccess`` talking to the in-memory registry."""
    task_access = TaskAccess(config, channel_factory=channels)
    assert task_access.init()
    yield task_access
    task_access.shutdown()
