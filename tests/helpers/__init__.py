"""Test helpers package."""

from tests.helpers.fake_registry import (
    NAME_SERVICE_LOCATOR,
    FakeChannel,
    FakeChannelFactory,
    FakeRegistry,
    RegistryServer,
    RemoteFault,
    UnixRegistryServer,
)

__all__ = [
    "NAME_SERVICE_LOCATOR",
    "FakeChannel",
    "FakeChannelFactory",
    "FakeRegistry",
    "RegistryServer",
    "RemoteFault",
    "UnixRegistryServer",
]
