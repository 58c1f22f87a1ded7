from __future__ import annotations

import logging

import pytest

from taskaccess.config import AccessConfig
from taskaccess.errors import (
    NameNotFoundError,
    RemoteSystemError,
    RuntimeActiveError,
    RuntimeArgumentError,
    TransportClosedError,
)
from taskaccess.transport.contracts import ObjectRef
from taskaccess.transport.runtime import TransportRuntime, active_runtime, strip_runtime_args
from tests.helpers.fake_registry import NAME_SERVICE_LOCATOR, FakeChannelFactory, FakeRegistry


def _runtime(channels: FakeChannelFactory | None = None, **overrides: object) -> TransportRuntime:
    options: dict[str, object] = {"call_timeout": 2.0, "connect_timeout": 1.0}
    options.update(overrides)
    return TransportRuntime(channel_factory=channels, **options)  # type: ignore[arg-type]


def test_strip_runtime_args_removes_options_in_place() -> None:
    args = [
        "prog",
        "-ORBInitRef",
        "NameService=corbaloc:iiop:host:2809/NameService",
        "--verbose",
        "-ORBclientCallTimeOutPeriod",
        "1500",
        "-ORBtraceLevel",
        "10",
        "extra",
    ]

    options = strip_runtime_args(args)

    assert args == ["prog", "--verbose", "extra"]
    assert options.init_refs == {"NameService": "corbaloc:iiop:host:2809/NameService"}
    assert options.call_timeout == 1.5
    assert options.trace_level == 10


def test_strip_runtime_args_drops_unknown_runtime_options(caplog) -> None:
    args = ["-ORBgiopMaxMsgSize", "2097152", "keep"]

    strip_runtime_args(args)

    assert args == ["keep"]
    assert "Ignoring unsupported runtime option -ORBgiopMaxMsgSize" in caplog.text


@pytest.mark.parametrize(
    "args",
    [
        ["-ORBInitRef"],
        ["-ORBInitRef", "NameService"],
        ["-ORBclientCallTimeOutPeriod", "soon"],
        ["-ORBclientConnectTimeOutPeriod", "0"],
        ["-ORBtraceLevel", "high"],
    ],
)
def test_strip_runtime_args_rejects_malformed_values(args: list[str]) -> None:
    with pytest.raises(RuntimeArgumentError):
        strip_runtime_args(args)


def test_command_line_init_ref_overrides_config() -> None:
    config = AccessConfig(name_service="corbaloc:iiop:from-config:2809/NameService")
    args = ["-ORBInitRef", "NameService=corbaloc:iiop:from-args:2809/NameService"]

    runtime = TransportRuntime.from_args(args, config)
    try:
        ref = runtime.resolve_initial_references("NameService")
    finally:
        runtime.destroy()

    assert ref == ObjectRef(key="NameService", endpoint="corbaloc:iiop:from-args:2809")


def test_default_init_ref_appends_service_name() -> None:
    runtime = TransportRuntime.from_args(
        ["-ORBDefaultInitRef", "corbaloc:iiop:registry:4000/"],
        AccessConfig(),
    )
    try:
        ref = runtime.resolve_initial_references("NameService")
    finally:
        runtime.destroy()

    assert ref is not None
    assert ref.key == "NameService"
    assert ref.endpoint == "corbaloc:iiop:registry:4000"


def test_missing_initial_reference_is_nil() -> None:
    runtime = TransportRuntime.from_args([], AccessConfig())
    try:
        assert runtime.resolve_initial_references("NameService") is None
    finally:
        runtime.destroy()


def test_timeouts_from_args_take_precedence_over_config() -> None:
    config = AccessConfig(call_timeout=9.0, connect_timeout=8.0)

    runtime = TransportRuntime.from_args(["-ORBclientConnectTimeOutPeriod", "250"], config)
    try:
        assert runtime.call_timeout == 9.0
        assert runtime.connect_timeout == 0.25
    finally:
        runtime.destroy()


def test_second_runtime_is_rejected_until_first_is_destroyed() -> None:
    first = _runtime()
    with pytest.raises(RuntimeActiveError):
        _runtime()
    assert active_runtime() is first

    first.destroy()
    second = _runtime()
    assert active_runtime() is second
    second.destroy()
    assert active_runtime() is None


def test_destroy_closes_channels_and_is_idempotent(registry: FakeRegistry) -> None:
    channels = FakeChannelFactory(registry)
    runtime = _runtime(channels, init_refs={"NameService": NAME_SERVICE_LOCATOR})
    ref = runtime.resolve_initial_references("NameService")
    assert ref is not None
    assert runtime.is_a(ref, "IDL:omg.org/CosNaming/NamingContext:1.0")

    runtime.destroy()
    runtime.destroy()

    assert runtime.is_destroyed
    assert [channel.closed for channel in channels.channels] == [True]
    with pytest.raises(TransportClosedError):
        runtime.invoke(ref, "_is_a", {"type_id": "x"})


def test_invoke_reuses_one_channel_per_endpoint_and_applies_call_timeout(
    registry: FakeRegistry,
) -> None:
    channels = FakeChannelFactory(registry)
    runtime = _runtime(channels, call_timeout=4.5, init_refs={"NameService": NAME_SERVICE_LOCATOR})
    try:
        ref = runtime.resolve_initial_references("NameService")
        assert ref is not None
        runtime.is_a(ref, "a")
        runtime.is_a(ref, "b")
    finally:
        runtime.destroy()

    assert len(channels.channels) == 1
    assert channels.channels[0].timeouts == [4.5, 4.5]


def test_invoke_raises_wire_errors(registry: FakeRegistry) -> None:
    init_refs = {"NameService": NAME_SERVICE_LOCATOR}
    runtime = _runtime(FakeChannelFactory(registry), init_refs=init_refs)
    try:
        root = runtime.resolve_initial_references("NameService")
        assert root is not None
        with pytest.raises(NameNotFoundError):
            runtime.invoke(root, "resolve", {"name": [{"id": "missing", "kind": ""}]})
        with pytest.raises(RemoteSystemError) as excinfo:
            runtime.invoke(root, "getName")
    finally:
        runtime.destroy()

    assert excinfo.value.code == "BAD_OPERATION"


def test_adopt_fills_missing_endpoint_from_origin() -> None:
    runtime = _runtime()
    origin = ObjectRef(key="NameService", endpoint="corbaloc:iiop:host:1")
    try:
        adopted = runtime.adopt(ObjectRef(key="obj-1"), origin)
        foreign = runtime.adopt(ObjectRef(key="obj-2", endpoint="corbaloc:iiop:other:2"), origin)
    finally:
        runtime.destroy()

    assert adopted.endpoint == "corbaloc:iiop:host:1"
    assert foreign.endpoint == "corbaloc:iiop:other:2"


def test_trace_level_is_restored_on_destroy() -> None:
    trace_logger = logging.getLogger("taskaccess.transport")
    before = trace_logger.level

    runtime = _runtime(trace_level=5)
    assert trace_logger.level == logging.DEBUG
    runtime.destroy()

    assert trace_logger.level == before

    untraced = _runtime()
    try:
        assert trace_logger.level == before
    finally:
        untraced.destroy()
