"""Tests for the ``taskaccess`` command line."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from taskaccess import __version__
from taskaccess.cli.commands.root import cli
from taskaccess.errors import TransportTimeout
from taskaccess.paths import get_config_path
from taskaccess.transport.runtime import active_runtime
from tests.helpers.fake_registry import NAME_SERVICE_LOCATOR, TaskServant

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from tests.helpers.fake_registry import FakeChannelFactory, FakeRegistry

pytestmark = pytest.mark.integration

_INIT_REF = ["-ORBInitRef", f"NameService={NAME_SERVICE_LOCATOR}"]


@pytest.fixture(autouse=True)
def _fake_transport(mocker: MockerFixture, channels: FakeChannelFactory) -> None:
    """Route every runtime the CLI starts to the in-memory registry."""
    mocker.patch("taskaccess.transport.runtime._default_channel_factory", new=channels)
    mocker.patch("taskaccess.cli.commands.root.setup_logging")


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert f"taskaccess {__version__}" in result.output


def test_no_subcommand_prints_help() -> None:
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 0
    assert "tasks" in result.output
    assert "show-config" in result.output


class TestTasksCommand:
    def test_lists_tasks_with_state(self, registry: FakeRegistry) -> None:
        registry.add_task("alpha", state="Running")
        registry.add_task("beta", state="Stopped")

        result = CliRunner().invoke(cli, ["tasks", *_INIT_REF])

        assert result.exit_code == 0, result.output
        assert "alpha: Running" in result.output
        assert "beta: Stopped" in result.output
        assert active_runtime() is None

    def test_reports_empty_registry(self) -> None:
        result = CliRunner().invoke(cli, ["tasks", *_INIT_REF])

        assert result.exit_code == 0
        assert "No control tasks found." in result.output

    def test_name_service_from_environment(
        self, registry: FakeRegistry, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        registry.add_task("alpha")
        monkeypatch.setenv("TASKACCESS_NAME_SERVICE", NAME_SERVICE_LOCATOR)

        result = CliRunner().invoke(cli, ["tasks"])

        assert result.exit_code == 0, result.output
        assert "alpha: Running" in result.output

    def test_fails_without_name_service(self) -> None:
        result = CliRunner().invoke(cli, ["tasks"])

        assert result.exit_code == 1
        assert "Could not reach the naming service." in result.output

    def test_registry_fault_exits_with_error(self, registry: FakeRegistry) -> None:
        registry.add_task("alpha")
        registry.fail_on("next_n", lambda: TransportTimeout("registry stalled"))

        result = CliRunner().invoke(cli, ["tasks", *_INIT_REF])

        assert result.exit_code == 1
        assert "Error: ControlTasks" in result.output
        assert active_runtime() is None

    def test_warns_about_leftover_arguments(self) -> None:
        result = CliRunner().invoke(cli, ["tasks", *_INIT_REF, "stray"])

        assert result.exit_code == 0
        assert "Ignoring extra arguments: stray" in result.output


class TestFindCommand:
    def test_shows_task_details(self, registry: FakeRegistry) -> None:
        registry.bind(
            ("ControlTasks", "arm"),
            TaskServant(name="arm", state="PreOperational", description="Six-axis arm"),
        )

        result = CliRunner().invoke(cli, ["find", "arm", *_INIT_REF])

        assert result.exit_code == 0, result.output
        assert "arm" in result.output
        assert "Description: Six-axis arm" in result.output
        assert "State: PreOperational" in result.output

    def test_unknown_task_exits_with_error(self, registry: FakeRegistry) -> None:
        registry.add_task("alpha")

        result = CliRunner().invoke(cli, ["find", "gamma", *_INIT_REF])

        assert result.exit_code == 1
        assert "This server does not exist or has the wrong type." in result.output
        assert active_runtime() is None


class TestShowConfig:
    def test_prints_effective_configuration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TASKACCESS_PAGE_SIZE", "3")

        result = CliRunner().invoke(cli, ["show-config"])

        assert result.exit_code == 0
        assert "name_service = (unset)" in result.output
        assert "page_size = 3" in result.output
        assert "tasks_context = ControlTasks" in result.output

    def test_write_saves_config_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TASKACCESS_NAME_SERVICE", NAME_SERVICE_LOCATOR)
        path = get_config_path()
        path.unlink(missing_ok=True)

        try:
            result = CliRunner().invoke(cli, ["show-config", "--write"])

            assert result.exit_code == 0
            assert f"Wrote {path}" in result.output
            assert NAME_SERVICE_LOCATOR in path.read_text(encoding="utf-8")
        finally:
            path.unlink(missing_ok=True)

    def test_reads_explicit_config_file(self, tmp_path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text('[access]\ntasks_context = "Robots"\n', encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(path), "show-config"])

        assert result.exit_code == 0
        assert "tasks_context = Robots" in result.output

    def test_invalid_config_file_is_reported(self, tmp_path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[access]\npage_size = 0\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(path), "show-config"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
