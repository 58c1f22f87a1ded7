"""Configuration loader for taskaccess."""

from __future__ import annotations

import os
import tempfile
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

import tomlkit
from pydantic import BaseModel, Field, field_validator

from taskaccess.constants import (
    DEFAULT_CALL_TIMEOUT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TASKS_CONTEXT,
)
from taskaccess.paths import get_config_path

if TYPE_CHECKING:
    from collections.abc import Mapping

_ENV_PREFIX = "TASKACCESS_"
_ENV_FIELDS = ("name_service", "tasks_context", "page_size", "call_timeout", "connect_timeout")


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically to avoid partial/corrupt writes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class AccessConfig(BaseModel):
    """Settings for locating the registry and talking to it."""

    name_service: str | None = Field(
        default=None,
        description="Locator of the naming service, e.g. corbaloc:iiop:host:2809/NameService",
    )
    tasks_context: str = Field(
        default=DEFAULT_TASKS_CONTEXT,
        min_length=1,
        description="Naming context under which control tasks are bound",
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=1000,
        description="Bindings fetched per iterator round trip",
    )
    call_timeout: float = Field(
        default=DEFAULT_CALL_TIMEOUT,
        gt=0,
        description="Seconds to wait for each remote call",
    )
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="Seconds to wait when opening a connection",
    )

    @field_validator("tasks_context")
    @classmethod
    def validate_tasks_context(cls, value: str) -> str:
        if "/" in value:
            raise ValueError("tasks_context must be a single name segment")
        return value

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> AccessConfig:
        """Load configuration from the TOML file, then apply environment overrides."""
        if config_path is None:
            config_path = get_config_path()

        data: dict[str, object] = {}
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = dict(tomllib.load(f).get("access", {}))

        env = os.environ if environ is None else environ
        for field in _ENV_FIELDS:
            value = env.get(f"{_ENV_PREFIX}{field.upper()}")
            if value:
                data[field] = value
        return cls.model_validate(data)

    def save(self, path: Path) -> None:
        """Serialize current config to a TOML file."""
        doc = tomlkit.document()
        access_table = tomlkit.table()
        for key, value in self.model_dump().items():
            if value is not None:
                access_table[key] = value
        doc["access"] = access_table
        atomic_write(path, tomlkit.dumps(doc))


__all__ = ["AccessConfig", "atomic_write"]
