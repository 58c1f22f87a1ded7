"""XDG-compliant path helpers for taskaccess configuration."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir


def get_config_dir() -> Path:
    """Get the config directory for taskaccess (config.toml)."""
    override = os.environ.get("TASKACCESS_CONFIG_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_config_dir("taskaccess"))


def get_config_path() -> Path:
    """Get the path to the main config file."""
    return get_config_dir() / "config.toml"
