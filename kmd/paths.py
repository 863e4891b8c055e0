"""Shared filesystem paths for kmd."""

from __future__ import annotations

import os
from pathlib import Path


def _xdg_path(env_var: str, fallback: Path) -> Path:
    raw = os.environ.get(env_var)
    if raw:
        return Path(raw).expanduser()
    return fallback


def config_home() -> Path:
    return _xdg_path("XDG_CONFIG_HOME", Path.home() / ".config") / "kmd"


def default_config_path() -> Path:
    return config_home() / "config.json"


def default_history_path() -> Path:
    return Path.home() / ".bash_history"


__all__ = ["config_home", "default_config_path", "default_history_path"]
