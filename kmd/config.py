"""Configuration using Pydantic Settings for automatic env var support.

Every program name, editor server name and the history file location the
handlers use comes from a ``KmdConfig`` instance passed in explicitly.
Values are resolved in this order (first wins):

1. ``KMD_*`` environment variables (``KMD_EDITOR=nvim-qt``)
2. the JSON config file (``--config``, ``$KMD_CONFIG`` or
   ``$XDG_CONFIG_HOME/kmd/config.json``)
3. the defaults below
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .errors import ConfigError
from .log import get_logger
from .paths import default_config_path, default_history_path

CONFIG_ENV = "KMD_CONFIG"

logger = get_logger(__name__)


class KmdConfig(BaseSettings):
    """Programs and names used by the command handlers."""

    history_file: Path = Field(default_factory=default_history_path)
    terminal: str = "x-terminal-emulator"
    shell: str = "bash"
    ide: str = "idea"
    opener: str = "xdg-open"
    editor: str = "gvim"
    diff_editor: str = "gvimdiff"
    server_query: str = "vim"
    editor_server: str = "EDITOR"
    diff_server: str = "DIFF"
    filemanager_server: str = "FILEMANAGER"
    audio_player: str = "audacious"
    video_player: str = "smplayer"
    timeout: Optional[float] = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="KMD_",
        extra="forbid",
    )

    @field_validator("history_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment must still win
        return (env_settings, init_settings)

    @classmethod
    def from_json_file(cls, path: Path) -> "KmdConfig":
        """Load configuration from a JSON file, raising ConfigError on bad input."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc


def resolve_config_path(explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit.expanduser()
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    candidate = default_config_path()
    if candidate.exists():
        return candidate
    return None


def load_config(path: Optional[Path] = None) -> KmdConfig:
    """Load configuration from an explicit path or the standard locations."""
    resolved = resolve_config_path(path)
    # Validate KMD_* on its own first so a bad variable is not blamed on the file
    try:
        from_env = KmdConfig()
    except ValidationError as exc:
        raise ConfigError(f"Invalid environment configuration: {exc}") from exc
    if resolved is None:
        return from_env
    logger.debug("config.load", path=str(resolved))
    return KmdConfig.from_json_file(resolved)


__all__ = ["CONFIG_ENV", "KmdConfig", "load_config", "resolve_config_path"]
