from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("media-canon.toml")
ENV_PREFIX = "MEDIA_CANON_"


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings sourced from environment variables."""

    config_path: Path = DEFAULT_CONFIG_PATH
    root: Path | None = None
    no_color: bool | None = None


def _parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def _read_settings() -> Settings:
    config_env = os.getenv(f"{ENV_PREFIX}CONFIG_PATH")
    root_env = os.getenv(f"{ENV_PREFIX}ROOT")
    no_color_env = os.getenv(f"{ENV_PREFIX}NO_COLOR")
    return Settings(
        config_path=Path(config_env) if config_env else DEFAULT_CONFIG_PATH,
        root=Path(root_env) if root_env else None,
        no_color=_parse_bool(no_color_env),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return _read_settings()


__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "Settings", "get_settings"]
