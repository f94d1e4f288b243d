"""Configuration loading for gershell."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .paths import GershellPaths


DEFAULT_TIMEOUT = 30.0


class ConfigError(ValueError):
    """Raised when the configuration is missing or malformed."""


@dataclass
class Settings:
    gerrit_url: Optional[str] = None
    gerrit_user: Optional[str] = None
    gerrit_password: Optional[str] = None
    ssl_verify: bool = False
    timeout: float = DEFAULT_TIMEOUT
    debug: Any = None
    prompt_prefix: str = "gerrit"
    prompt_symbol: str = ">"

    def require(self) -> None:
        """Raise if required settings are missing."""
        missing = []
        if not self.gerrit_url:
            missing.append("GERRIT_URL")
        if not self.gerrit_user:
            missing.append("GERRIT_USER")
        if not self.gerrit_password:
            missing.append("GERRIT_PW")
        if missing:
            raise ConfigError(f"Please set {', '.join(missing)}")


def _load_env() -> Dict[str, Any]:
    return {
        "gerrit_url": os.getenv("GERRIT_URL"),
        "gerrit_user": os.getenv("GERRIT_USER"),
        "gerrit_password": os.getenv("GERRIT_PW"),
        "ssl_verify": _as_bool(os.getenv("GERRIT_SSL_VERIFY")),
        "timeout": _as_float(os.getenv("GERRIT_TIMEOUT")),
        "debug": os.getenv("GERSHELL_DEBUG"),
    }


def _as_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _load_file(paths: GershellPaths) -> Dict[str, Any]:
    cfg_path = paths.config_file
    if not cfg_path.exists():
        return {}
    try:
        loaded = json.loads(cfg_path.read_text(encoding="utf-8")) or {}
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read {cfg_path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"{cfg_path} must contain a JSON object")
    known = {f.name for f in fields(Settings)}
    return {key: value for key, value in loaded.items() if key in known}


def load_settings(paths: GershellPaths | None = None) -> Settings:
    """Load settings from env then the config file."""
    paths = paths or GershellPaths()
    env_values = _load_env()
    file_values = _load_file(paths)
    merged = {key: value for key, value in env_values.items() if value is not None}
    merged.update({key: value for key, value in file_values.items() if value is not None})
    return Settings(**merged)
