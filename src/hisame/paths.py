"""Per-user directories for config, data and logs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "hisame"


def _env_dir(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value) if value else None


def user_config_dir() -> Path:
    """Base directory for user configuration (not including the app folder)."""
    if sys.platform == "win32":
        return _env_dir("APPDATA") or Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return _env_dir("XDG_CONFIG_HOME") or Path.home() / ".config"


def user_data_dir() -> Path:
    """Base directory for persistent user data."""
    if sys.platform == "win32":
        return _env_dir("APPDATA") or Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return _env_dir("XDG_DATA_HOME") or Path.home() / ".local" / "share"


def user_cache_dir() -> Path:
    """Base directory for disposable files such as logs."""
    if sys.platform == "win32":
        return _env_dir("LOCALAPPDATA") or Path.home() / "AppData" / "Local"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches"
    return _env_dir("XDG_CACHE_HOME") or Path.home() / ".cache"


def token_file_path() -> Path:
    return user_data_dir() / APP_DIR_NAME / "token"


def log_file_path() -> Path:
    return user_cache_dir() / APP_DIR_NAME / "log" / "hisame.log"


def default_config_file() -> Path:
    return user_config_dir() / APP_DIR_NAME / "config.yaml"
