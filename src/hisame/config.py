"""User configuration via pydantic-settings.

Settings come from (highest priority first) the YAML config file, ``HISAME_*``
environment variables, a local ``.env`` file and the defaults below. The
config file lives at ``$HISAME_CONFIG_FILE`` when set, otherwise at
``<user config dir>/hisame/config.yaml``.

Example config.yaml::

    logLevel: debug
    anime:
      titleLanguage: romaji
      displayLayout: grid
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings

from .paths import default_config_file

CONFIG_FILE_ENV_VAR = "HISAME_CONFIG_FILE"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """The config file exists but could not be read or parsed."""


class AnimeSettings(BaseModel):
    title_language: str = "english"
    display_layout: str = "list"


class HisameSettings(BaseSettings):
    log_level: str = "info"
    anime: AnimeSettings = AnimeSettings()

    model_config = {
        "env_prefix": "HISAME_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "extra": "ignore",
    }


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _normalise_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Accept the camelCase keys used in config.yaml as well as snake_case."""
    normalised: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _normalise_keys(value)
        normalised[_snake_case(str(key))] = value
    return normalised


def config_file_path() -> Path:
    """Resolve the config file location, expanding ``~`` and ``$VARS``."""
    env_path = os.environ.get(CONFIG_FILE_ENV_VAR)
    if env_path:
        return Path(os.path.expandvars(os.path.expanduser(env_path)))
    return default_config_file()


def load_settings(path: Path | str | None = None) -> HisameSettings:
    """Load settings from the config file.

    A missing file is not an error; the defaults (plus any environment
    overrides) are returned.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or holds
            values of the wrong type
    """
    path = Path(path) if path else config_file_path()
    if not path.exists():
        logger.debug("No config file at %s; using defaults", path)
        return HisameSettings()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    try:
        settings = HisameSettings(**_normalise_keys(raw))
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return settings
