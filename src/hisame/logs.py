"""Logging setup.

Log records go to stderr and, when the cache directory is writable, to
``<cache dir>/hisame/log/hisame.log``. The ``HISAME_LOG_LEVEL`` environment
variable takes precedence over the level in the user's config file.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Callable

from .paths import log_file_path

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVEL_ENV_VAR = "HISAME_LOG_LEVEL"
DEFAULT_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "panic": logging.CRITICAL,
}

logger = logging.getLogger(__name__)


def app_logger() -> logging.Logger:
    """The package-level logger that handlers and levels are attached to."""
    return logging.getLogger("hisame")


def parse_level(name: str) -> int:
    """Convert a level name such as ``"debug"`` or ``"WARN"`` to a logging level.

    Raises:
        ValueError: If the name is not a known level
    """
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"invalid log level: {name!r}") from None


def level_from_env() -> int | None:
    """Level from ``HISAME_LOG_LEVEL``, or None when the variable is unset.

    Raises:
        ValueError: If the variable is set to an unknown level
    """
    value = os.environ.get(LOG_LEVEL_ENV_VAR, "")
    if not value:
        return None
    return parse_level(value)


def set_log_level(level: int, bypass_env: bool = False) -> None:
    """Change the application log level.

    Unless ``bypass_env`` is set, a valid ``HISAME_LOG_LEVEL`` wins and the
    call only logs that the level was left alone.
    """
    root = app_logger()
    if not bypass_env:
        try:
            env_level = level_from_env()
        except ValueError:
            env_level = None
        if env_level is not None:
            logger.info(
                "Log level not changed due to %s being set. Current level: %s",
                LOG_LEVEL_ENV_VAR,
                logging.getLevelName(root.level),
            )
            return
    logger.info("Setting log level to %s", logging.getLevelName(level))
    root.setLevel(level)


def init_logging(log_file: Path | None = None) -> Callable[[], None]:
    """Configure handlers on the ``hisame`` logger.

    Args:
        log_file: Override for the log file location (default: user cache dir)

    Returns:
        A cleanup callable to run on application exit
    """
    root = app_logger()
    formatter = logging.Formatter(LOG_FORMAT)

    level = DEFAULT_LEVEL
    invalid_env = False
    try:
        env_level = level_from_env()
    except ValueError:
        invalid_env = True
    else:
        if env_level is not None:
            level = env_level
    root.setLevel(level)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler: logging.FileHandler | None = None
    path = log_file or log_file_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning("Could not open log file; file logging will be disabled: %s", e)
    else:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        logger.debug("Logging to file %s", path)

    if invalid_env:
        logger.warning(
            "Invalid log level %r in environment variable %s; using default level %s.",
            os.environ.get(LOG_LEVEL_ENV_VAR),
            LOG_LEVEL_ENV_VAR,
            logging.getLevelName(DEFAULT_LEVEL),
        )

    logger.info("===== Welcome to Hisame (Log Level: %s) =====", logging.getLevelName(level))

    def cleanup() -> None:
        logger.info("Hisame is shutting down")
        root.removeHandler(stream_handler)
        if file_handler is not None:
            root.removeHandler(file_handler)
            file_handler.close()

    return cleanup
