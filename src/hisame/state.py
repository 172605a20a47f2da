"""Application context shared by the presentation layer.

One :class:`AppContext` is built by the entry point and passed to whatever
needs it; there is no module-level instance.
"""

from __future__ import annotations

import logging
import threading

from .auth.storage import TokenStorage
from .config import HisameSettings
from .logs import parse_level, set_log_level

logger = logging.getLogger(__name__)


class AppContext:
    """Settings plus the current access token, guarded by a lock."""

    def __init__(self, settings: HisameSettings, token_storage: TokenStorage | None = None):
        self._lock = threading.RLock()
        self._settings = settings
        self._token_storage = token_storage or TokenStorage()
        self._auth_token = ""
        self._apply_log_level()

    def _apply_log_level(self) -> None:
        if not self._settings.log_level:
            return
        try:
            level = parse_level(self._settings.log_level)
        except ValueError:
            logger.warning(
                "Invalid log level %r in configuration; continuing with the current level",
                self._settings.log_level,
            )
            return
        # The environment variable still wins over the config file.
        set_log_level(level, bypass_env=False)

    @property
    def settings(self) -> HisameSettings:
        return self._settings

    @property
    def token_storage(self) -> TokenStorage:
        return self._token_storage

    @property
    def auth_token(self) -> str:
        with self._lock:
            return self._auth_token

    @auth_token.setter
    def auth_token(self, token: str) -> None:
        with self._lock:
            self._auth_token = token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)

    def load_auth_token(self) -> bool:
        """Load the stored token. Returns False when there is none."""
        with self._lock:
            token = self._token_storage.load()
            self._auth_token = token or ""
            return token is not None

    def save_auth_token(self) -> None:
        with self._lock:
            self._token_storage.save(self._auth_token)

    def clear_auth_token(self) -> None:
        with self._lock:
            self._auth_token = ""
            self._token_storage.clear()
