"""On-disk storage for the AniList access token.

The token is kept as a single plaintext file in the per-user data directory
(``~/.local/share/hisame/token`` on Linux) and protected by file permissions
(0o600). Nothing but the raw token string is persisted.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..paths import token_file_path

logger = logging.getLogger(__name__)


class TokenStorage:
    """Load, save and clear the stored access token.

    Usage:
        storage = TokenStorage()

        token = storage.load()       # None when not logged in
        storage.save("eyJ0eXAi...")
        storage.clear()
    """

    def __init__(self, path: Path | str | None = None):
        """Initialize token storage.

        Args:
            path: Token file location (default: per-user data dir)
        """
        self.path = Path(path) if path else token_file_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> str | None:
        """Read the stored token.

        Returns:
            The token, or None when no token file exists

        Raises:
            OSError: If the file exists but cannot be read
        """
        try:
            token = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No token file found; starting without authentication")
            return None
        except OSError as e:
            logger.error("Failed to read token file: %s", e)
            raise

        logger.info("Authentication token loaded from disk")
        return token

    def save(self, token: str) -> None:
        """Write the token, creating the data directory if needed."""
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(token)
            # Set restrictive permissions
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.error("Failed to write token file: %s", e)
            raise

        logger.info("Authentication token saved to disk")

    def clear(self) -> None:
        """Delete the token file. A missing file is not an error."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to delete token file: %s", e)
            raise

        logger.info("Authentication token file deleted")
