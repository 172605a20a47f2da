"""Shared test fixtures for the Hisame test suite."""

import logging
import socket
import threading
import time

import httpx
import pytest

from hisame.auth.server import CALLBACK_PORT

SAMPLE_TOKEN = "test_token_abc123"
BASE_URL = f"http://127.0.0.1:{CALLBACK_PORT}"

_HISAME_ENV_VARS = (
    "HISAME_LOG_LEVEL",
    "HISAME_CONFIG_FILE",
    "HISAME_ANIME__TITLE_LANGUAGE",
    "HISAME_ANIME__DISPLAY_LAYOUT",
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point every per-user directory at a temporary home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("APPDATA", str(home / "AppData" / "Roaming"))
    monkeypatch.setenv("LOCALAPPDATA", str(home / "AppData" / "Local"))
    for var in _HISAME_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # Keep pydantic-settings away from any .env in the checkout
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture(autouse=True)
def restore_app_logger():
    """Undo handler and level changes made to the ``hisame`` logger."""
    app_logger = logging.getLogger("hisame")
    level = app_logger.level
    handlers = list(app_logger.handlers)
    yield app_logger
    for handler in list(app_logger.handlers):
        if handler not in handlers:
            app_logger.removeHandler(handler)
            handler.close()
    app_logger.setLevel(level)


@pytest.fixture
def http():
    """HTTP client aimed at the callback server (ignores proxy settings)."""
    with httpx.Client(base_url=BASE_URL, trust_env=False, timeout=5.0) as client:
        yield client


@pytest.fixture
def post_token_later():
    """Factory that POSTs a token to /token from a background thread."""
    threads = []

    def _post(token=SAMPLE_TOKEN, delay=0.1):
        def run():
            time.sleep(delay)
            try:
                with httpx.Client(trust_env=False, timeout=5.0) as client:
                    client.post(f"{BASE_URL}/token", json={"token": token})
            except httpx.TransportError:
                pass  # server already gone

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        threads.append(thread)
        return thread

    yield _post
    for thread in threads:
        thread.join(timeout=5)


def port_is_closed(port: int = CALLBACK_PORT) -> bool:
    """True when nothing accepts connections on the port."""
    try:
        with socket.create_connection(("127.0.0.1", port), timeout=0.1):
            return False
    except OSError:
        return True
