"""Tests for the application context."""

import logging
import threading

import pytest

from hisame.auth.storage import TokenStorage
from hisame.config import HisameSettings
from hisame.logs import LOG_LEVEL_ENV_VAR, TRACE, app_logger
from hisame.state import AppContext


@pytest.fixture
def storage(tmp_path):
    return TokenStorage(path=tmp_path / "token")


class TestAppContext:
    """Tests for AppContext."""

    def test_settings(self, storage):
        settings = HisameSettings()
        context = AppContext(settings, storage)

        assert context.settings is settings
        assert context.token_storage is storage

    def test_applies_configured_log_level(self, storage):
        AppContext(HisameSettings(log_level="trace"), storage)
        assert app_logger().level == TRACE

    def test_env_log_level_wins(self, storage, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "error")
        app_logger().setLevel(logging.ERROR)

        AppContext(HisameSettings(log_level="debug"), storage)

        assert app_logger().level == logging.ERROR

    def test_invalid_log_level_is_ignored(self, storage, caplog):
        app_logger().setLevel(logging.INFO)

        with caplog.at_level(logging.WARNING, logger="hisame"):
            AppContext(HisameSettings(log_level="chatty"), storage)

        assert "Invalid log level 'chatty'" in caplog.text

    def test_separate_contexts_are_independent(self, storage):
        """Contexts are plain objects, not a shared singleton."""
        first = AppContext(HisameSettings(), storage)
        second = AppContext(HisameSettings(), storage)

        first.auth_token = "abc"

        assert first is not second
        assert second.auth_token == ""

    def test_auth_token_roundtrip_through_storage(self, storage):
        context = AppContext(HisameSettings(), storage)
        context.auth_token = "abc123"
        context.save_auth_token()

        restored = AppContext(HisameSettings(), storage)
        assert restored.load_auth_token() is True
        assert restored.auth_token == "abc123"
        assert restored.is_authenticated is True

    def test_load_without_token_file(self, storage):
        context = AppContext(HisameSettings(), storage)

        assert context.load_auth_token() is False
        assert context.auth_token == ""
        assert context.is_authenticated is False

    def test_clear_auth_token(self, storage):
        context = AppContext(HisameSettings(), storage)
        context.auth_token = "abc123"
        context.save_auth_token()

        context.clear_auth_token()

        assert context.auth_token == ""
        assert storage.exists() is False

    def test_concurrent_token_updates(self, storage):
        context = AppContext(HisameSettings(), storage)

        def writer(value):
            for _ in range(200):
                context.auth_token = value

        threads = [threading.Thread(target=writer, args=(f"t{i}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert context.auth_token in {"t0", "t1", "t2", "t3"}
