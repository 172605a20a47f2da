"""Tests for config and version CLI commands."""

from typer.testing import CliRunner

from hisame import __version__
from hisame.cli import app
from hisame.config import CONFIG_FILE_ENV_VAR

runner = CliRunner()


class TestConfigShow:
    """Tests for `hisame config show`."""

    def test_defaults(self):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "english" in result.output
        assert "list" in result.output

    def test_reads_config_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("anime:\n  titleLanguage: romaji\n  displayLayout: grid\n")
        monkeypatch.setenv(CONFIG_FILE_ENV_VAR, str(path))

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "romaji" in result.output
        assert "grid" in result.output

    def test_broken_config_falls_back_to_defaults(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("anime: [broken\n")
        monkeypatch.setenv(CONFIG_FILE_ENV_VAR, str(path))

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "english" in result.output


class TestVersion:
    """Tests for `hisame version`."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
