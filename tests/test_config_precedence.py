"""Test configuration precedence: CLI > Env > TOML > Defaults."""

from __future__ import annotations

import tempfile
from pathlib import Path

from typer.testing import CliRunner

from applemusic_meta.backends import BackendMode
from applemusic_meta.cli import app, state
from applemusic_meta.config import Config

TOML_CONTENT = """
offline_mode = false

[http_cache]
directory = "/toml/cache"
ttl_seconds = 7200
enabled = false

[apple_music]
country = "GB"
search_backend = "search_api"
timeout_s = 12.5
max_concurrency = 2

[images]
primary_size = "600x600bb"
thumbnail_size = "50x50bb"

[logging]
level = "DEBUG"
"""


def _write_toml(content: str) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(content)
        return Path(f.name)


def test_toml_loading():
    """Test that TOML configuration is loaded correctly."""
    config_path = _write_toml(TOML_CONTENT)

    try:
        config = Config.load(config_path)

        assert config.http_cache.directory == Path("/toml/cache")
        assert config.http_cache.ttl_seconds == 7200
        assert config.http_cache.enabled is False

        assert config.apple_music.country == "gb"
        assert config.apple_music.search_backend == BackendMode.SEARCH_API
        assert config.apple_music.timeout_s == 12.5
        assert config.apple_music.max_concurrency == 2

        assert config.images.primary_size == "600x600bb"
        assert config.images.thumbnail_size == "50x50bb"
        assert config.logging.level == "DEBUG"
        assert config.offline_mode is False

    finally:
        config_path.unlink()


def test_missing_file_gives_defaults(tmp_path):
    config = Config.load(tmp_path / "absent.toml")
    assert config == Config()


def test_env_overrides_toml(monkeypatch):
    """Test that environment variables override TOML configuration."""
    config_path = _write_toml(TOML_CONTENT)

    try:
        monkeypatch.setenv("APPLEMUSIC_META_HTTP_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("APPLEMUSIC_META_HTTP_CACHE_ENABLED", "true")
        monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_COUNTRY", "jp")
        monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_SEARCH_BACKEND", "web")
        monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_MAX_CONCURRENCY", "8")
        monkeypatch.setenv("APPLEMUSIC_META_IMAGES_PRIMARY_SIZE", "3000x3000bb")
        monkeypatch.setenv("APPLEMUSIC_META_LOGGING_LEVEL", "ERROR")

        config = Config.load(config_path)

        assert config.http_cache.ttl_seconds == 60  # from env, not 7200 from TOML
        assert config.http_cache.enabled is True
        assert config.apple_music.country == "jp"
        assert config.apple_music.search_backend == BackendMode.WEB
        assert config.apple_music.max_concurrency == 8
        assert config.images.primary_size == "3000x3000bb"
        assert config.logging.level == "ERROR"
        # Untouched by env
        assert config.images.thumbnail_size == "50x50bb"
        assert config.apple_music.timeout_s == 12.5

    finally:
        config_path.unlink()


def test_cli_precedence_over_env_and_toml(monkeypatch, tmp_path):
    """Test that CLI arguments have highest precedence over env vars and TOML."""
    config_path = _write_toml(TOML_CONTENT)

    try:
        monkeypatch.setenv("APPLEMUSIC_META_HTTP_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_COUNTRY", "jp")
        monkeypatch.setenv("APPLEMUSIC_META_OFFLINE_MODE", "false")

        runner = CliRunner()
        result = runner.invoke(
            app,
            [
                "--config",
                str(config_path),
                "--cache-dir",
                str(tmp_path / "cli-cache"),
                "--cache-ttl",
                "1800",
                "--country",
                "FR",
                "--backend",
                "web",
                "--offline",
                "-o",
                "json",
                "cache",
                "status",
            ],
        )

        assert result.exit_code == 0, result.output
        config = state.config
        assert config.http_cache.directory == tmp_path / "cli-cache"
        assert config.http_cache.ttl_seconds == 1800
        assert config.apple_music.country == "fr"
        assert config.apple_music.search_backend == BackendMode.WEB
        assert config.offline_mode is True
        # Not overridden on the command line
        assert config.images.primary_size == "600x600bb"

    finally:
        config_path.unlink()


def test_offline_env_var(monkeypatch):
    monkeypatch.setenv("APPLEMUSIC_META_OFFLINE_MODE", "yes")
    assert Config.load().offline_mode is True


def test_invalid_env_value_is_rejected(monkeypatch):
    from pydantic import ValidationError

    monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_MAX_CONCURRENCY", "0")

    try:
        Config.load()
        raise AssertionError("Should have raised ValidationError")
    except ValidationError as e:
        assert "max_concurrency" in str(e)
