from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from applemusic_meta.backends.factory import BackendMode
from applemusic_meta.fetcher import DEFAULT_USER_AGENT
from applemusic_meta.images import ImageSize


class HttpCacheConfig(BaseModel):
    """HTTP response cache configuration."""

    directory: Path = Field(default=Path(".cache/applemusic"))
    ttl_seconds: int = Field(default=3600, ge=0)  # 1 hour
    enabled: bool = Field(default=True)


class AppleMusicConfig(BaseModel):
    """Apple Music access configuration."""

    country: str = Field(default="us", min_length=2, max_length=2)  # storefront
    search_backend: BackendMode = Field(default=BackendMode.WEB)
    timeout_s: float = Field(default=30.0, ge=1.0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    # Concurrent artist page fetches per album
    max_concurrency: int = Field(default=4, ge=1)

    @field_validator("country")
    @classmethod
    def _lowercase_country(cls, value: str) -> str:
        return value.lower()


class ImagesConfig(BaseModel):
    """Artwork size tokens, e.g. "1400x1400cc"."""

    primary_size: str = Field(default=str(ImageSize(1400, 1400)))
    thumbnail_size: str = Field(default=str(ImageSize(100, 100)))

    @field_validator("primary_size", "thumbnail_size")
    @classmethod
    def _valid_token(cls, value: str) -> str:
        ImageSize.parse(value)
        return value


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(message)s")


class Config(BaseModel):
    """
    Main configuration for applemusic-meta.

    Loads from TOML file with optional environment variable overrides.
    """

    http_cache: HttpCacheConfig = Field(default_factory=HttpCacheConfig)
    apple_music: AppleMusicConfig = Field(default_factory=AppleMusicConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    offline_mode: bool = Field(default=False)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        APPLEMUSIC_META_<SECTION>_<KEY> (e.g., APPLEMUSIC_META_HTTP_CACHE_TTL_SECONDS)

        All values are gathered into a single dictionary first, then validated
        by Pydantic to ensure consistent type checking and coercion.
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @staticmethod
    def _section(config_dict: dict[str, object], name: str) -> dict[str, object]:
        section = config_dict.setdefault(name, {})
        if not isinstance(section, dict):
            section = {}
            config_dict[name] = section
        return section

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "APPLEMUSIC_META_"

        def flag(value: str) -> bool:
            return value.lower() in ("true", "1", "yes")

        if offline := os.getenv(f"{env_prefix}OFFLINE_MODE"):
            config_dict["offline_mode"] = flag(offline)

        http_cache = cls._section(config_dict, "http_cache")
        if cache_dir := os.getenv(f"{env_prefix}HTTP_CACHE_DIRECTORY"):
            http_cache["directory"] = cache_dir
        if cache_ttl := os.getenv(f"{env_prefix}HTTP_CACHE_TTL_SECONDS"):
            http_cache["ttl_seconds"] = cache_ttl
        if cache_enabled := os.getenv(f"{env_prefix}HTTP_CACHE_ENABLED"):
            http_cache["enabled"] = flag(cache_enabled)

        apple_music = cls._section(config_dict, "apple_music")
        if country := os.getenv(f"{env_prefix}APPLE_MUSIC_COUNTRY"):
            apple_music["country"] = country
        if backend := os.getenv(f"{env_prefix}APPLE_MUSIC_SEARCH_BACKEND"):
            apple_music["search_backend"] = backend
        if timeout := os.getenv(f"{env_prefix}APPLE_MUSIC_TIMEOUT_S"):
            apple_music["timeout_s"] = timeout
        if user_agent := os.getenv(f"{env_prefix}APPLE_MUSIC_USER_AGENT"):
            apple_music["user_agent"] = user_agent
        if concurrency := os.getenv(f"{env_prefix}APPLE_MUSIC_MAX_CONCURRENCY"):
            apple_music["max_concurrency"] = concurrency

        images = cls._section(config_dict, "images")
        if primary := os.getenv(f"{env_prefix}IMAGES_PRIMARY_SIZE"):
            images["primary_size"] = primary
        if thumbnail := os.getenv(f"{env_prefix}IMAGES_THUMBNAIL_SIZE"):
            images["thumbnail_size"] = thumbnail

        logging_section = cls._section(config_dict, "logging")
        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_section["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_section["format"] = log_format

        return config_dict


## Tests


def test_config_defaults():
    config = Config()
    assert config.http_cache.ttl_seconds == 3600
    assert config.apple_music.country == "us"
    assert config.apple_music.search_backend == BackendMode.WEB
    assert config.apple_music.max_concurrency == 4
    assert config.images.primary_size == "1400x1400cc"
    assert config.images.thumbnail_size == "100x100cc"
    assert config.offline_mode is False


def test_config_env_overrides(monkeypatch):
    monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_COUNTRY", "GB")
    monkeypatch.setenv("APPLEMUSIC_META_APPLE_MUSIC_SEARCH_BACKEND", "search_api")
    monkeypatch.setenv("APPLEMUSIC_META_HTTP_CACHE_ENABLED", "no")
    monkeypatch.setenv("APPLEMUSIC_META_OFFLINE_MODE", "1")

    config = Config.load()
    assert config.apple_music.country == "gb"
    assert config.apple_music.search_backend == BackendMode.SEARCH_API
    assert config.http_cache.enabled is False
    assert config.offline_mode is True


def test_config_rejects_bad_image_token():
    from pydantic import ValidationError

    try:
        Config.model_validate({"images": {"primary_size": "huge"}})
        raise AssertionError("Should have raised ValidationError")
    except ValidationError as e:
        assert "primary_size" in str(e)
