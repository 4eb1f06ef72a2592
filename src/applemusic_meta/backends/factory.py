"""
Factory functions for creating search backends.

Provides a unified interface for getting the appropriate backend
based on configuration.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from applemusic_meta.backends.base import MetadataBackend
from applemusic_meta.fetcher import DocumentFetcher, FetchMode
from applemusic_meta.models import DEFAULT_COUNTRY

if TYPE_CHECKING:
    from applemusic_meta.config import Config


class BackendMode(StrEnum):
    """Backend mode selection."""

    WEB = "web"
    SEARCH_API = "search_api"


def get_backend(
    mode: BackendMode | str = BackendMode.WEB,
    *,
    fetcher: DocumentFetcher,
    country: str = DEFAULT_COUNTRY,
) -> MetadataBackend:
    """
    Get a search backend based on mode.

    Args:
        mode: Backend mode ("web" or "search_api")
        fetcher: Document fetcher to use; the backend closes it on `close()`
        country: Storefront country code

    Returns:
        Configured MetadataBackend instance

    Raises:
        ValueError: If mode is not a known backend
    """
    mode_enum = BackendMode(mode) if isinstance(mode, str) else mode

    if mode_enum == BackendMode.WEB:
        from applemusic_meta.backends.web_backend import WebBackend

        return WebBackend(fetcher, country=country)

    elif mode_enum == BackendMode.SEARCH_API:
        from applemusic_meta.backends.search_api_backend import SearchAPIBackend

        return SearchAPIBackend(fetcher, country=country)

    else:
        raise ValueError(f"Unknown backend mode: {mode}")


def get_fetcher_from_config(config: Config, refresh: bool = False) -> DocumentFetcher:
    """
    Build a DocumentFetcher from a Config object.

    Offline mode wins over `refresh`; a disabled cache cannot be offline.
    """
    from applemusic_meta.http_cache import ResponseCache

    cache: ResponseCache | None = None
    if config.http_cache.enabled:
        cache = ResponseCache(
            cache_dir=config.http_cache.directory,
            ttl_seconds=config.http_cache.ttl_seconds,
        )

    if config.offline_mode:
        mode = FetchMode.OFFLINE
    elif refresh:
        mode = FetchMode.REFRESH
    else:
        mode = FetchMode.NORMAL

    return DocumentFetcher(
        cache=cache,
        mode=mode,
        timeout_s=config.apple_music.timeout_s,
        user_agent=config.apple_music.user_agent,
    )


def get_backend_from_config(config: object, refresh: bool = False) -> MetadataBackend:
    """
    Get a search backend from a Config object.

    Args:
        config: Config object with apple_music and http_cache settings
        refresh: Bypass cached responses and refetch

    Returns:
        Configured MetadataBackend instance
    """
    # Import here to avoid circular imports
    from applemusic_meta.config import Config

    if not isinstance(config, Config):
        raise TypeError(f"Expected Config, got {type(config)}")

    return get_backend(
        mode=config.apple_music.search_backend,
        fetcher=get_fetcher_from_config(config, refresh=refresh),
        country=config.apple_music.country,
    )


## Tests


def test_get_backend_web_mode():
    fetcher = DocumentFetcher()
    backend = get_backend(mode="web", fetcher=fetcher, country="gb")
    from applemusic_meta.backends.web_backend import WebBackend

    assert isinstance(backend, WebBackend)
    assert backend.country == "gb"
    assert backend.fetcher is fetcher


def test_get_backend_requires_fetcher():
    try:
        get_backend(mode="web")  # type: ignore[call-arg]
        raise AssertionError("Should have raised TypeError")
    except TypeError as e:
        assert "fetcher" in str(e)


def test_get_backend_unknown_mode():
    try:
        get_backend(mode="ldap", fetcher=DocumentFetcher())
        raise AssertionError("Should have raised ValueError")
    except ValueError as e:
        assert "ldap" in str(e)


def test_backend_mode_enum():
    assert BackendMode.WEB == "web"
    assert BackendMode.SEARCH_API == "search_api"
