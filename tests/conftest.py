"""Pytest configuration and shared fixtures for applemusic-meta tests."""

from __future__ import annotations

from pathlib import Path

import pytest

# =============================================================================
# Fixture Paths
# =============================================================================

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CASSETTES_DIR = FIXTURES_DIR / "cassettes"


def load_fixture(source: str, fixture_name: str) -> str:
    """Load a fixture file as text."""
    fixture_path = CASSETTES_DIR / source / fixture_name
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")
    return fixture_path.read_text(encoding="utf-8")


@pytest.fixture
def load_page():
    """Loader for Apple Music page fixtures by file name."""

    def load(fixture_name: str) -> str:
        return load_fixture("applemusic", fixture_name)

    return load


# =============================================================================
# HTTP Cache Fixtures
# =============================================================================


@pytest.fixture
def tmp_cache(tmp_path):
    """Provide a temporary ResponseCache for tests."""
    from applemusic_meta.http_cache import ResponseCache

    return ResponseCache(tmp_path / "cache")


# =============================================================================
# Backend / Resolver Fixtures
# =============================================================================


@pytest.fixture
def fetcher():
    """Uncached DocumentFetcher; requests go to httpx_mock."""
    from applemusic_meta.fetcher import DocumentFetcher

    return DocumentFetcher()


@pytest.fixture
def web_backend(fetcher):
    from applemusic_meta.backends import get_backend

    return get_backend("web", fetcher=fetcher)


@pytest.fixture
def search_api_backend(fetcher):
    from applemusic_meta.backends import get_backend

    return get_backend("search_api", fetcher=fetcher)


@pytest.fixture
def term_builder():
    from applemusic_meta.search_terms import SearchTermBuilder

    return SearchTermBuilder()


@pytest.fixture
def artist_resolver(web_backend, term_builder):
    from applemusic_meta.resolver import ArtistResolver

    return ArtistResolver(web_backend, term_builder)


@pytest.fixture
def album_resolver(web_backend, artist_resolver, term_builder):
    from applemusic_meta.resolver import AlbumResolver

    return AlbumResolver(web_backend, artist_resolver, term_builder)
