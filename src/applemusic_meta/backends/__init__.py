"""
Backend abstraction layer for Apple Music searches.

Supports two modes:
- web mode: Searches the music.apple.com search page (default)
- search_api mode: Searches with the iTunes Search API JSON endpoint
"""

from __future__ import annotations

from applemusic_meta.backends.base import MetadataBackend
from applemusic_meta.backends.factory import (
    BackendMode,
    get_backend,
    get_backend_from_config,
    get_fetcher_from_config,
)

__all__ = [
    "MetadataBackend",
    "get_backend",
    "get_backend_from_config",
    "get_fetcher_from_config",
    "BackendMode",
]
