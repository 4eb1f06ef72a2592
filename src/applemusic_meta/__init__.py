__all__ = (
    "cli",
    "Config",
    "ResponseCache",
    "DocumentFetcher",
    "FetchError",
    "FetchMode",
    # Model
    "Album",
    "AlbumInfo",
    "AlbumMetadata",
    "Artist",
    "ArtistInfo",
    "ArtistMetadata",
    "ImageType",
    "ItemType",
    "MetadataResult",
    "ProviderKey",
    "RemoteImageInfo",
    "RemoteSearchResult",
    "TrackInfo",
    # Resolution
    "AlbumResolver",
    "ArtistResolver",
    "InsufficientDataError",
    "MetadataBackend",
    "SearchTermBuilder",
    "create_resolvers",
    "get_backend",
)

from applemusic_meta.backends import MetadataBackend, get_backend
from applemusic_meta.cli import cli
from applemusic_meta.config import Config
from applemusic_meta.fetcher import DocumentFetcher, FetchError, FetchMode
from applemusic_meta.http_cache import ResponseCache
from applemusic_meta.models import (
    Album,
    AlbumInfo,
    AlbumMetadata,
    Artist,
    ArtistInfo,
    ArtistMetadata,
    ImageType,
    ItemType,
    MetadataResult,
    ProviderKey,
    RemoteImageInfo,
    RemoteSearchResult,
    TrackInfo,
)
from applemusic_meta.resolver import AlbumResolver, ArtistResolver, create_resolvers
from applemusic_meta.search_terms import InsufficientDataError, SearchTermBuilder
