"""
Data model for Apple Music metadata resolution.

Remote entities (albums, artists) as recovered from Apple Music pages, the
local library info a host hands in, and the result records handed back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from urllib.parse import urlsplit

APPLE_MUSIC_ROOT = "https://music.apple.com"
DEFAULT_COUNTRY = "us"
PROVIDER_NAME = "Apple Music"


class ItemType(StrEnum):
    """Kind of remote item being searched for or scraped."""

    ALBUM = "album"
    ARTIST = "artist"


class ProviderKey(StrEnum):
    """Keys under which a host stores Apple Music identifiers."""

    ALBUM = "ITunesAlbum"
    ALBUM_ARTIST = "ITunesAlbumArtist"
    ARTIST = "ITunesArtist"


# Path templates relative to https://music.apple.com/{country}
PROVIDER_URL_TEMPLATES: dict[ProviderKey, str] = {
    ProviderKey.ALBUM: "/album/{id}",
    ProviderKey.ALBUM_ARTIST: "/artist/{id}",
    ProviderKey.ARTIST: "/artist/{id}",
}


def apple_music_base_url(country: str = DEFAULT_COUNTRY) -> str:
    return f"{APPLE_MUSIC_ROOT}/{country}"


def provider_url(
    provider_ids: dict[str, str],
    key: ProviderKey,
    country: str = DEFAULT_COUNTRY,
) -> str | None:
    """
    Build the canonical Apple Music URL for a stored provider identifier.

    Args:
        provider_ids: Provider ids stored by the host for one library item
        key: Which identifier to use
        country: Storefront country code used in the URL

    Returns:
        Fetchable URL, or None if no identifier is stored under `key`
    """
    provider_id = provider_ids.get(key.value)
    if not provider_id:
        return None
    return apple_music_base_url(country) + PROVIDER_URL_TEMPLATES[key].format(id=provider_id)


def item_id_from_url(url: str) -> str:
    """Opaque id of a remote item: last path segment of its URL."""
    path = urlsplit(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1] if path else ""


class ImageType(StrEnum):
    """Image slot an image URL is meant for."""

    PRIMARY = "primary"


@dataclass
class RemoteSearchResult:
    """Single search hit shown to a user for manual matching."""

    name: str
    url: str = ""
    image_url: str | None = None
    overview: str | None = None
    premiere_date: date | None = None
    production_year: int | None = None
    artists: list[str] = field(default_factory=list)
    provider_ids: dict[str, str] = field(default_factory=dict)


@dataclass
class RemoteMusicItem:
    """Album or artist as scraped from Apple Music."""

    name: str = ""
    url: str = ""
    id: str = ""
    image_url: str | None = None
    about: str | None = None

    def has_metadata(self) -> bool:
        return bool(self.name) or self.about is not None

    def to_search_result(self) -> RemoteSearchResult:
        return RemoteSearchResult(
            name=self.name,
            url=self.url,
            image_url=self.image_url,
            overview=self.about,
        )


@dataclass
class Artist(RemoteMusicItem):
    """Apple Music artist."""

    def to_search_result(self) -> RemoteSearchResult:
        result = super().to_search_result()
        if self.id:
            result.provider_ids[ProviderKey.ARTIST.value] = self.id
        return result


@dataclass
class Album(RemoteMusicItem):
    """Apple Music album. The first artist is the album artist."""

    artists: list[Artist] = field(default_factory=list)
    release_date: date | None = None

    @property
    def production_year(self) -> int | None:
        return self.release_date.year if self.release_date else None

    def to_search_result(self) -> RemoteSearchResult:
        result = super().to_search_result()
        result.premiere_date = self.release_date
        result.production_year = self.production_year
        result.artists = [artist.name for artist in self.artists]
        if self.id:
            result.provider_ids[ProviderKey.ALBUM.value] = self.id
        return result


@dataclass
class SearchQuery:
    """Search term for one item type."""

    term: str
    item_type: ItemType


# Local library info handed in by the host


@dataclass
class TrackInfo:
    """Tags of one track belonging to a local album."""

    name: str = ""
    album: str | None = None
    album_artists: list[str] = field(default_factory=list)
    artists: list[str] = field(default_factory=list)


@dataclass
class AlbumInfo:
    """Local album as known to the library."""

    name: str = ""
    album_artists: list[str] = field(default_factory=list)
    year: int | None = None
    provider_ids: dict[str, str] = field(default_factory=dict)
    song_infos: list[TrackInfo] = field(default_factory=list)


@dataclass
class ArtistInfo:
    """Local artist as known to the library."""

    name: str = ""
    provider_ids: dict[str, str] = field(default_factory=dict)


# Results handed back to the host


@dataclass
class AlbumMetadata:
    name: str = ""
    overview: str | None = None
    production_year: int | None = None
    premiere_date: date | None = None
    artists: list[str] = field(default_factory=list)
    album_artists: list[str] = field(default_factory=list)
    provider_ids: dict[str, str] = field(default_factory=dict)


@dataclass
class ArtistMetadata:
    name: str = ""
    overview: str | None = None
    provider_ids: dict[str, str] = field(default_factory=dict)


@dataclass
class MetadataResult:
    """Outcome of a metadata lookup; `has_metadata=False` means nothing was found."""

    item: AlbumMetadata | ArtistMetadata | None = None
    has_metadata: bool = False
    remote_images: list[tuple[str, ImageType]] = field(default_factory=list)

    @classmethod
    def empty(cls) -> MetadataResult:
        return cls()


@dataclass
class RemoteImageInfo:
    """Image offered to the host for an item."""

    url: str
    thumbnail_url: str | None = None
    type: ImageType = ImageType.PRIMARY
    width: int | None = None
    height: int | None = None
    provider_name: str = PROVIDER_NAME


## Tests


def test_provider_url_templates():
    ids = {"ITunesAlbum": "1440833098", "ITunesArtist": "136975"}
    assert provider_url(ids, ProviderKey.ALBUM) == "https://music.apple.com/us/album/1440833098"
    assert provider_url(ids, ProviderKey.ARTIST, "gb") == "https://music.apple.com/gb/artist/136975"
    assert provider_url(ids, ProviderKey.ALBUM_ARTIST) is None
    assert provider_url({"ITunesAlbum": ""}, ProviderKey.ALBUM) is None


def test_item_id_from_url():
    assert item_id_from_url("https://music.apple.com/us/album/abbey-road/1441164426") == "1441164426"
    assert item_id_from_url("https://music.apple.com/us/album/x/123?i=456") == "123"
    assert item_id_from_url("https://music.apple.com/us/artist/the-beatles/136975/") == "136975"
    assert item_id_from_url("") == ""


def test_has_metadata():
    assert not Artist().has_metadata()
    assert Artist(name="Björk").has_metadata()
    assert Artist(about="").has_metadata()
    assert not Album(url="https://music.apple.com/us/album/x").has_metadata()


def test_album_search_result():
    album = Album(
        name="Homogenic",
        id="1440833098",
        release_date=date(1997, 9, 22),
        artists=[Artist(name="Björk")],
    )
    result = album.to_search_result()
    assert result.production_year == 1997
    assert result.artists == ["Björk"]
    assert result.provider_ids == {"ITunesAlbum": "1440833098"}
