"""
Search terms for local library items.

Library tags are noisy: album-level artist tags are often missing and some
rippers store the artist name as the album name. The builder falls back to
track-level tags in those cases.
"""

from __future__ import annotations

import logging

from applemusic_meta.models import (
    DEFAULT_COUNTRY,
    AlbumInfo,
    ArtistInfo,
    ProviderKey,
    provider_url,
)

logger = logging.getLogger(__name__)


class InsufficientDataError(Exception):
    """Local info carries too little to build a search term."""


def _first(values: list[str]) -> str | None:
    return values[0] if values and values[0] else None


class SearchTermBuilder:
    """Builds search terms from local album and artist info."""

    def __init__(self, country: str = DEFAULT_COUNTRY):
        self.country = country

    def album_artist(self, info: AlbumInfo) -> str:
        """
        Album artist for a local album.

        Raises:
            InsufficientDataError: If neither the album nor its first track names an album artist
        """
        if artist := _first(info.album_artists):
            return artist
        if info.song_infos and (artist := _first(info.song_infos[0].album_artists)):
            return artist
        raise InsufficientDataError(f"No album artist for album {info.name!r}")

    def album_name(self, info: AlbumInfo, artist_name: str) -> str:
        # Some libraries tag the album with the artist's name
        if info.name.casefold() != artist_name.casefold():
            return info.name
        if info.song_infos and info.song_infos[0].album:
            return info.song_infos[0].album
        return info.name

    def album_term(self, info: AlbumInfo) -> str:
        """
        Search term for a local album: "{album artist} {album name}".

        Raises:
            InsufficientDataError: If no album artist is known
        """
        artist_name = self.album_artist(info)
        term = f"{artist_name} {self.album_name(info, artist_name)}"
        logger.debug(f"Album search term: {term!r}")
        return term

    def artist_term(self, info: ArtistInfo) -> str:
        """
        Search term for a local artist.

        A stored artist identifier yields its canonical URL, otherwise the
        bare artist name is used.

        Raises:
            InsufficientDataError: If there is neither an identifier nor a name
        """
        if url := provider_url(info.provider_ids, ProviderKey.ARTIST, self.country):
            return url
        if not info.name:
            raise InsufficientDataError("Artist has neither a name nor an Apple Music id")
        return info.name


## Tests


def test_album_term_uses_album_artist():
    info = AlbumInfo(name="Homogenic", album_artists=["Björk"])
    assert SearchTermBuilder().album_term(info) == "Björk Homogenic"


def test_artist_term_prefers_stored_id():
    builder = SearchTermBuilder(country="gb")
    info = ArtistInfo(name="Björk", provider_ids={"ITunesArtist": "295015"})
    assert builder.artist_term(info) == "https://music.apple.com/gb/artist/295015"
    assert builder.artist_term(ArtistInfo(name="Björk")) == "Björk"
