"""
iTunes Search API backend.

Uses the public JSON endpoint at itunes.apple.com to find candidates. Its
payloads are thinner than the web pages (no bios, small artwork), so items
are still read from the linked Apple Music pages via `scrape`; the JSON
records are available through `search_items` for callers that only need
names, dates and artwork.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from urllib.parse import quote

from applemusic_meta.backends.base import MetadataBackend
from applemusic_meta.models import (
    Album,
    Artist,
    ItemType,
    RemoteMusicItem,
    SearchQuery,
    item_id_from_url,
)

logger = logging.getLogger(__name__)

SEARCH_API_URL = "https://itunes.apple.com/search"

# (entity, attribute) query parameters per item type
SEARCH_PARAMS: dict[ItemType, tuple[str, str]] = {
    ItemType.ALBUM: ("album", "albumTerm"),
    ItemType.ARTIST: ("musicArtist", "artistTerm"),
}


def _parse_release_date(value: Any) -> date | None:
    """Parse an ISO timestamp such as "1997-09-22T07:00:00Z"."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        logger.debug(f"Invalid releaseDate in search result: {value!r}")
        return None


def album_from_result(result: dict[str, Any]) -> Album | None:
    """Build an Album from one Search API result; None if it has no name or link."""
    name = result.get("collectionName")
    url = result.get("collectionViewUrl")
    if not name or not url:
        return None

    artists: list[Artist] = []
    if artist_name := result.get("artistName"):
        artist_url = result.get("artistViewUrl") or ""
        artists.append(Artist(name=artist_name, url=artist_url, id=item_id_from_url(artist_url)))

    return Album(
        name=name,
        url=url,
        id=item_id_from_url(url),
        image_url=result.get("artworkUrl100"),
        artists=artists,
        release_date=_parse_release_date(result.get("releaseDate")),
    )


def artist_from_result(result: dict[str, Any]) -> Artist | None:
    """Build an Artist from one Search API result; None if it has no name or link."""
    name = result.get("artistName")
    url = result.get("artistLinkUrl") or result.get("artistViewUrl")
    if not name or not url:
        return None
    return Artist(name=name, url=url, id=item_id_from_url(url))


class SearchAPIBackend(MetadataBackend):
    """Backend that searches with the iTunes Search API."""

    def search_url(self, term: str, item_type: ItemType) -> str:
        entity, attribute = SEARCH_PARAMS[item_type]
        return (
            f"{SEARCH_API_URL}?term={quote(term, safe='')}"
            f"&media=music&entity={entity}&attribute={attribute}"
        )

    async def search_items(self, query: SearchQuery) -> list[RemoteMusicItem]:
        """
        Search and return the JSON records as items.

        Records lacking a name or link are skipped.

        Raises:
            FetchError: If the request fails or the payload is not JSON
        """
        url = self.search_url(query.term, query.item_type)
        logger.debug(f"Using {url} for search")
        payload = await self.fetcher.fetch_json(url)

        results = payload.get("results") or []
        build = album_from_result if query.item_type == ItemType.ALBUM else artist_from_result
        items: list[RemoteMusicItem] = []
        for result in results:
            if not isinstance(result, dict):
                continue
            if item := build(result):
                items.append(item)

        logger.debug(
            f"Search API returned {len(items)} {query.item_type} result(s) for {query.term!r}"
        )
        return items

    async def search(self, query: SearchQuery) -> list[str]:
        urls: list[str] = []
        for item in await self.search_items(query):
            if item.url not in urls:
                urls.append(item.url)
        return urls


## Tests


def test_album_from_result():
    album = album_from_result(
        {
            "collectionName": "Homogenic",
            "collectionViewUrl": "https://music.apple.com/us/album/homogenic/1440833098?uo=4",
            "artworkUrl100": "https://is1-ssl.mzstatic.com/image/thumb/x/100x100bb.jpg",
            "releaseDate": "1997-09-22T07:00:00Z",
            "artistName": "Björk",
            "artistViewUrl": "https://music.apple.com/us/artist/bj%C3%B6rk/295015?uo=4",
        }
    )
    assert album is not None
    assert album.id == "1440833098"
    assert album.release_date == date(1997, 9, 22)
    assert album.artists[0].name == "Björk"
    assert album.artists[0].id == "295015"


def test_album_from_result_requires_name_and_url():
    assert album_from_result({"collectionName": "X"}) is None
    assert album_from_result({"collectionViewUrl": "https://x/1"}) is None


def test_artist_from_result_prefers_link_url():
    artist = artist_from_result(
        {
            "artistName": "Björk",
            "artistLinkUrl": "https://music.apple.com/us/artist/bjork/295015",
            "artistViewUrl": "https://music.apple.com/us/artist/other/1",
        }
    )
    assert artist is not None
    assert artist.id == "295015"


def test_parse_release_date_invalid():
    assert _parse_release_date("not a date") is None
    assert _parse_release_date(None) is None
