"""Tests for the web and Search API backends."""

from __future__ import annotations

import asyncio
import json
from datetime import date

from applemusic_meta.backends import BackendMode, get_backend, get_backend_from_config
from applemusic_meta.backends.search_api_backend import SearchAPIBackend
from applemusic_meta.backends.web_backend import WebBackend
from applemusic_meta.config import Config
from applemusic_meta.fetcher import FetchMode
from applemusic_meta.models import Album, AlbumInfo, ItemType, SearchQuery

ALBUM_URL = "https://music.apple.com/us/album/homogenic/1440833098"
ARTIST_URL = "https://music.apple.com/us/artist/bj%C3%B6rk/295015"
SEARCH_URL = "https://music.apple.com/us/search?term=Bj%C3%B6rk%20Homogenic"
API_ALBUM_URL = (
    "https://itunes.apple.com/search?term=Bj%C3%B6rk%20Homogenic"
    "&media=music&entity=album&attribute=albumTerm"
)
API_ARTIST_URL = (
    "https://itunes.apple.com/search?term=Bj%C3%B6rk&media=music&entity=musicArtist&attribute=artistTerm"
)


class TestWebBackend:
    def test_search_albums(self, web_backend, httpx_mock, load_page):
        httpx_mock.add_response(url=SEARCH_URL, html=load_page("search_bjork.html"))

        urls = asyncio.run(web_backend.search(SearchQuery("Björk Homogenic", ItemType.ALBUM)))

        assert urls == [ALBUM_URL, "https://music.apple.com/us/album/post/1440833519"]

    def test_search_uses_country(self, fetcher, httpx_mock, load_page):
        backend = get_backend(BackendMode.WEB, fetcher=fetcher, country="gb")
        httpx_mock.add_response(
            url="https://music.apple.com/gb/search?term=Bj%C3%B6rk",
            html=load_page("search_empty.html"),
        )

        assert asyncio.run(backend.search(SearchQuery("Björk", ItemType.ARTIST))) == []

    def test_scrape_album(self, web_backend, httpx_mock, load_page):
        httpx_mock.add_response(url=ALBUM_URL, html=load_page("album_homogenic.html"))

        album = asyncio.run(web_backend.scrape(ALBUM_URL, ItemType.ALBUM))

        assert isinstance(album, Album)
        assert album.name == "Homogenic"
        # Single level: artists stay stubs
        assert len(httpx_mock.get_requests()) == 1

    def test_scrape_wrong_page_type(self, web_backend, httpx_mock, load_page):
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        assert asyncio.run(web_backend.scrape(ARTIST_URL, ItemType.ALBUM)) is None


class TestSearchAPIBackend:
    def test_search_url(self, search_api_backend):
        assert search_api_backend.search_url("Björk Homogenic", ItemType.ALBUM) == API_ALBUM_URL
        assert search_api_backend.search_url("Björk", ItemType.ARTIST) == API_ARTIST_URL

    def test_search_items_albums(self, search_api_backend, httpx_mock, load_page):
        httpx_mock.add_response(
            url=API_ALBUM_URL, json=json.loads(load_page("itunes_album_search.json"))
        )

        query = SearchQuery("Björk Homogenic", ItemType.ALBUM)
        items = asyncio.run(search_api_backend.search_items(query))

        assert [item.name for item in items] == ["Homogenic", "Post"]
        first = items[0]
        assert isinstance(first, Album)
        assert first.release_date == date(1997, 9, 22)
        assert first.image_url is not None
        assert first.image_url.endswith("/100x100bb.jpg")
        assert [a.name for a in first.artists] == ["Björk"]

    def test_search_artists(self, search_api_backend, httpx_mock, load_page):
        httpx_mock.add_response(
            url=API_ARTIST_URL, json=json.loads(load_page("itunes_artist_search.json"))
        )

        urls = asyncio.run(search_api_backend.search(SearchQuery("Björk", ItemType.ARTIST)))

        assert urls[0] == "https://music.apple.com/us/artist/bj%C3%B6rk/295015?uo=4"
        assert len(urls) == 2

    def test_empty_payload(self, search_api_backend, httpx_mock):
        httpx_mock.add_response(url=API_ARTIST_URL, json={"resultCount": 0, "results": []})

        query = SearchQuery("Björk", ItemType.ARTIST)
        assert asyncio.run(search_api_backend.search(query)) == []

    def test_album_resolution_through_search_api(
        self, search_api_backend, term_builder, httpx_mock, load_page
    ):
        from applemusic_meta.resolver import AlbumResolver, ArtistResolver

        resolver = AlbumResolver(
            search_api_backend, ArtistResolver(search_api_backend, term_builder), term_builder
        )
        httpx_mock.add_response(
            url=API_ALBUM_URL, json=json.loads(load_page("itunes_album_search.json"))
        )
        httpx_mock.add_response(url=ALBUM_URL + "?uo=4", html=load_page("album_homogenic.html"))
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        info = AlbumInfo(name="Homogenic", album_artists=["Björk"])
        result = asyncio.run(resolver.get_metadata(info))

        assert result.has_metadata
        assert result.item is not None
        assert result.item.provider_ids["ITunesAlbum"] == "1440833098"


class TestFactory:
    def test_backend_from_config(self, tmp_path):
        config = Config.model_validate(
            {
                "http_cache": {"directory": str(tmp_path / "cache")},
                "apple_music": {"search_backend": "search_api", "country": "jp"},
            }
        )

        backend = get_backend_from_config(config)

        assert isinstance(backend, SearchAPIBackend)
        assert backend.country == "jp"
        assert backend.fetcher.cache is not None
        assert backend.fetcher.mode == FetchMode.NORMAL

    def test_offline_and_disabled_cache(self):
        config = Config.model_validate(
            {"http_cache": {"enabled": False}, "offline_mode": True}
        )

        backend = get_backend_from_config(config, refresh=True)

        assert isinstance(backend, WebBackend)
        assert backend.fetcher.cache is None
        assert backend.fetcher.mode == FetchMode.OFFLINE

    def test_refresh_mode(self, tmp_path):
        config = Config.model_validate({"http_cache": {"directory": str(tmp_path)}})

        backend = get_backend_from_config(config, refresh=True)

        assert backend.fetcher.mode == FetchMode.REFRESH
