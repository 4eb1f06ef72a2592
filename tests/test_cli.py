"""CLI tests with mocked Apple Music responses."""

from __future__ import annotations

import json

import httpx
from typer.testing import CliRunner

from applemusic_meta.cli import ExitCode, app

ALBUM_URL = "https://music.apple.com/us/album/homogenic/1440833098"
STORED_ALBUM_URL = "https://music.apple.com/us/album/1440833098"
ARTIST_URL = "https://music.apple.com/us/artist/bj%C3%B6rk/295015"
SEARCH_URL = "https://music.apple.com/us/search?term=Bj%C3%B6rk%20Homogenic"
IMAGE_URL = "https://is1-ssl.mzstatic.com/image/thumb/Music/x/1400x1400cc.jpg"

runner = CliRunner()


def _mock_homogenic(httpx_mock, load_page):
    httpx_mock.add_response(url=SEARCH_URL, html=load_page("search_bjork.html"))
    httpx_mock.add_response(url=ALBUM_URL, html=load_page("album_homogenic.html"))
    httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))


class TestAlbumCommand:
    def test_text_output(self, httpx_mock, load_page):
        _mock_homogenic(httpx_mock, load_page)

        result = runner.invoke(app, ["--no-cache", "album", "Homogenic", "-a", "Björk"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Homogenic" in result.output
        assert "1997" in result.output
        assert "1400x1400cc.jpg" in result.output

    def test_json_output(self, httpx_mock, load_page):
        _mock_homogenic(httpx_mock, load_page)

        result = runner.invoke(
            app, ["--no-cache", "-o", "json", "album", "Homogenic", "--artist", "Björk"]
        )

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert data["has_metadata"] is True
        assert data["item"]["name"] == "Homogenic"
        assert data["item"]["premiere_date"] == "1997-09-22"
        assert data["item"]["provider_ids"] == {
            "ITunesAlbum": "1440833098",
            "ITunesAlbumArtist": "295015",
        }

    def test_stored_album_id(self, httpx_mock, load_page):
        httpx_mock.add_response(url=STORED_ALBUM_URL, html=load_page("album_homogenic.html"))
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        result = runner.invoke(app, ["--no-cache", "album", "x", "--album-id", "1440833098"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Homogenic" in result.output

    def test_insufficient_data_is_no_results(self, httpx_mock):
        result = runner.invoke(app, ["--no-cache", "album", "Homogenic"])

        assert result.exit_code == ExitCode.NO_RESULTS
        assert httpx_mock.get_requests() == []

    def test_fetch_error_exits_with_error(self, httpx_mock):
        httpx_mock.add_response(url=SEARCH_URL, status_code=503)

        result = runner.invoke(app, ["--no-cache", "album", "Homogenic", "-a", "Björk"])

        assert result.exit_code == ExitCode.ERROR
        assert "Error" in result.output

    def test_offline_without_cache_entry(self, httpx_mock, tmp_path):
        result = runner.invoke(
            app,
            ["--offline", "--cache-dir", str(tmp_path), "album", "Homogenic", "-a", "Björk"],
        )

        assert result.exit_code == ExitCode.ERROR
        assert httpx_mock.get_requests() == []


class TestAlbumSearchCommand:
    def test_year_filter(self, httpx_mock, load_page):
        httpx_mock.add_response(url=SEARCH_URL, html=load_page("search_bjork.html"))
        httpx_mock.add_response(url=ALBUM_URL, html=load_page("album_homogenic.html"))
        httpx_mock.add_response(
            url="https://music.apple.com/us/album/post/1440833519",
            html=load_page("album_post.html"),
        )
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        result = runner.invoke(
            app,
            ["--no-cache", "-o", "json", "album-search", "Homogenic", "-a", "Björk", "-y", "1995"],
        )

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert [r["name"] for r in data] == ["Post"]


class TestArtistCommands:
    def test_artist_from_search(self, httpx_mock, load_page):
        httpx_mock.add_response(
            url="https://music.apple.com/us/search?term=Bj%C3%B6rk",
            html=load_page("search_bjork.html"),
        )
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        result = runner.invoke(app, ["--no-cache", "-o", "json", "artist", "Björk"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert data["item"]["name"] == "Björk"
        assert data["item"]["provider_ids"] == {"ITunesArtist": "295015"}

    def test_artist_images_with_stored_id(self, httpx_mock, load_page):
        httpx_mock.add_response(
            url="https://music.apple.com/us/artist/295015", html=load_page("artist_bjork.html")
        )

        result = runner.invoke(
            app, ["--no-cache", "-o", "json", "artist-images", "Björk", "--artist-id", "295015"]
        )

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert len(data) == 1
        assert data[0]["url"].endswith("/1400x1400cc.png")
        assert data[0]["thumbnail_url"].endswith("/100x100cc.png")
        assert data[0]["provider_name"] == "Apple Music"


class TestLowLevelCommands:
    def test_search(self, httpx_mock, load_page):
        httpx_mock.add_response(url=SEARCH_URL, html=load_page("search_bjork.html"))

        result = runner.invoke(app, ["--no-cache", "search", "Björk Homogenic"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert ALBUM_URL in result.output

    def test_search_without_results(self, httpx_mock, load_page):
        httpx_mock.add_response(
            url="https://music.apple.com/us/search?term=zzz", html=load_page("search_empty.html")
        )

        result = runner.invoke(app, ["--no-cache", "search", "zzz", "-t", "artist"])

        assert result.exit_code == ExitCode.NO_RESULTS

    def test_scrape_json(self, httpx_mock, load_page):
        httpx_mock.add_response(url=ARTIST_URL, html=load_page("artist_bjork.html"))

        result = runner.invoke(
            app, ["--no-cache", "-o", "json", "scrape", ARTIST_URL, "--type", "artist"]
        )

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert data["name"] == "Björk"
        assert data["id"] == "295015"

    def test_image_download(self, httpx_mock, tmp_path):
        httpx_mock.add_response(url=IMAGE_URL, content=b"\xff\xd8\xff")
        out = tmp_path / "cover.jpg"

        result = runner.invoke(app, ["--no-cache", "image", IMAGE_URL, "-f", str(out)])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert out.read_bytes() == b"\xff\xd8\xff"

    def test_image_not_found(self, httpx_mock, tmp_path):
        httpx_mock.add_response(url=IMAGE_URL, status_code=404)

        result = runner.invoke(
            app, ["--no-cache", "image", IMAGE_URL, "-f", str(tmp_path / "cover.jpg")]
        )

        assert result.exit_code == ExitCode.ERROR
        assert not (tmp_path / "cover.jpg").exists()


class TestCacheCommands:
    def _seed(self, cache_dir):
        from applemusic_meta.http_cache import ResponseCache

        cache = ResponseCache(cache_dir)
        cache.put(
            ALBUM_URL, httpx.Response(200, html="<h1/>", request=httpx.Request("GET", ALBUM_URL))
        )
        return cache

    def test_status_json(self, tmp_path):
        self._seed(tmp_path)

        result = runner.invoke(app, ["--cache-dir", str(tmp_path), "-o", "json", "cache", "status"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        data = json.loads(result.stdout)
        assert data["entries"] == 1
        assert data["expired"] == 0

    def test_purge_keeps_fresh_entries(self, tmp_path):
        cache = self._seed(tmp_path)

        result = runner.invoke(app, ["--cache-dir", str(tmp_path), "cache", "purge"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Purged 0" in result.output
        assert cache.get(ALBUM_URL) is not None

    def test_clear_force(self, tmp_path):
        cache = self._seed(tmp_path)

        result = runner.invoke(app, ["--cache-dir", str(tmp_path), "cache", "clear", "--force"])

        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Cleared 1" in result.output
        assert cache.get(ALBUM_URL) is None

    def test_clear_declined(self, tmp_path):
        cache = self._seed(tmp_path)

        result = runner.invoke(app, ["--cache-dir", str(tmp_path), "cache", "clear"], input="n\n")

        assert result.exit_code != ExitCode.SUCCESS
        assert cache.get(ALBUM_URL) is not None
