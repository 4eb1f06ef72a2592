"""
Document fetcher for Apple Music pages and the iTunes Search API.

Three modes of retrieval share one async HTTP client:
- HTML pages, returned as `Document` for the scrapers
- JSON payloads from the Search API
- raw image responses, streamed back to the caller untouched

Every failure to obtain a usable response surfaces as `FetchError`.
Task cancellation is never intercepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx
from bs4 import BeautifulSoup

from applemusic_meta.http_cache import ResponseCache

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """A document could not be retrieved (network, timeout, HTTP status, bad payload)."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class FetchMode(StrEnum):
    """How the fetcher uses its response cache."""

    NORMAL = "normal"  # Use cache, fetch on miss
    REFRESH = "refresh"  # Always fetch, update cache
    OFFLINE = "offline"  # Cache only, a miss is an error


@dataclass
class Document:
    """Fetched HTML page."""

    url: str
    html: str
    _soup: BeautifulSoup | None = field(default=None, init=False, repr=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup


class DocumentFetcher:
    """
    Async fetcher for HTML pages, JSON payloads and images.

    No retries are attempted; a failed request is reported once as
    `FetchError` and the caller decides whether that is fatal.
    """

    def __init__(
        self,
        cache: ResponseCache | None = None,
        mode: FetchMode = FetchMode.NORMAL,
        timeout_s: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.cache = cache
        self.mode = mode
        self._client = client or httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def _get(self, url: str, use_cache: bool = True) -> httpx.Response:
        cache = self.cache if use_cache else None

        if cache is not None and self.mode != FetchMode.REFRESH:
            cached = cache.get(url)
            if cached is not None:
                logger.debug(f"Cache hit for {url}")
                return self._check_status(url, cached)

        if self.mode == FetchMode.OFFLINE:
            raise FetchError(url, "Offline mode and no cached response")

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(url, f"Timed out: {e}") from e
        except httpx.RequestError as e:
            raise FetchError(url, f"Request error: {e}") from e

        if cache is not None:
            cache.put(url, response)

        return self._check_status(url, response)

    @staticmethod
    def _check_status(url: str, response: httpx.Response) -> httpx.Response:
        if not response.is_success:
            raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)
        return response

    async def fetch_document(self, url: str) -> Document:
        """Fetch an HTML page."""
        response = await self._get(url)
        return Document(url=str(response.url) if response.url else url, html=response.text)

    async def fetch_json(self, url: str) -> dict[str, Any]:
        """Fetch and decode a JSON object."""
        response = await self._get(url)
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(url, f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise FetchError(url, f"Expected JSON object, got {type(data).__name__}")
        return data

    async def get_image_response(self, url: str) -> httpx.Response:
        """Fetch an image; the body is returned as-is and never cached."""
        return await self._get(url, use_cache=False)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DocumentFetcher:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


## Tests


def test_document_soup_is_lazy():
    doc = Document(url="https://music.apple.com/us/album/x/1", html="<h1>Title</h1>")
    assert doc._soup is None
    assert doc.soup.h1 is not None
    assert doc.soup.h1.get_text() == "Title"


def test_fetch_error_message():
    err = FetchError("https://example.com", "HTTP 404", status_code=404)
    assert err.status_code == 404
    assert "HTTP 404" in str(err)
    assert err.url == "https://example.com"
