"""
Web search backend.

Searches with the Apple Music website search page and reads result links
out of its Albums and Artists sections.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from applemusic_meta.backends.base import MetadataBackend
from applemusic_meta.models import SearchQuery, apple_music_base_url
from applemusic_meta.scrapers import extract_result_urls

logger = logging.getLogger(__name__)


class WebBackend(MetadataBackend):
    """Backend that searches music.apple.com directly."""

    def search_url(self, term: str) -> str:
        return f"{apple_music_base_url(self.country)}/search?term={quote(term, safe='')}"

    async def search(self, query: SearchQuery) -> list[str]:
        url = self.search_url(query.term)
        logger.debug(f"Using {url} for search")
        document = await self.fetcher.fetch_document(url)
        return extract_result_urls(document, query.item_type)


## Tests


def test_search_url_encodes_term():
    from applemusic_meta.fetcher import DocumentFetcher

    backend = WebBackend(DocumentFetcher(), country="gb")
    assert (
        backend.search_url("Björk Homogenic/Live")
        == "https://music.apple.com/gb/search?term=Bj%C3%B6rk%20Homogenic%2FLive"
    )
