"""
Abstract base class for Apple Music search backends.

A backend turns a search term into candidate page URLs and turns a page URL
into a typed item. Backends differ only in how they search; every backend
scrapes the Apple Music web page to read an item.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from applemusic_meta import scrapers
from applemusic_meta.fetcher import DocumentFetcher
from applemusic_meta.models import DEFAULT_COUNTRY, ItemType, RemoteMusicItem, SearchQuery

logger = logging.getLogger(__name__)


class MetadataBackend(ABC):
    """Search and scrape access to Apple Music."""

    def __init__(self, fetcher: DocumentFetcher, country: str = DEFAULT_COUNTRY):
        self.fetcher = fetcher
        self.country = country

    @abstractmethod
    async def search(self, query: SearchQuery) -> list[str]:
        """
        Find candidate page URLs for a search query.

        Args:
            query: Free-text term and the kind of item searched for

        Returns:
            Candidate URLs, best match first; empty if nothing was found

        Raises:
            FetchError: If the search request itself fails
        """
        ...

    async def scrape(self, url: str, item_type: ItemType) -> RemoteMusicItem | None:
        """
        Fetch a page and extract an item of `item_type` from it.

        Returns:
            The item, or None if the page does not describe one

        Raises:
            FetchError: If the page cannot be fetched
        """
        document = await self.fetcher.fetch_document(url)
        return scrapers.extract(document, item_type)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.fetcher.close()

    async def __aenter__(self) -> MetadataBackend:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
