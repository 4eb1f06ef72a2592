from __future__ import annotations

"""
Field extraction from Apple Music web pages.

Each item type has one scraper; `extract` dispatches on the item type.
"""

__all__ = [
    "AlbumScraper",
    "ArtistScraper",
    "ItemScraper",
    "ParseError",
    "SCRAPER_REGISTRY",
    "extract",
    "extract_result_urls",
]

from applemusic_meta.fetcher import Document
from applemusic_meta.models import ItemType, RemoteMusicItem
from applemusic_meta.scrapers.album import AlbumScraper
from applemusic_meta.scrapers.artist import ArtistScraper
from applemusic_meta.scrapers.base import ItemScraper, ParseError
from applemusic_meta.scrapers.search import extract_result_urls

# Registry mapping item types to their page scraper
SCRAPER_REGISTRY: dict[ItemType, ItemScraper] = {
    ItemType.ALBUM: AlbumScraper(),
    ItemType.ARTIST: ArtistScraper(),
}


def extract(document: Document, item_type: ItemType) -> RemoteMusicItem | None:
    """Extract an item of `item_type` from a page; None if the page does not describe one."""
    return SCRAPER_REGISTRY[item_type].scrape(document)
