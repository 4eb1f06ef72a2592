from __future__ import annotations

import logging

from applemusic_meta.fetcher import Document
from applemusic_meta.models import ItemType
from applemusic_meta.scrapers.base import ItemScraper

logger = logging.getLogger(__name__)

SECTION_LABELS: dict[ItemType, str] = {
    ItemType.ALBUM: "Albums",
    ItemType.ARTIST: "Artists",
}


def result_selector(item_type: ItemType) -> str:
    """CSS selector for result links in one section of the search page."""
    base = f'div[data-testid="section-container"][aria-label="{SECTION_LABELS[item_type]}"] li a'
    if item_type == ItemType.ALBUM:
        # Album lockups also link the artist; only the title link points at the album
        return base + '[data-testid="product-lockup-title"]'
    return base


def extract_result_urls(document: Document, item_type: ItemType) -> list[str]:
    """
    Collect result URLs from an Apple Music search page.

    Returns:
        Absolute URLs in page order, without duplicates
    """
    urls: list[str] = []
    seen: set[str] = set()
    for node in document.soup.select(result_selector(item_type)):
        href = node.get("href")
        if not isinstance(href, str) or not href:
            continue
        url = ItemScraper._absolute_url(document, href)
        if url in seen:
            continue
        seen.add(url)
        urls.append(url)

    logger.debug(f"Found {len(urls)} {item_type} result(s) on {document.url}")
    return urls


## Tests


def test_result_selector():
    assert 'aria-label="Artists"' in result_selector(ItemType.ARTIST)
    assert result_selector(ItemType.ALBUM).endswith('[data-testid="product-lockup-title"]')


def test_extract_result_urls_dedupes():
    html = """
    <div data-testid="section-container" aria-label="Artists"><ul>
      <li><a href="/us/artist/bjork/295015">Björk</a></li>
      <li><a href="/us/artist/bjork/295015">Björk</a></li>
      <li><a href="https://music.apple.com/us/artist/sugarcubes/1">The Sugarcubes</a></li>
    </ul></div>
    """
    doc = Document(url="https://music.apple.com/us/search?term=bjork", html=html)
    assert extract_result_urls(doc, ItemType.ARTIST) == [
        "https://music.apple.com/us/artist/bjork/295015",
        "https://music.apple.com/us/artist/sugarcubes/1",
    ]
    assert extract_result_urls(doc, ItemType.ALBUM) == []
