from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from applemusic_meta.fetcher import Document
from applemusic_meta.models import ItemType, RemoteMusicItem

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """An optional field was present but could not be parsed."""


class ItemScraper(ABC):
    """
    Extracts one kind of item from an Apple Music page.

    Subclasses return None when the page lacks the fields that identify the
    item; a missing optional field only leaves that field unset.
    """

    item_type: ItemType

    @abstractmethod
    def scrape(self, document: Document) -> RemoteMusicItem | None:
        """Extract an item from a fetched page."""
        ...

    @staticmethod
    def _select_text(root: BeautifulSoup | Tag, selector: str) -> str | None:
        """Text of the first node matching `selector`, or None if absent."""
        node = root.select_one(selector)
        if node is None:
            return None
        return node.get_text()

    @staticmethod
    def _meta_content(soup: BeautifulSoup, prop: str, exclude: str | None = None) -> str | None:
        """Content of the first `<meta property=...>` tag, optionally skipping placeholders."""
        for node in soup.select(f'meta[property="{prop}"]'):
            content = node.get("content")
            if not isinstance(content, str) or not content:
                continue
            if exclude and exclude in content:
                continue
            return content
        return None

    @staticmethod
    def _absolute_url(document: Document, href: str) -> str:
        return urljoin(document.url, href)


## Tests


def test_select_text_and_meta():
    doc = Document(
        url="https://music.apple.com/us/artist/x/1",
        html=(
            '<head><meta property="og:image" content="https://x/apple-music.png">'
            '<meta property="og:image" content="https://x/1200x630cw.png"></head>'
            "<body><h1> Name </h1></body>"
        ),
    )
    assert ItemScraper._select_text(doc.soup, "h1") == " Name "
    assert ItemScraper._select_text(doc.soup, "h2") is None
    assert ItemScraper._meta_content(doc.soup, "og:image") == "https://x/apple-music.png"
    assert (
        ItemScraper._meta_content(doc.soup, "og:image", exclude="apple-music.png")
        == "https://x/1200x630cw.png"
    )


def test_absolute_url():
    doc = Document(url="https://music.apple.com/us/album/x/1", html="")
    assert (
        ItemScraper._absolute_url(doc, "/us/artist/y/2") == "https://music.apple.com/us/artist/y/2"
    )
