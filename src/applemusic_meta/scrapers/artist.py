from __future__ import annotations

import logging

from applemusic_meta.fetcher import Document
from applemusic_meta.models import Artist, ItemType, item_id_from_url
from applemusic_meta.scrapers.base import ItemScraper

logger = logging.getLogger(__name__)

NAME_SELECTOR = 'h1[data-testid="artist-header-name"]'
ABOUT_SELECTOR = 'p[data-testid="truncate-text"]'
PLACEHOLDER_IMAGE = "apple-music.png"


class ArtistScraper(ItemScraper):
    """Scraper for Apple Music artist pages."""

    item_type = ItemType.ARTIST

    def scrape(self, document: Document) -> Artist | None:
        soup = document.soup

        name = self._select_text(soup, NAME_SELECTOR)
        if name is None:
            logger.debug(f"Artist name not found on {document.url}")
            return None

        about = self._select_text(soup, ABOUT_SELECTOR)
        if about is None:
            logger.debug(f"Artist overview not found on {document.url}")

        # Artists without artwork get the generic Apple Music logo
        image_url = self._meta_content(soup, "og:image", exclude=PLACEHOLDER_IMAGE)
        if image_url is None:
            logger.debug(f"Artist image not found on {document.url}")

        return Artist(
            name=name.strip(),
            url=document.url,
            id=item_id_from_url(document.url),
            image_url=image_url,
            about=about,
        )
