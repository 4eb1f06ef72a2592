from __future__ import annotations

import logging
import re
from datetime import date, datetime

from applemusic_meta.fetcher import Document
from applemusic_meta.models import Album, Artist, ItemType, item_id_from_url
from applemusic_meta.scrapers.base import ItemScraper, ParseError

logger = logging.getLogger(__name__)

DETAIL_HEADER = 'div[data-testid="container-detail-header"]'
NAME_SELECTOR = 'h1[data-testid="non-editable-product-title"]'
ARTIST_SELECTOR = 'a[data-testid="click-action"]'
ABOUT_SELECTOR = 'p[data-testid="truncate-text"]'
DESCRIPTION_SELECTOR = 'p[data-testid="tracklist-footer-description"]'

# e.g. "September 22, 1997\n10 Songs, 43 minutes\n℗ 1997 One Little Indian"
DESCRIPTION_PATTERN = re.compile(
    r"(?P<date>\w+ \d+, \d+)\W(?P<runtime>\d+)\W+(?P<runtime_unit>\w+)"
    r"\W+(?P<production_year>\d+)\W+(?P<producer>\w+)",
    re.MULTILINE,
)
DATE_FORMAT = "%B %d, %Y"


def parse_release_date(description: str) -> date:
    """
    Parse the release date out of an album page footer.

    Raises:
        ParseError: If the footer does not match the expected layout
    """
    match = DESCRIPTION_PATTERN.search(description)
    if not match:
        raise ParseError(f"Unrecognised album description: {description!r}")
    try:
        return datetime.strptime(match.group("date"), DATE_FORMAT).date()
    except ValueError as e:
        raise ParseError(f"Invalid release date {match.group('date')!r}") from e


class AlbumScraper(ItemScraper):
    """Scraper for Apple Music album pages."""

    item_type = ItemType.ALBUM

    def scrape(self, document: Document) -> Album | None:
        soup = document.soup
        header = soup.select_one(DETAIL_HEADER)
        if header is None:
            logger.debug(f"Album detail header not found on {document.url}")
            return None

        name = self._select_text(header, NAME_SELECTOR)
        if name is None:
            logger.debug(f"Album name not found on {document.url}")
            return None

        image_url = self._meta_content(soup, "og:image")
        if image_url is None:
            logger.error(f"No album image found on {document.url}")

        artists = []
        for node in header.select(ARTIST_SELECTOR):
            href = str(node.get("href") or "").strip()
            # No link: keep the stub without a page to resolve
            url = self._absolute_url(document, href) if href else ""
            artists.append(Artist(name=node.get_text().strip(), url=url))
        if not artists:
            logger.debug(f"No album artists found on {document.url}")
            return None
        for artist in artists:
            artist.id = item_id_from_url(artist.url)

        about = self._select_text(header, ABOUT_SELECTOR)

        release_date = None
        description = self._select_text(soup, DESCRIPTION_SELECTOR)
        if description is not None:
            try:
                release_date = parse_release_date(description)
            except ParseError as e:
                logger.debug(f"Failed to parse album details: {e}")

        return Album(
            name=name.strip(),
            url=document.url,
            id=item_id_from_url(document.url),
            image_url=image_url,
            about=about,
            artists=artists,
            release_date=release_date,
        )


## Tests


def test_parse_release_date():
    text = "September 22, 1997\n10 Songs, 43 minutes\n℗ 1997 One Little Indian"
    assert parse_release_date(text) == date(1997, 9, 22)


def test_parse_release_date_rejects_other_layouts():
    for text in ("10 Songs", "Smarch 3, 1997\n10 Songs, 43 minutes\n℗ 1997 X"):
        try:
            parse_release_date(text)
            raise AssertionError("Should have raised ParseError")
        except ParseError:
            pass
