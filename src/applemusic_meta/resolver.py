"""
Album and artist metadata resolution.

Resolution of one local item runs through a fixed sequence of states:

    resolving_url -> fetching -> extracting -> [resolving_artists] -> done
                                                                   \\-> failed

A stored Apple Music identifier short-circuits the search; otherwise a search
term is built from the local tags and handed to the backend. Pages are
fetched and scraped, and for albums every linked artist is resolved
concurrently. Nothing found is an empty result, never an exception; only a
failed fetch on a single-result path surfaces to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

import httpx

from applemusic_meta import images, scrapers
from applemusic_meta.backends.base import MetadataBackend
from applemusic_meta.fetcher import FetchError
from applemusic_meta.images import ImageSize
from applemusic_meta.models import (
    Album,
    AlbumInfo,
    AlbumMetadata,
    Artist,
    ArtistInfo,
    ArtistMetadata,
    ImageType,
    ItemType,
    MetadataResult,
    ProviderKey,
    RemoteImageInfo,
    RemoteMusicItem,
    RemoteSearchResult,
    SearchQuery,
    provider_url,
)
from applemusic_meta.search_terms import InsufficientDataError, SearchTermBuilder

if TYPE_CHECKING:
    from applemusic_meta.config import Config

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4

ItemT = TypeVar("ItemT", Album, Artist)
InfoT = TypeVar("InfoT", AlbumInfo, ArtistInfo)


class ResolveState(StrEnum):
    """Stage of a single resolution, logged on every transition."""

    RESOLVING_URL = "resolving_url"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    RESOLVING_ARTISTS = "resolving_artists"
    DONE = "done"
    FAILED = "failed"


class NotFoundError(Exception):
    """Search found no candidates, or a page did not describe the expected item."""


def matches_year(album: Album, expected_year: int | None) -> bool:
    """False only when both years are known and differ."""
    if expected_year is None or album.production_year is None:
        return True
    return album.production_year == expected_year


class ItemResolver(ABC, Generic[ItemT, InfoT]):
    """Resolution steps shared by albums and artists."""

    item_type: ItemType
    item_class: type[ItemT]
    provider_key: ProviderKey

    def __init__(
        self,
        backend: MetadataBackend,
        term_builder: SearchTermBuilder,
        primary_size: ImageSize = images.DEFAULT,
        thumbnail_size: ImageSize = images.THUMBNAIL,
    ):
        self.backend = backend
        self.term_builder = term_builder
        self.primary_size = primary_size
        self.thumbnail_size = thumbnail_size

    def _transition(self, state: ResolveState, detail: str = "") -> None:
        suffix = f": {detail}" if detail else ""
        logger.debug(f"{self.item_type} {state}{suffix}")

    @abstractmethod
    def _search_term(self, info: InfoT) -> str:
        """
        Search term for a local item without a stored identifier.

        Raises:
            InsufficientDataError: If the local tags are too sparse to search with
        """
        ...

    def stored_url(self, info: InfoT) -> str | None:
        """Canonical page URL from a stored identifier, if any."""
        return provider_url(info.provider_ids, self.provider_key, self.backend.country)

    async def candidate_urls(self, info: InfoT) -> list[str]:
        """
        Page URLs to scrape for a local item, best first.

        Raises:
            NotFoundError: If no term can be built or the search finds nothing
            FetchError: If the search request fails
        """
        self._transition(ResolveState.RESOLVING_URL, info.name)

        if url := self.stored_url(info):
            logger.debug(f"Using stored {self.provider_key} URL {url}")
            return [url]

        try:
            term = self._search_term(info)
        except InsufficientDataError as e:
            logger.info(f"Could not get search term for {info.name!r}: {e}")
            raise NotFoundError(str(e)) from e

        logger.debug(f"No stored {self.provider_key}, falling back to search")
        urls = await self.backend.search(SearchQuery(term, self.item_type))
        if not urls:
            raise NotFoundError(f"No {self.item_type} results for {term!r}")
        return urls

    async def resolve_url(self, url: str) -> ItemT | None:
        """
        Fetch and extract a single page, without following nested links.

        Returns:
            The item, or None if the page does not describe one

        Raises:
            FetchError: If the page cannot be fetched
        """
        self._transition(ResolveState.FETCHING, url)
        document = await self.backend.fetcher.fetch_document(url)

        self._transition(ResolveState.EXTRACTING, url)
        item = scrapers.extract(document, self.item_type)
        if not isinstance(item, self.item_class):
            logger.debug(f"Scrape result of {url} is not an {self.item_type}, ignoring")
            return None
        return item

    async def _scrape(self, url: str) -> ItemT:
        item = await self.resolve_url(url)
        if item is None:
            raise NotFoundError(f"Failed to scrape {self.item_type} data from {url}")
        if not item.has_metadata():
            raise NotFoundError(f"No {self.item_type} metadata on {url}")
        return item

    def _remote_images(self, item: RemoteMusicItem) -> list[tuple[str, ImageType]]:
        if item.image_url is None:
            return []
        return [(images.resize(item.image_url, self.primary_size), ImageType.PRIMARY)]

    def _image_info(self, item: RemoteMusicItem) -> RemoteImageInfo | None:
        if item.image_url is None:
            return None
        primary, thumbnail = images.image_pair(
            item.image_url, self.primary_size, self.thumbnail_size
        )
        return RemoteImageInfo(
            url=primary,
            thumbnail_url=thumbnail,
            type=ImageType.PRIMARY,
            width=self.primary_size.width,
            height=self.primary_size.height,
        )

    async def get_images(self, info: InfoT) -> list[RemoteImageInfo]:
        """
        Artwork offered for a local item, one entry per candidate page.

        Raises:
            FetchError: If the item has a stored identifier and its page cannot be fetched
        """
        if url := self.stored_url(info):
            self._transition(ResolveState.RESOLVING_URL, url)
            item = await self.resolve_url(url)
            found = [item] if item is not None and item.has_metadata() else []
        else:
            try:
                urls = await self.candidate_urls(info)
            except NotFoundError:
                return []
            except FetchError as e:
                logger.warning(f"Image search failed for {info.name!r}: {e}")
                return []

            found = []
            for candidate in urls:
                try:
                    item = await self.resolve_url(candidate)
                except FetchError as e:
                    logger.debug(f"Skipping {candidate}: {e}")
                    continue
                if item is not None and item.has_metadata():
                    found.append(item)

        return [image for item in found if (image := self._image_info(item)) is not None]

    async def get_image_response(self, url: str) -> httpx.Response:
        """Raw image download, passed through untouched."""
        return await self.backend.fetcher.get_image_response(url)


class ArtistResolver(ItemResolver[Artist, ArtistInfo]):
    """Resolves local artists to Apple Music artists."""

    item_type = ItemType.ARTIST
    item_class = Artist
    provider_key = ProviderKey.ARTIST

    def _search_term(self, info: ArtistInfo) -> str:
        return self.term_builder.artist_term(info)

    async def get_metadata(self, info: ArtistInfo) -> MetadataResult:
        """
        Metadata for a local artist from the best candidate page.

        Raises:
            FetchError: If the search or the page fetch fails
        """
        try:
            urls = await self.candidate_urls(info)
            artist = await self._scrape(urls[0])
        except NotFoundError as e:
            self._transition(ResolveState.FAILED, str(e))
            return MetadataResult.empty()

        self._transition(ResolveState.DONE, artist.url)
        return MetadataResult(
            item=ArtistMetadata(
                name=artist.name,
                overview=artist.about,
                provider_ids={ProviderKey.ARTIST.value: artist.id},
            ),
            has_metadata=artist.has_metadata(),
            remote_images=self._remote_images(artist),
        )

    async def get_search_results(self, info: ArtistInfo) -> list[RemoteSearchResult]:
        """Every candidate artist that could be fetched and extracted."""
        try:
            urls = await self.candidate_urls(info)
        except NotFoundError:
            return []
        except FetchError as e:
            logger.warning(f"Artist search failed for {info.name!r}: {e}")
            return []

        results: list[RemoteSearchResult] = []
        for url in urls:
            try:
                artist = await self._scrape(url)
            except (FetchError, NotFoundError) as e:
                logger.debug(f"Skipping {url}: {e}")
                continue
            result = artist.to_search_result()
            if artist.image_url:
                result.image_url = images.resize(artist.image_url, self.thumbnail_size)
            results.append(result)
        return results


class AlbumResolver(ItemResolver[Album, AlbumInfo]):
    """Resolves local albums to Apple Music albums, including their artists."""

    item_type = ItemType.ALBUM
    item_class = Album
    provider_key = ProviderKey.ALBUM

    def __init__(
        self,
        backend: MetadataBackend,
        artist_resolver: ArtistResolver,
        term_builder: SearchTermBuilder,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        primary_size: ImageSize = images.DEFAULT,
        thumbnail_size: ImageSize = images.THUMBNAIL,
    ):
        super().__init__(backend, term_builder, primary_size, thumbnail_size)
        self.artist_resolver = artist_resolver
        self.max_concurrency = max_concurrency

    def _search_term(self, info: AlbumInfo) -> str:
        return self.term_builder.album_term(info)

    async def resolve_artists(self, stubs: list[Artist]) -> list[Artist]:
        """
        Resolve artist stubs scraped from an album page.

        Stubs are fetched concurrently, at most `max_concurrency` at a time.
        Stubs that fail, do not extract, or carry no metadata are dropped;
        survivors keep their original order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve(stub: Artist) -> Artist | None:
            if not stub.url:
                logger.debug(f"Artist {stub.name!r} has no link, dropping")
                return None
            async with semaphore:
                try:
                    return await self.artist_resolver.resolve_url(stub.url)
                except Exception as e:
                    logger.warning(f"Failed to resolve artist {stub.name!r} ({stub.url}): {e}")
                    return None

        resolved = await asyncio.gather(*(resolve(stub) for stub in stubs))
        artists = [artist for artist in resolved if artist is not None and artist.has_metadata()]
        if len(artists) < len(stubs):
            logger.debug(f"Dropped {len(stubs) - len(artists)} of {len(stubs)} album artist(s)")
        return artists

    async def _resolve_album(self, url: str) -> Album:
        album = await self._scrape(url)
        self._transition(ResolveState.RESOLVING_ARTISTS, f"{len(album.artists)} artist(s)")
        album.artists = await self.resolve_artists(album.artists)
        return album

    def _to_metadata_result(self, album: Album) -> MetadataResult:
        artist_names = [artist.name for artist in album.artists]
        provider_ids = {ProviderKey.ALBUM.value: album.id}
        if album.artists:
            provider_ids[ProviderKey.ALBUM_ARTIST.value] = album.artists[0].id

        return MetadataResult(
            item=AlbumMetadata(
                name=album.name,
                overview=album.about,
                production_year=album.production_year,
                premiere_date=album.release_date,
                artists=artist_names,
                album_artists=artist_names[:1],
                provider_ids=provider_ids,
            ),
            has_metadata=album.has_metadata(),
            remote_images=self._remote_images(album),
        )

    async def get_metadata(self, info: AlbumInfo) -> MetadataResult:
        """
        Metadata for a local album from the best candidate page.

        Raises:
            FetchError: If the search or the album page fetch fails
        """
        try:
            urls = await self.candidate_urls(info)
            album = await self._resolve_album(urls[0])
        except NotFoundError as e:
            self._transition(ResolveState.FAILED, str(e))
            return MetadataResult.empty()

        self._transition(ResolveState.DONE, album.url)
        return self._to_metadata_result(album)

    async def get_search_results(self, info: AlbumInfo) -> list[RemoteSearchResult]:
        """
        Every candidate album that could be fetched, extracted and matches the local year.

        Candidates are processed one at a time; each one's artists fan out concurrently.
        """
        try:
            urls = await self.candidate_urls(info)
        except NotFoundError:
            return []
        except FetchError as e:
            logger.warning(f"Album search failed for {info.name!r}: {e}")
            return []

        results: list[RemoteSearchResult] = []
        for url in urls:
            try:
                album = await self._scrape(url)
            except (FetchError, NotFoundError) as e:
                logger.debug(f"Skipping {url}: {e}")
                continue

            if not matches_year(album, info.year):
                logger.debug(
                    f"Album {album.name!r} ({album.production_year}) does not match "
                    f"year {info.year}, ignoring"
                )
                continue

            album.artists = await self.resolve_artists(album.artists)
            result = album.to_search_result()
            if album.image_url:
                result.image_url = images.resize(album.image_url, self.thumbnail_size)
            results.append(result)
        return results


def create_resolvers(
    config: Config, backend: MetadataBackend
) -> tuple[AlbumResolver, ArtistResolver]:
    """Build both resolvers around one backend using config settings."""
    term_builder = SearchTermBuilder(country=config.apple_music.country)
    primary_size = ImageSize.parse(config.images.primary_size)
    thumbnail_size = ImageSize.parse(config.images.thumbnail_size)

    artist_resolver = ArtistResolver(backend, term_builder, primary_size, thumbnail_size)
    album_resolver = AlbumResolver(
        backend,
        artist_resolver,
        term_builder,
        max_concurrency=config.apple_music.max_concurrency,
        primary_size=primary_size,
        thumbnail_size=thumbnail_size,
    )
    return album_resolver, artist_resolver


## Tests


def test_matches_year():
    album = Album(name="X", release_date=date(1995, 3, 1))
    assert not matches_year(album, 2000)
    assert matches_year(album, 1995)
    assert matches_year(album, None)
    assert matches_year(Album(name="X"), 2000)
