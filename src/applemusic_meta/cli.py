"""CLI for applemusic-meta using Typer and Rich.

Stands in for a media-server host: builds local album/artist info from
command-line arguments, runs the resolvers and prints what a host would
receive.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from applemusic_meta.backends import BackendMode, MetadataBackend, get_backend_from_config
from applemusic_meta.config import Config
from applemusic_meta.console import (
    print as cprint,
)
from applemusic_meta.console import (
    print_error,
    print_success,
    print_warning,
    set_console,
    status,
)
from applemusic_meta.fetcher import FetchError
from applemusic_meta.http_cache import ResponseCache
from applemusic_meta.models import (
    AlbumInfo,
    ArtistInfo,
    ItemType,
    MetadataResult,
    ProviderKey,
    RemoteImageInfo,
    RemoteSearchResult,
    SearchQuery,
    TrackInfo,
)
from applemusic_meta.resolver import AlbumResolver, ArtistResolver, create_resolvers
from applemusic_meta.safe_logging import configure_rich_logging

T = TypeVar("T")


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


# Create Typer app
app = typer.Typer(
    name="applemusic-meta",
    help="Album and artist metadata from Apple Music",
    no_args_is_help=True,
    add_completion=False,
)

cache_app = typer.Typer(help="HTTP cache management commands")
app.add_typer(cache_app, name="cache")


# Global state (set by callback)
class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int
    refresh: bool


state = AppState()


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to configuration TOML file", exists=True),
    ] = None,
    country: Annotated[
        str | None, typer.Option(help="Apple Music storefront country code (e.g. us, gb)")
    ] = None,
    backend: Annotated[
        BackendMode | None, typer.Option(help="Search backend to use")
    ] = None,
    offline: Annotated[
        bool, typer.Option(help="Use only cached responses, fail on cache miss")
    ] = False,
    refresh: Annotated[bool, typer.Option(help="Force refresh of cached responses")] = False,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    # Cache options
    cache_dir: Annotated[Path | None, typer.Option(help="HTTP cache directory")] = None,
    cache_ttl: Annotated[int | None, typer.Option(help="Cache TTL in seconds")] = None,
    no_cache: Annotated[bool, typer.Option(help="Disable HTTP caching")] = False,
) -> None:
    """Resolve album and artist metadata from Apple Music."""
    logger = logging.getLogger(__name__)

    # Load config (TOML + env vars)
    cfg = Config.load(config_path)

    # Apply CLI overrides (highest precedence: CLI > Env > Config File > Defaults)
    if offline:
        cfg.offline_mode = True
    if country:
        cfg.apple_music.country = country.lower()
    if backend is not None:
        cfg.apple_music.search_backend = backend

    # Cache overrides
    if cache_dir:
        cfg.http_cache.directory = cache_dir
    if cache_ttl is not None:
        cfg.http_cache.ttl_seconds = cache_ttl
    if no_cache:
        cfg.http_cache.enabled = False

    # Configure logging with CLI > Config precedence
    if verbose > 0:
        log_level = logging.DEBUG if verbose >= 2 else logging.INFO
    else:
        level_str = cfg.logging.level.upper()
        log_level = getattr(logging, level_str, logging.WARNING)

    configure_rich_logging(
        level=log_level,
        format_string=cfg.logging.format,
        show_time=True,
        show_path=False,
    )
    set_console(Console(soft_wrap=True))

    # Suppress external library logging unless very verbose (-vvv)
    if verbose < 3:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if config_path:
        logger.info(f"Loaded config from {config_path}")
    logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}")

    state.config = cfg
    state.output_format = output
    state.verbose = verbose
    state.refresh = refresh


# ====================================================================
# HELPERS
# ====================================================================


def _run(operation: Callable[[MetadataBackend], Awaitable[T]]) -> T:
    """Run `operation` against a freshly built backend, mapping fetch failures to exit codes."""

    async def runner() -> T:
        async with get_backend_from_config(state.config, refresh=state.refresh) as backend:
            return await operation(backend)

    try:
        return asyncio.run(runner())
    except FetchError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.ERROR) from e


def _resolvers(backend: MetadataBackend) -> tuple[AlbumResolver, ArtistResolver]:
    return create_resolvers(state.config, backend)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _emit_json(data: Any) -> None:
    text = json.dumps(_to_jsonable(data), indent=2, default=str, ensure_ascii=False)
    cprint(text, markup=False, highlight=False)


def _album_info(
    name: str,
    artists: list[str] | None,
    year: int | None,
    album_id: str | None,
    track_album: str | None,
    track_artists: list[str] | None,
) -> AlbumInfo:
    provider_ids = {ProviderKey.ALBUM.value: album_id} if album_id else {}
    song_infos = []
    if track_album or track_artists:
        song_infos.append(TrackInfo(album=track_album, album_artists=track_artists or []))
    return AlbumInfo(
        name=name,
        album_artists=artists or [],
        year=year,
        provider_ids=provider_ids,
        song_infos=song_infos,
    )


def _artist_info(name: str, artist_id: str | None) -> ArtistInfo:
    provider_ids = {ProviderKey.ARTIST.value: artist_id} if artist_id else {}
    return ArtistInfo(name=name, provider_ids=provider_ids)


def _show_metadata(result: MetadataResult) -> None:
    if state.output_format == OutputFormat.JSON:
        _emit_json(result)
    elif not result.has_metadata or result.item is None:
        cprint("[yellow]⚠ No metadata found[/yellow]")
    else:
        item = result.item
        cprint(f"[green]✓ {escape(item.name)}[/green]")
        for key, value in dataclasses.asdict(item).items():
            if key == "name" or value in (None, "", [], {}):
                continue
            cprint(f"  {key}: {escape(str(value))}")
        for url, image_type in result.remote_images:
            cprint(f"  image ({image_type}): {url}")

    if not result.has_metadata:
        raise typer.Exit(code=ExitCode.NO_RESULTS)


def _show_search_results(results: list[RemoteSearchResult]) -> None:
    if state.output_format == OutputFormat.JSON:
        _emit_json(results)
    else:
        for i, result in enumerate(results, 1):
            line = f"{i}. {escape(result.name)}"
            if result.artists:
                line += f" - {escape(', '.join(result.artists))}"
            if result.production_year:
                line += f" ({result.production_year})"
            cprint(line)
            cprint(f"   {result.url}")

    if not results:
        print_warning("No results")
        raise typer.Exit(code=ExitCode.NO_RESULTS)


def _show_images(found: list[RemoteImageInfo]) -> None:
    if state.output_format == OutputFormat.JSON:
        _emit_json(found)
    else:
        for image in found:
            cprint(f"{image.type} {image.width}x{image.height}: {image.url}")
            if image.thumbnail_url:
                cprint(f"  thumbnail: {image.thumbnail_url}")

    if not found:
        print_warning("No images")
        raise typer.Exit(code=ExitCode.NO_RESULTS)


# ====================================================================
# ALBUM COMMANDS
# ====================================================================

AlbumArtistOption = Annotated[
    list[str] | None, typer.Option("--artist", "-a", help="Album artist (repeatable)")
]
YearOption = Annotated[int | None, typer.Option("--year", "-y", help="Expected release year")]
AlbumIdOption = Annotated[
    str | None, typer.Option("--album-id", help="Stored Apple Music album id")
]
TrackAlbumOption = Annotated[
    str | None, typer.Option("--track-album", help="Album tag of the first track")
]
TrackArtistOption = Annotated[
    list[str] | None,
    typer.Option("--track-artist", help="Album artist tag of the first track (repeatable)"),
]


@app.command()
def album(
    name: Annotated[str, typer.Argument(help="Album name as tagged locally")],
    artist: AlbumArtistOption = None,
    year: YearOption = None,
    album_id: AlbumIdOption = None,
    track_album: TrackAlbumOption = None,
    track_artist: TrackArtistOption = None,
) -> None:
    """Resolve metadata for a local album.

    Examples:
        applemusic-meta album Homogenic -a Björk
        applemusic-meta album Björk -a Björk --track-album Homogenic
        applemusic-meta --output json album x --album-id 1440833098
    """
    info = _album_info(name, artist, year, album_id, track_album, track_artist)

    async def operation(backend: MetadataBackend) -> MetadataResult:
        album_resolver, _ = _resolvers(backend)
        return await album_resolver.get_metadata(info)

    with status(f"Resolving album {name}..."):
        result = _run(operation)
    _show_metadata(result)


@app.command("album-search")
def album_search(
    name: Annotated[str, typer.Argument(help="Album name as tagged locally")],
    artist: AlbumArtistOption = None,
    year: YearOption = None,
    album_id: AlbumIdOption = None,
    track_album: TrackAlbumOption = None,
    track_artist: TrackArtistOption = None,
) -> None:
    """List every candidate album, filtered by --year when given."""
    info = _album_info(name, artist, year, album_id, track_album, track_artist)

    async def operation(backend: MetadataBackend) -> list[RemoteSearchResult]:
        album_resolver, _ = _resolvers(backend)
        return await album_resolver.get_search_results(info)

    with status(f"Searching albums for {name}..."):
        results = _run(operation)
    _show_search_results(results)


@app.command("album-images")
def album_images(
    name: Annotated[str, typer.Argument(help="Album name as tagged locally")],
    artist: AlbumArtistOption = None,
    album_id: AlbumIdOption = None,
    track_album: TrackAlbumOption = None,
    track_artist: TrackArtistOption = None,
) -> None:
    """List artwork for a local album."""
    info = _album_info(name, artist, None, album_id, track_album, track_artist)

    async def operation(backend: MetadataBackend) -> list[RemoteImageInfo]:
        album_resolver, _ = _resolvers(backend)
        return await album_resolver.get_images(info)

    found = _run(operation)
    _show_images(found)


# ====================================================================
# ARTIST COMMANDS
# ====================================================================

ArtistIdOption = Annotated[
    str | None, typer.Option("--artist-id", help="Stored Apple Music artist id")
]


@app.command()
def artist(
    name: Annotated[str, typer.Argument(help="Artist name as tagged locally")],
    artist_id: ArtistIdOption = None,
) -> None:
    """Resolve metadata for a local artist."""
    info = _artist_info(name, artist_id)

    async def operation(backend: MetadataBackend) -> MetadataResult:
        _, artist_resolver = _resolvers(backend)
        return await artist_resolver.get_metadata(info)

    with status(f"Resolving artist {name}..."):
        result = _run(operation)
    _show_metadata(result)


@app.command("artist-search")
def artist_search(
    name: Annotated[str, typer.Argument(help="Artist name as tagged locally")],
    artist_id: ArtistIdOption = None,
) -> None:
    """List every candidate artist."""
    info = _artist_info(name, artist_id)

    async def operation(backend: MetadataBackend) -> list[RemoteSearchResult]:
        _, artist_resolver = _resolvers(backend)
        return await artist_resolver.get_search_results(info)

    with status(f"Searching artists for {name}..."):
        results = _run(operation)
    _show_search_results(results)


@app.command("artist-images")
def artist_images(
    name: Annotated[str, typer.Argument(help="Artist name as tagged locally")],
    artist_id: ArtistIdOption = None,
) -> None:
    """List artwork for a local artist."""
    info = _artist_info(name, artist_id)

    async def operation(backend: MetadataBackend) -> list[RemoteImageInfo]:
        _, artist_resolver = _resolvers(backend)
        return await artist_resolver.get_images(info)

    found = _run(operation)
    _show_images(found)


# ====================================================================
# LOW-LEVEL COMMANDS
# ====================================================================

ItemTypeOption = Annotated[ItemType, typer.Option("--type", "-t", help="Item type")]


@app.command()
def search(
    term: Annotated[str, typer.Argument(help="Free-text search term")],
    item_type: ItemTypeOption = ItemType.ALBUM,
) -> None:
    """Print candidate page URLs for a search term."""

    async def operation(backend: MetadataBackend) -> list[str]:
        return await backend.search(SearchQuery(term, item_type))

    urls = _run(operation)

    if state.output_format == OutputFormat.JSON:
        _emit_json(urls)
    else:
        for url in urls:
            cprint(url)

    if not urls:
        print_warning(f"No {item_type} results for {term!r}")
        raise typer.Exit(code=ExitCode.NO_RESULTS)


@app.command()
def scrape(
    url: Annotated[str, typer.Argument(help="Apple Music album or artist page URL")],
    item_type: ItemTypeOption = ItemType.ALBUM,
) -> None:
    """Scrape a single page without resolving nested artists."""

    async def operation(backend: MetadataBackend) -> Any:
        return await backend.scrape(url, item_type)

    item = _run(operation)

    if item is None:
        print_warning(f"No {item_type} found on {url}")
        raise typer.Exit(code=ExitCode.NO_RESULTS)

    if state.output_format == OutputFormat.JSON:
        _emit_json(item)
    else:
        cprint(f"[green]✓ {escape(item.name)}[/green] ({item.id})")
        for key, value in dataclasses.asdict(item).items():
            if key in ("name", "id") or value in (None, "", []):
                continue
            cprint(f"  {key}: {escape(str(value))}")


@app.command()
def image(
    url: Annotated[str, typer.Argument(help="Image URL")],
    output_file: Annotated[
        Path, typer.Option("--output-file", "-f", help="Where to write the image")
    ],
) -> None:
    """Download an image as-is."""

    async def operation(backend: MetadataBackend) -> bytes:
        response = await backend.fetcher.get_image_response(url)
        return response.content

    content = _run(operation)
    output_file.write_bytes(content)
    print_success(f"Wrote {len(content)} bytes to {output_file}")


# ====================================================================
# CACHE COMMANDS
# ====================================================================


def _cache() -> ResponseCache:
    return ResponseCache(
        cache_dir=state.config.http_cache.directory,
        ttl_seconds=state.config.http_cache.ttl_seconds,
    )


@cache_app.command("status")
def cache_status() -> None:
    """Show HTTP cache statistics."""
    stats = _cache().stats()
    if state.output_format == OutputFormat.JSON:
        _emit_json(
            {
                "directory": str(state.config.http_cache.directory),
                **dataclasses.asdict(stats),
            }
        )
        return

    cprint(f"Cache directory: {state.config.http_cache.directory}")
    cprint(f"  Entries: {stats.entries} ({stats.expired} expired)")
    cprint(f"  Size: {stats.total_bytes} bytes")


@cache_app.command("purge")
def cache_purge() -> None:
    """Remove expired HTTP cache entries."""
    removed = _cache().purge_expired()
    print_success(f"Purged {removed} expired entries")


@cache_app.command("clear")
def cache_clear(
    force: Annotated[bool, typer.Option(help="Skip confirmation prompt")] = False,
) -> None:
    """Remove all HTTP cache entries."""
    if not force:
        typer.confirm("Remove all cached responses?", abort=True)
    removed = _cache().clear()
    print_success(f"Cleared {removed} entries")


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
