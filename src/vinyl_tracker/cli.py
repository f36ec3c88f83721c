#!/usr/bin/env python3
"""Command-line interface for vinyl-tracker.

This CLI is primarily for debugging and development.
For application use, import vinyl_tracker as a library.
"""

import json
import logging
import sys
from pathlib import Path
from uuid import UUID

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vinyl_tracker.models.album import Album
from vinyl_tracker.models.collection import AlbumCollection
from vinyl_tracker.services.repository import AlbumRepository
from vinyl_tracker.settings import get_settings
from vinyl_tracker.utils.cover import encode_jpeg
from vinyl_tracker.utils.text import fold

logger = logging.getLogger("vinyl_tracker")

SHORT_ID_LENGTH = 8


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Clears existing handlers before adding a new one, so it can be called
    more than once.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise use the
            configured level (WARNING by default).
        console: Optional Console for the handler. Defaults to stderr so
            command output on stdout stays machine-readable.
    """
    level = logging.DEBUG if verbose else get_settings().log_level

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console or Console(stderr=True),
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def short_id(value: UUID) -> str:
    return str(value)[:SHORT_ID_LENGTH]


def print_album_table(console: Console, albums: list[Album], title: str) -> None:
    """Print albums as a table, one row per album."""
    if not albums:
        console.print("[yellow]No albums found[/yellow]")
        return

    table = Table(title=f"[bold]{title}[/bold] ({len(albums)})", title_justify="left")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Artist", style="bold cyan")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    table.add_column("Genre")
    table.add_column("Label")

    for album in albums:
        table.add_row(
            short_id(album.id),
            album.artist,
            album.title,
            album.year_text,
            album.genre,
            album.label,
        )
    console.print(table)


def print_album_card(
    console: Console, album: Album, collections: list[AlbumCollection]
) -> None:
    """Print a single album as a vertical card."""
    table = Table(
        show_header=False,
        padding=(0, 1),
        title=f"[bold yellow]{album.title}[/bold yellow]",
        title_justify="left",
    )
    table.add_column("Field", style="bold cyan", width=12)
    table.add_column("Value", overflow="fold")

    table.add_row("ID", str(album.id))
    table.add_row("Artist", album.artist)
    if album.year_text:
        table.add_row("Year", album.year_text)
    if album.genre:
        table.add_row("Genre", album.genre)
    if album.label:
        table.add_row("Label", album.label)
    if album.notes:
        table.add_row("Notes", album.notes)
    table.add_row("Artwork", "yes" if album.has_artwork else "no")
    table.add_row("Collections", ", ".join(c.name for c in collections) or "-")
    table.add_row("Added", album.created_at.isoformat(timespec="seconds"))
    table.add_row("Updated", album.updated_at.isoformat(timespec="seconds"))

    console.print(table)


def dump_albums_json(albums: list[Album]) -> None:
    data = [a.model_dump(mode="json", exclude={"cover_image"}) for a in albums]
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def resolve_album(repository: AlbumRepository, ref: str) -> Album:
    """Find an album by full id or unique id prefix."""
    matches = [a for a in repository.list_albums() if str(a.id).startswith(ref)]
    if not matches:
        raise click.ClickException(f"No album with id '{ref}'")
    if len(matches) > 1:
        raise click.ClickException(f"Album id '{ref}' is ambiguous")
    return matches[0]


def resolve_collection(repository: AlbumRepository, ref: str) -> AlbumCollection:
    """Find a collection by name (case-insensitive) or id prefix."""
    collections = repository.list_collections()
    by_name = [c for c in collections if fold(c.name) == fold(ref)]
    if len(by_name) == 1:
        return by_name[0]
    by_id = [c for c in collections if str(c.id).startswith(ref)]
    if len(by_id) == 1:
        return by_id[0]
    if by_name or by_id:
        raise click.ClickException(f"Collection '{ref}' is ambiguous")
    raise click.ClickException(f"No collection named '{ref}'")


@click.group()
@click.option(
    "--library",
    "library_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Library file (defaults to VINYL_TRACKER_DATA_DIR/library.json).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, library_path: Path | None, verbose: bool) -> None:
    """Catalogue a vinyl collection from the command line."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose)

    path = library_path or get_settings().library_path
    logger.debug("Using library %s", path)
    repository = AlbumRepository(path)
    ctx.obj["repository"] = repository
    ctx.call_on_close(repository.close)


@main.command(name="list")
@click.option("--collection", "collection_ref", help="Only albums in this collection.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, collection_ref: str | None, as_json: bool) -> None:
    """List albums by artist and title."""
    repository: AlbumRepository = ctx.obj["repository"]
    title = "Library"
    if collection_ref:
        collection = resolve_collection(repository, collection_ref)
        albums = repository.albums_in(collection.id)
        title = collection.name
    else:
        albums = repository.list_albums()

    if as_json:
        dump_albums_json(albums)
    else:
        print_album_table(Console(), albums, title)


@main.command(name="search")
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def search_cmd(ctx: click.Context, query: str, as_json: bool) -> None:
    """Search title, artist, genre and label (accent-insensitive)."""
    repository: AlbumRepository = ctx.obj["repository"]
    albums = repository.search(query)
    if as_json:
        dump_albums_json(albums)
    else:
        print_album_table(Console(), albums, f"Search: {query}")


@main.command(name="add")
@click.option("--title", required=True, help="Album title.")
@click.option("--artist", required=True, help="Album artist.")
@click.option("--year", type=int, help="Release year.")
@click.option("--genre", default="", help="Genre.")
@click.option("--label", default="", help="Record label.")
@click.option("--notes", default="", help="Free-text notes.")
@click.option(
    "--cover",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Cover image file (stored as JPEG).",
)
@click.option(
    "--collection",
    "collection_refs",
    multiple=True,
    help="Collection to file the album in (repeatable).",
)
@click.option(
    "--allow-duplicate", is_flag=True, help="Store even if the album already exists."
)
@click.pass_context
def add_cmd(
    ctx: click.Context,
    title: str,
    artist: str,
    year: int | None,
    genre: str,
    label: str,
    notes: str,
    cover: Path | None,
    collection_refs: tuple[str, ...],
    allow_duplicate: bool,
) -> None:
    """Add an album to the library.

    \b
    Examples:
      vinyl-tracker add --title "Blue Train" --artist "John Coltrane" --year 1957
      vinyl-tracker add --title "Kind of Blue" --artist "Miles Davis" --year 1959
      vinyl-tracker collection link 1a2b3c4d Jazz
    """
    repository: AlbumRepository = ctx.obj["repository"]
    console = Console()

    cover_image = None
    if cover is not None:
        cover_image = encode_jpeg(
            cover.read_bytes(), get_settings().cover_jpeg_quality
        )
        if cover_image is None:
            raise click.ClickException(f"Could not read image: {cover}")

    collection_ids = [resolve_collection(repository, r).id for r in collection_refs]
    album = Album(
        title=title,
        artist=artist,
        year=year,
        genre=genre,
        label=label,
        notes=notes,
        cover_image=cover_image,
    )
    result = repository.add_album(
        album, collection_ids, allow_duplicate=allow_duplicate
    )

    if result.is_rejected:
        raise click.ClickException("Album title and artist are required.")
    assert result.album is not None
    if result.is_duplicate:
        console.print(
            f"[yellow]Already in library:[/yellow] {result.album.artist} - "
            f"{result.album.title} [dim]({short_id(result.album.id)})[/dim]"
        )
    else:
        console.print(
            f"[green]Added[/green] {result.album.artist} - {result.album.title} "
            f"[dim]({short_id(result.album.id)})[/dim]"
        )


@main.command(name="show")
@click.argument("album_ref", metavar="ALBUM_ID")
@click.pass_context
def show_cmd(ctx: click.Context, album_ref: str) -> None:
    """Show one album and the collections it belongs to."""
    repository: AlbumRepository = ctx.obj["repository"]
    album = resolve_album(repository, album_ref)
    print_album_card(Console(), album, repository.collections_containing(album.id))


@main.command(name="remove")
@click.argument("album_ref", metavar="ALBUM_ID")
@click.pass_context
def remove_cmd(ctx: click.Context, album_ref: str) -> None:
    """Remove an album (and its collection memberships)."""
    repository: AlbumRepository = ctx.obj["repository"]
    album = resolve_album(repository, album_ref)
    repository.remove_album(album.id)
    Console().print(f"[green]Removed[/green] {album.artist} - {album.title}")


@main.command(name="seed")
@click.argument("count", type=click.IntRange(min=1))
@click.pass_context
def seed_cmd(ctx: click.Context, count: int) -> None:
    """Add COUNT placeholder albums (for demos and testing)."""
    repository: AlbumRepository = ctx.obj["repository"]
    added = sum(
        repository.add_album(Album.placeholder(i)).is_inserted
        for i in range(1, count + 1)
    )
    Console().print(f"[green]Added {added} placeholder album(s)[/green]")


@main.command(name="collections")
@click.pass_context
def collections_cmd(ctx: click.Context) -> None:
    """List collections by name."""
    repository: AlbumRepository = ctx.obj["repository"]
    console = Console()
    collections = repository.list_collections()
    if not collections:
        console.print("[yellow]No collections[/yellow]")
        return

    table = Table(title="[bold]Collections[/bold]", title_justify="left")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold cyan")
    table.add_column("Albums", justify="right")
    table.add_column("Detail")
    for collection in collections:
        table.add_row(
            short_id(collection.id),
            collection.name,
            str(collection.album_count),
            collection.detail,
        )
    console.print(table)


@main.group(name="collection")
def collection_group() -> None:
    """Create, delete and fill collections."""


@collection_group.command(name="create")
@click.argument("name")
@click.option("--detail", default="", help="Description.")
@click.pass_context
def collection_create_cmd(ctx: click.Context, name: str, detail: str) -> None:
    """Create a collection named NAME."""
    repository: AlbumRepository = ctx.obj["repository"]
    collection = repository.create_collection(name, detail)
    if not collection.is_valid:
        raise click.ClickException("Collection name is required.")
    Console().print(f"[green]Created collection[/green] {collection.name}")


@collection_group.command(name="delete")
@click.argument("collection_ref", metavar="COLLECTION")
@click.pass_context
def collection_delete_cmd(ctx: click.Context, collection_ref: str) -> None:
    """Delete a collection. Its albums stay in the library."""
    repository: AlbumRepository = ctx.obj["repository"]
    collection = resolve_collection(repository, collection_ref)
    repository.delete_collection(collection.id)
    Console().print(f"[green]Deleted collection[/green] {collection.name}")


@collection_group.command(name="link")
@click.argument("album_ref", metavar="ALBUM_ID")
@click.argument("collection_refs", nargs=-1, required=True, metavar="COLLECTION...")
@click.pass_context
def collection_link_cmd(
    ctx: click.Context, album_ref: str, collection_refs: tuple[str, ...]
) -> None:
    """Add an album to one or more collections."""
    repository: AlbumRepository = ctx.obj["repository"]
    album = resolve_album(repository, album_ref)
    collections = [resolve_collection(repository, r) for r in collection_refs]
    repository.link_album(album.id, [c.id for c in collections])
    names = ", ".join(c.name for c in collections)
    Console().print(f"[green]Linked[/green] {album.title} -> {names}")


@collection_group.command(name="unlink")
@click.argument("album_ref", metavar="ALBUM_ID")
@click.argument("collection_ref", metavar="COLLECTION")
@click.pass_context
def collection_unlink_cmd(
    ctx: click.Context, album_ref: str, collection_ref: str
) -> None:
    """Remove an album from a collection."""
    repository: AlbumRepository = ctx.obj["repository"]
    album = resolve_album(repository, album_ref)
    collection = resolve_collection(repository, collection_ref)
    repository.unlink_album(album.id, collection.id)
    Console().print(f"[green]Unlinked[/green] {album.title} from {collection.name}")


if __name__ == "__main__":
    main()
