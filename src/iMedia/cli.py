"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import threading
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from iMedia.domain.models.core import AlbumType
from iMedia.domain.models.filters import Custom
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.predicates import where
from iMedia.domain.models.result import Result
from iMedia.domain.models.sort import AssetSortKey, Sort
from iMedia.errors import AssetNotFoundError, IMediaError, InvalidArgumentError, SettingsError, StoreError
from iMedia.library import MediaLibrary
from iMedia.settings import SettingsManager
from iMedia.utils.logging import configure_logging

app = typer.Typer(help="Inspect and edit a typed media library")

_KINDS = {kind.value.name: kind for kind in MediaKind}
_WAIT_TIMEOUT_SEC = 60.0


class _State:
    settings_path: Optional[Path] = None
    verbose: bool = False


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (InvalidArgumentError, SettingsError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(2) from exc
        except AssetNotFoundError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except StoreError as exc:
            typer.echo(f"Store error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except IMediaError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _open_library() -> MediaLibrary:
    settings = SettingsManager(_State.settings_path)
    settings.load()
    configure_logging("DEBUG" if _State.verbose else settings.get("logging.level", "WARNING"))
    return MediaLibrary.from_settings(settings)


def _wait(submit) -> Result:
    """Run *submit(completion)* and block until the completion fires."""
    done = threading.Event()
    outcome: list[Result] = []

    def _completion(result: Result) -> None:
        outcome.append(result)
        done.set()

    submit(_completion)
    if not done.wait(_WAIT_TIMEOUT_SEC):
        raise StoreError(f"No answer from the store within {_WAIT_TIMEOUT_SEC}s")
    return outcome[0]


@app.callback()
def main(
    settings: Optional[Path] = typer.Option(None, "--settings", help="Path to settings.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    _State.settings_path = settings
    _State.verbose = verbose


@app.command("list")
@_handle_errors
def list_media(
    kind: str = typer.Argument("photo", help="photo, live_photo, video or audio"),
    favorites: bool = typer.Option(False, "--favorites", help="Only favorites"),
    oldest_first: bool = typer.Option(False, "--oldest-first"),
    page: int = typer.Option(1, min=1),
    page_size: int = typer.Option(50, min=1),
) -> None:
    """List media of one kind, newest first."""

    if kind not in _KINDS:
        raise InvalidArgumentError(f"Unknown kind {kind!r}; choose from {', '.join(_KINDS)}")
    library = _open_library()
    try:
        filters = [Custom(where("is_favorite", "=", True))] if favorites else []
        sort = [Sort(AssetSortKey.CREATION_DATE, ascending=oldest_first)]
        result = library.assets(_KINDS[kind], filters, sort).page(page, page_size)
        table = Table(title=f"{kind} (page {page})")
        table.add_column("Identifier")
        table.add_column("Created")
        table.add_column("Favorite")
        for media in result.items:
            metadata = media.metadata
            created = metadata.creation_date.isoformat() if metadata.creation_date else "-"
            table.add_row(media.local_identifier, created, "*" if metadata.is_favorite else "")
        Console().print(table)
        if result.has_more:
            print(f"[dim]More on page {page + 1}")
    finally:
        library.shutdown()


@app.command()
@_handle_errors
def albums(
    album_type: Optional[str] = typer.Option(None, "--type", help="user or smart"),
) -> None:
    """List albums ordered by title."""

    resolved_type = None
    if album_type is not None:
        try:
            resolved_type = AlbumType[album_type.upper()]
        except KeyError:
            raise InvalidArgumentError(f"Unknown album type {album_type!r}") from None
    library = _open_library()
    try:
        table = Table(title="Albums")
        table.add_column("Identifier")
        table.add_column("Title")
        table.add_column("Type")
        for album in library.albums(resolved_type):
            table.add_row(album.local_identifier, album.localized_title, album.album_type.name.lower())
        Console().print(table)
    finally:
        library.shutdown()


@app.command()
@_handle_errors
def favorite(
    local_identifier: str,
    off: bool = typer.Option(False, "--off", help="Clear the favorite flag instead"),
) -> None:
    """Set or clear the favorite flag of one asset."""

    library = _open_library()
    try:
        media = library.media_with_identifier(local_identifier)
        if media is None:
            raise AssetNotFoundError(f"No asset {local_identifier}")
        _wait(lambda completion: media.favorite(not off, completion)).get()
        state = "favorite" if media.metadata.is_favorite else "not favorite"
        print(f"[green]{local_identifier} is now {state}")
    finally:
        library.shutdown()


@app.command("import")
@_handle_errors
def import_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    kind: str = typer.Option("photo", help="photo, video or audio"),
    move: bool = typer.Option(False, "--move", help="Move the file into the library"),
) -> None:
    """Import one file as a new asset."""

    savers = {"photo": "save_photo", "video": "save_video", "audio": "save_audio"}
    if kind not in savers:
        raise InvalidArgumentError(f"Cannot import as {kind!r}")
    library = _open_library()
    try:
        save = getattr(library, savers[kind])
        media = _wait(lambda completion: save(completion, file_path=path, should_move_file=move)).get()
        print(f"[green]Imported {path.name} as {media.local_identifier}")
    finally:
        library.shutdown()


if __name__ == "__main__":
    app()
