import asyncio
import logging
import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from catalog.config import settings
from catalog.http_client import CatalogClient
from catalog.manager import BookManager
from catalog.placement import Rect, Viewport, compute_placement
from catalog.ui_helpers import print_error, print_list_result, print_placement, set_output_mode

APP_NAME = "Book Catalog CLI"

console = Console()

app = typer.Typer(help=APP_NAME)

# The terminal has no on-screen controls or pixel geometry: forms are anchored at
# the origin of a nominal desktop viewport. Terminal columns are not CSS pixels.
TERMINAL_TRIGGER = Rect(0, 0, 0, 0)
TERMINAL_VIEWPORT = Viewport(width=1280, height=800)


def make_manager() -> BookManager:
    return BookManager(CatalogClient())


def _finish(manager: BookManager) -> None:
    """Show the error screen and exit non-zero if the page went into the error state."""
    if manager.state.error:
        print_error(manager.state.error)
        raise typer.Exit(code=1)


def _find(manager: BookManager, book_id: int) -> Optional[dict]:
    return next((b for b in manager.state.books if b["id"] == book_id), None)


def _confirm(message: str) -> bool:
    return Confirm.ask(message, default=False)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global CLI options (output mode, logging)."""
    if output:
        set_output_mode(output)
    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level)


@app.command("list")
def cli_list():
    """List all books."""
    async def run() -> BookManager:
        manager = make_manager()
        try:
            await manager.load()
        finally:
            await manager.close()
        return manager

    manager = asyncio.run(run())
    _finish(manager)
    print_list_result(manager.state.books)


@app.command("add")
def cli_add(
    title: str = typer.Option(..., "--title", help="Book title"),
    author: str = typer.Option(..., "--author", help="Book author"),
    genre: str = typer.Option(..., "--genre", help="Book genre"),
):
    """Add a new book."""
    async def run() -> BookManager:
        manager = make_manager()
        try:
            manager.open_for_create(TERMINAL_TRIGGER, TERMINAL_VIEWPORT)
            manager.update_field("title", title)
            manager.update_field("author", author)
            manager.update_field("genre", genre)
            await manager.submit()
        finally:
            await manager.close()
        return manager

    manager = asyncio.run(run())
    _finish(manager)
    print(f"Successfully added: {title} by {author}")


@app.command("edit")
def cli_edit(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title"),
    author: Optional[str] = typer.Option(None, "--author"),
    genre: Optional[str] = typer.Option(None, "--genre"),
):
    """Edit a book. Omitted or empty options leave the field unchanged."""
    async def run() -> tuple[BookManager, Optional[dict]]:
        manager = make_manager()
        try:
            await manager.load()
            book = _find(manager, book_id)
            if book is None:
                return manager, None
            manager.open_for_edit(book, TERMINAL_TRIGGER, TERMINAL_VIEWPORT)
            for name, value in (("title", title), ("author", author), ("genre", genre)):
                if value is not None:
                    manager.update_field(name, value)
            await manager.submit()
            return manager, book
        finally:
            await manager.close()

    manager, book = asyncio.run(run())
    _finish(manager)
    if book is None:
        print(f"Book with ID {book_id} not found.")
        raise typer.Exit(code=1)
    print(f"Book with ID {book_id} has been updated.")


@app.command("delete")
def cli_delete(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a book after confirmation."""
    async def run() -> tuple[BookManager, Optional[dict], bool]:
        manager = make_manager()
        try:
            await manager.load()
            book = _find(manager, book_id)
            if book is None or manager.state.error:
                return manager, book, False
            console.print(Panel(
                f"[bold]Title:[/] {escape(book['title'])}\n"
                f"[bold]Author:[/] {escape(book['author'])}\n"
                f"[bold]Genre:[/] {escape(book['genre'])}",
                title="Book to delete",
                border_style="yellow"
            ))
            confirm = (lambda _message: True) if yes else _confirm
            removed = await manager.delete(book_id, confirm)
            return manager, book, removed
        finally:
            await manager.close()

    manager, book, removed = asyncio.run(run())
    _finish(manager)
    if book is None:
        print(f"Book with ID {book_id} not found.")
        raise typer.Exit(code=1)
    if removed:
        print(f"Book with ID {book_id} has been deleted.")
    else:
        print("Deletion cancelled.")


@app.command("place")
def cli_place(
    width: float = typer.Option(..., "--width", help="Viewport width in CSS pixels"),
    rect: str = typer.Option(..., "--rect", help="Trigger rectangle: left,top,right,bottom"),
    scroll_x: float = typer.Option(0, "--scroll-x"),
    scroll_y: float = typer.Option(0, "--scroll-y"),
    add: bool = typer.Option(False, "--add", help="Place the add form instead of the edit form"),
):
    """Print where the popover form would be placed."""
    try:
        trigger = Rect.parse(rect)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--rect")
    viewport = Viewport(width=width, scroll_x=scroll_x, scroll_y=scroll_y)
    print_placement(compute_placement(trigger, viewport, is_add=add).to_dict())


@app.command("serve")
def cli_serve():
    """Start the API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "catalog.api:app",
        "--host", host,
        "--port", str(port),
    ]
    subprocess.run(args)


if __name__ == "__main__":
    app()
