import os
import json
from typing import Any, Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "CATALOG_CLI_OUTPUT"

PRIMARY_COLOR = "#DE3163"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def print_list_result(books: List[Dict[str, Any]]) -> None:
    """Print the book list in the current output mode.
    - plain: '<id> - Title by Author [genre]' lines, or 'No books found'
    - json: JSON array of records
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(books, ensure_ascii=False))
        return

    if not books:
        print("No books found")
        return

    if mode == "rich":
        table = Table(title="Books", show_lines=True, header_style=f"bold {PRIMARY_COLOR}")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="white")
        for b in books:
            table.add_row(str(b["id"]), b["title"], b["author"], b["genre"].capitalize())
        _console.print(table)
    else:
        for b in books:
            print(f"{b['id']} - {b['title']} by {b['author']} [{b['genre']}]")

def print_error(message: str) -> None:
    """Error screen: replaces any other output."""
    if get_output_mode() == "rich":
        _console.print(Panel.fit(f"[bold red]Error:[/] {message}", border_style="red"))
    else:
        print(f"Error: {message}")

def print_placement(placement: Dict[str, Any]) -> None:
    if get_output_mode() == "rich":
        _console.print_json(json.dumps(placement))
    else:
        print(json.dumps(placement, ensure_ascii=False))
