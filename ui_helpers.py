import os
import json
from typing import Any, Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKS_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _plain_line(book: Dict[str, Any]) -> str:
    return f"{book.get('id', '')} - {book.get('title', '')} by {book.get('author', '')} (qty: {book.get('quantity', 0)})"


def print_list_result(books: List[Dict[str, Any]]) -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - Title by Author (qty: N)' lines, or 'No books in library.'
    - json: JSON array as returned by the API
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps(books, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Qty", justify="right", style="green")
        for b in books:
            table.add_row(str(b.get("id", "")), b.get("title", ""), b.get("author", ""), str(b.get("quantity", 0)))
        _console.print(table)
    else:
        for b in books:
            print(_plain_line(b))


def print_book_result(book: Dict[str, Any], heading: str = "Book") -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]ID:[/] {book.get('id', '')}\n"
            f"[bold]Title:[/] {book.get('title', '')}\n"
            f"[bold]Author:[/] {book.get('author', '')}\n"
            f"[bold]Quantity:[/] {book.get('quantity', 0)}"
        )
        _console.print(Panel.fit(content, title=f"📖 {heading}", border_style="blue"))
    else:
        print(f"{heading}: {_plain_line(book)}")
