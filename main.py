import os
import subprocess
import sys
from typing import Any, Dict, Optional

import httpx
import typer
from rich.console import Console

from config import settings
from ui_helpers import print_book_result, print_list_result, set_output_mode

APP_NAME = "Books CLI"

console = Console(stderr=True)

app = typer.Typer(help="Command line client for the Book Checkout API")

# Overridden by the global --base-url option
_base_url: Optional[str] = None


def get_client() -> httpx.Client:
    """HTTP client pointed at the configured API."""
    return httpx.Client(base_url=_base_url or settings.api_base_url, timeout=settings.client_timeout)


def _request(method: str, path: str, **kwargs: Any) -> Any:
    """Send one request and return the decoded JSON body.

    Non-2xx responses print the server's message and exit with code 1.
    """
    try:
        with get_client() as client:
            response = client.request(method, path, **kwargs)
    except httpx.HTTPError as e:
        console.print(f"[bold red]Could not reach the API at {_base_url or settings.api_base_url}:[/] {e}")
        console.print("[dim]Is the server running? Start it with `serve`.[/]")
        raise typer.Exit(code=1)

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.is_error:
        message = body.get("message") if isinstance(body, dict) else None
        print(message or f"Request failed with status {response.status_code}")
        raise typer.Exit(code=1)
    return body


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="API base URL (default: API_BASE_URL or http://API_HOST:API_PORT)",
    ),
):
    """Global options for the CLI."""
    global _base_url
    if output:
        set_output_mode(output)
    _base_url = base_url


@app.command("list")
def cli_list():
    """List all books."""
    books = _request("GET", "/books")
    print_list_result(books or [])


@app.command("find")
def cli_find(book_id: str = typer.Argument(..., help="Book ID")):
    """Show a single book by ID."""
    book: Dict[str, Any] = _request("GET", f"/books/{book_id}")
    print_book_result(book, heading="Book Found")


@app.command("add")
def cli_add(
    book_id: str = typer.Option(..., "--id", help="Book ID"),
    title: str = typer.Option(..., "--title", help="Title"),
    author: str = typer.Option(..., "--author", help="Author"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Available copies"),
):
    """Add a book. IDs are not checked for duplicates."""
    payload = {"id": book_id, "title": title, "author": author, "quantity": quantity}
    book = _request("POST", "/books", json=payload)
    print(f"Successfully added: {book['title']} by {book['author']}")


@app.command("checkout")
def cli_checkout(book_id: str = typer.Argument(..., help="Book ID")):
    """Check out one copy of a book."""
    body = _request("PATCH", "/checkout", params={"id": book_id})
    print_book_result(body["data"], heading="Checked out")


@app.command("return")
def cli_return(book_id: str = typer.Argument(..., help="Book ID")):
    """Return one copy of a book."""
    book = _request("PATCH", "/return", params={"id": book_id})
    print_book_result(book, heading="Returned")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Run the API with uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
        "--log-level", settings.log_level.lower(),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=True, cwd=os.path.dirname(os.path.abspath(__file__)))
    except FileNotFoundError:
        console.print("[bold red]Error:[/] could not launch uvicorn. Make sure it is installed.")
        raise typer.Exit(code=1)
    except subprocess.CalledProcessError as e:
        raise typer.Exit(code=e.returncode)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    app()
