import os
import subprocess
import sys
import webbrowser
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from bookvault.config import settings
from bookvault.importer import ImportFileError, ImportResult, extract_records, import_books, load_import_file
from bookvault.library import Library, StorageError
from bookvault.ui_helpers import print_book_result, print_list_result, set_output_mode

console = Console()

app = typer.Typer(help="Book Vault CLI")

# Database file chosen by the global --db option; None means the configured default.
_state = {"db_file": None}


def _get_library() -> Library:
    return Library(_state["db_file"] or settings.database_file)


def _storage_failure(error: StorageError) -> NoReturn:
    print(f"Error: database unavailable: {error}")
    raise typer.Exit(code=1)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="SQLite database file (default: LIBRARY_DB_FILE or database.sqlite)",
    ),
):
    """Global CLI options (output mode, database file)."""
    if output:
        set_output_mode(output)
    _state["db_file"] = db


@app.command("list")
def cli_list(search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by title, author or genre")):
    """List all books, optionally filtered."""
    try:
        books = _get_library().list_books(search)
    except StorageError as e:
        _storage_failure(e)
    print_list_result(books)


@app.command("find")
def cli_find(book_id: int):
    """Find a book by id and show its details."""
    try:
        book = _get_library().find_book(book_id)
    except StorageError as e:
        _storage_failure(e)
    if book:
        print_book_result(book)
    else:
        print(f"Book with ID {book_id} not found.")


@app.command("remove")
def cli_remove(book_id: int):
    """Remove a book by id."""
    try:
        removed = _get_library().remove_book(book_id)
    except StorageError as e:
        _storage_failure(e)
    if removed:
        print(f"Book with ID {book_id} has been removed.")
    else:
        print(f"Book with ID {book_id} not found.")


@app.command("import")
def cli_import(
    file_path: Optional[str] = typer.Argument(None, help="JSON file to import (default: IMPORT_FILE or books.json)"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Show rich progress bars and colors"),
):
    """Bulk-import books from a JSON file straight into the database."""
    path = file_path or settings.import_file
    try:
        records = extract_records(load_import_file(path))
    except ImportFileError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    try:
        lib = _get_library()
    except StorageError as e:
        _storage_failure(e)

    print(f"Found {len(records)} books in {path}. Starting import...")

    if interactive:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Importing {len(records)} books", total=len(records))

            def _report(result: ImportResult) -> None:
                if result.ok:
                    console.print(f"✅ [green]Added[/] (ID: {result.book_id}): [bold]{escape(result.title)}[/]")
                else:
                    console.print(f"❌ [red]Failed[/]: #{result.index} - {escape(result.error)}")
                progress.advance(task)

            summary = import_books(lib, records, on_result=_report)
    else:
        def _report(result: ImportResult) -> None:
            if result.ok:
                print(f"Added (ID: {result.book_id}): {result.title}")
            else:
                print(f"Failed #{result.index}: {result.error}")

        summary = import_books(lib, records, on_result=_report)

    print("Import finished!")
    print(f"Inserted: {summary.succeeded}")
    if summary.failed:
        print(f"Errors: {summary.failed}")


@app.command("serve")
def cli_serve(open_browser: bool = typer.Option(True, "--open/--no-open", help="Open the web UI in a browser")):
    """Start the web UI and REST API using uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    url = f"http://{host}:{port}/"
    print(f"Starting web UI on {url}")
    if open_browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            pass
    args = [
        sys.executable,
        "-m", "uvicorn",
        "bookvault.api:create_app",
        "--factory",
        "--host", host,
        "--port", str(port),
    ]
    env = dict(os.environ)
    if _state["db_file"]:
        env["LIBRARY_DB_FILE"] = _state["db_file"]
    try:
        subprocess.run(args, check=False, env=env)
    except FileNotFoundError:
        print("Error: `uvicorn` could not be started. Make sure it is installed.")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("Server stopped.")


if __name__ == "__main__":
    app()
