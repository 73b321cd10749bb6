import os
import json
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel

from bookvault.book import Book

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKVAULT_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _fmt(value: Optional[object]) -> str:
    return "-" if value is None else str(value)


def print_list_result(books: List[Book]) -> None:
    """Print a list of books in the current output mode.
    - plain: '#ID  Title by Author (Year)' lines, or 'No books in library.'
    - json: JSON array of full records
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books in library.")
        return

    if mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Year", justify="right")
        table.add_column("Genre")
        table.add_column("Rating", justify="right")
        for b in books:
            table.add_row(
                str(b.id), escape(b.title), escape(b.author), _fmt(b.year), escape(_fmt(b.genre)), _fmt(b.rating)
            )
        _console.print(table)
    else:
        for b in books:
            year = f" ({b.year})" if b.year is not None else ""
            print(f"#{b.id}  {b.title} by {b.author}{year}")


def print_book_result(book: Book) -> None:
    """Print a single book in the current output mode."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(
            f"[bold]{label}:[/] {escape(_fmt(value))}"
            for label, value in (
                ("Title", book.title),
                ("Author", book.author),
                ("Year", book.year),
                ("Genre", book.genre),
                ("Rating", book.rating),
                ("Description", book.description),
            )
        )
        _console.print(Panel.fit(content, title=f"📖 Book #{book.id}", border_style="blue"))
    else:
        print("Book Found")
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Year: {_fmt(book.year)}")
        print(f"Genre: {_fmt(book.genre)}")
        print(f"Rating: {_fmt(book.rating)}")
        print(f"Description: {_fmt(book.description)}")
