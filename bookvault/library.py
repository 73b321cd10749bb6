import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from bookvault.book import Book
from bookvault.config import settings
from bookvault.database import (
    BOOK_COLUMNS,
    EDITABLE_COLUMNS,
    SQLITE_INT_MAX,
    SQLITE_INT_MIN,
    get_db_connection,
    initialize_database,
)
from bookvault.validators import TextValidator

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

_SELECT_BOOKS = f"SELECT {', '.join(BOOK_COLUMNS)} FROM books"


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if isinstance(value, str) else value


def _is_storable_id(book_id: int) -> bool:
    # Ids outside the SQLite INTEGER range cannot exist in the table.
    return SQLITE_INT_MIN <= book_id <= SQLITE_INT_MAX


class StorageError(Exception):
    """Raised when the underlying database fails."""


class Library:
    """Manages the collection of books and data persistence."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or settings.database_file
        try:
            initialize_database(self.db_file)  # Ensure DB and tables exist
        except sqlite3.Error as e:
            logger.error(f"Could not initialize database {self.db_file}: {e}")
            raise StorageError(str(e)) from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        # One connection per operation; no connection is shared between requests.
        try:
            conn = get_db_connection(self.db_file)
        except sqlite3.Error as e:
            logger.error(f"Could not open database {self.db_file}: {e}")
            raise StorageError(str(e)) from e
        try:
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            yield conn
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Database operation failed: {e}")
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    # ------------------------- Core operations ------------------------- #
    def list_books(self, search: Optional[str] = None) -> List[Book]:
        """List all books, or those whose title, author or genre contains ``search``."""
        with self._connect() as conn:
            if search:
                needle = search.casefold()
                cursor = conn.execute(
                    f"""
                    {_SELECT_BOOKS}
                    WHERE instr(casefold(title), ?) > 0
                       OR instr(casefold(author), ?) > 0
                       OR instr(casefold(genre), ?) > 0
                    ORDER BY id
                    """,
                    (needle, needle, needle),
                )
            else:
                cursor = conn.execute(f"{_SELECT_BOOKS} ORDER BY id")
            return [Book.from_dict(dict(row)) for row in cursor.fetchall()]

    def find_book(self, book_id: int) -> Optional[Book]:
        """Find a single book by id."""
        if not _is_storable_id(book_id):
            return None
        with self._connect() as conn:
            row = conn.execute(f"{_SELECT_BOOKS} WHERE id = ?", (book_id,)).fetchone()
            return Book.from_dict(dict(row)) if row else None

    def add_book(self, book: Book) -> Book:
        """Insert a new book and return it as stored, including its generated id."""
        if not TextValidator.validate_title(book.title) or not TextValidator.validate_author(book.author):
            raise ValueError("Title and author are required")

        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO books (title, author, year, genre, description, rating) VALUES (?, ?, ?, ?, ?, ?)",
                (book.title, book.author, book.year, book.genre, book.description, book.rating),
            )
            conn.commit()
            book.id = cursor.lastrowid
        logger.info(f"Book added: id={book.id} title={book.title!r}")
        return self.find_book(book.id)

    def update_book(self, book_id: int, fields: Dict[str, Any]) -> Optional[Book]:
        """Overwrite only the fields present in ``fields``. Returns the merged book or None if not found."""
        update_fields = {k: v for k, v in fields.items() if k in EDITABLE_COLUMNS}
        for required in ("title", "author"):
            if required in update_fields:
                if TextValidator.is_blank(update_fields[required]):
                    raise ValueError(f"{required.capitalize()} cannot be empty")
                update_fields[required] = str(update_fields[required]).strip()

        if not _is_storable_id(book_id):
            return None
        if not update_fields:
            return self.find_book(book_id)

        set_clause = ", ".join([f"{column} = ?" for column in update_fields.keys()])
        params = list(update_fields.values()) + [book_id]

        with self._connect() as conn:
            cursor = conn.execute(f"UPDATE books SET {set_clause} WHERE id = ?", params)
            conn.commit()
            if cursor.rowcount == 0:
                return None
        logger.info(f"Book updated: id={book_id} fields={sorted(update_fields)}")
        return self.find_book(book_id)

    def remove_book(self, book_id: int) -> int:
        """Delete a book by id. Returns the number of removed rows (0 when not found)."""
        if not _is_storable_id(book_id):
            return 0
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
            changes = cursor.rowcount
        if changes:
            logger.info(f"Book removed: id={book_id}")
        return changes

    def count_books(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]

    def close(self) -> None:
        """Connections are opened per operation, so there is nothing to release."""
        return None
