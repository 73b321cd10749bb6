import sqlite3

from bookvault.config import settings

# Range of a SQLite INTEGER (signed 64-bit)
SQLITE_INT_MIN = -2 ** 63
SQLITE_INT_MAX = 2 ** 63 - 1

BOOK_COLUMNS = ("id", "title", "author", "year", "genre", "description", "rating")
EDITABLE_COLUMNS = BOOK_COLUMNS[1:]


def get_db_connection(db_file: str = settings.database_file) -> sqlite3.Connection:
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: str = settings.database_file) -> None:
    """Creates the books table if it doesn't exist. Safe to call on every startup."""
    conn = get_db_connection(db_file)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                year INTEGER,
                genre TEXT,
                description TEXT,
                rating REAL
            )
        """)
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: str = settings.database_file) -> None:
    """Initializes the database, creating tables if needed."""
    create_tables(db_file)
