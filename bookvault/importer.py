"""Bulk import of books from a JSON document.

The importer writes straight to the store, bypassing the HTTP API. It accepts
three document shapes:

- a top-level array of book-like objects;
- an object holding the array under some property (``{"books": [...]}``);
- a single book-like object.

Each field is looked up through a list of synonym keys (English and Spanish
names are common in hand-made catalog exports). Inserts run one after another
and each outcome is recorded, so a bad record never aborts the batch.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from bookvault.book import Book
from bookvault.config import settings
from bookvault.library import Library, StorageError
from bookvault.validators import ValueCoercer

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHOR = "Unknown Author"

# Ordered fallback keys per target field; the first non-empty value wins.
FIELD_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "title": ("title", "name", "titulo", "nombre"),
    "author": ("author", "autor", "writer"),
    "year": ("year", "publishedDate", "anio", "año", "publicacion"),
    "genre": ("genre", "category", "genero", "categoria", "edicion"),
    "description": ("description", "summary", "descripcion", "resumen", "intro"),
    "rating": ("rating", "puntuacion", "score"),
}


class ImportFileError(Exception):
    """The import source is missing or is not valid JSON."""


@dataclass
class ImportResult:
    index: int
    title: Optional[str] = None
    book_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImportSummary:
    results: List[ImportResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> dict:
        return {"attempted": self.attempted, "succeeded": self.succeeded, "failed": self.failed}


def load_import_file(path: str) -> Any:
    """Read and parse the JSON source, raising ImportFileError on any problem."""
    if not os.path.exists(path):
        raise ImportFileError(f"Import file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        raise ImportFileError(f"Error reading or parsing {path}: {e}") from e


def extract_records(data: Any) -> List[Any]:
    """Normalize the accepted document shapes into a list of entries."""
    if isinstance(data, list):
        logger.info(f"Detected top-level array with {len(data)} entries")
        return data
    if isinstance(data, dict):
        array_keys = [key for key, value in data.items() if isinstance(value, list)]
        if array_keys:
            if len(array_keys) > 1:
                logger.warning(f"Several array properties found {array_keys}; using {array_keys[0]!r}")
            logger.info(f"Detected book array under property {array_keys[0]!r}")
            return data[array_keys[0]]
    logger.info("Detected a single entry; wrapping it into a list")
    return [data]


def _resolve(entry: Dict[str, Any], target: str) -> Any:
    for key in FIELD_SYNONYMS[target]:
        value = entry.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_record(entry: Dict[str, Any]) -> Book:
    """Map a book-like object onto a Book, applying placeholders for missing title/author."""
    return Book(
        title=ValueCoercer.to_text(_resolve(entry, "title")) or DEFAULT_TITLE,
        author=ValueCoercer.to_text(_resolve(entry, "author")) or DEFAULT_AUTHOR,
        year=ValueCoercer.to_year(_resolve(entry, "year")),
        genre=ValueCoercer.to_text(_resolve(entry, "genre")),
        description=ValueCoercer.to_text(_resolve(entry, "description")),
        rating=ValueCoercer.to_rating(_resolve(entry, "rating")),
    )


def import_books(
    library: Library,
    records: List[Any],
    on_result: Optional[Callable[[ImportResult], None]] = None,
) -> ImportSummary:
    """Insert every record in order; one failure does not stop the batch."""
    summary = ImportSummary()
    for index, entry in enumerate(records):
        if not isinstance(entry, dict):
            result = ImportResult(index=index, error=f"Entry is not an object: {type(entry).__name__}")
            logger.error(f"Skipping entry #{index}: {result.error}")
        else:
            book = normalize_record(entry)
            try:
                stored = library.add_book(book)
                result = ImportResult(index=index, title=stored.title, book_id=stored.id)
                logger.info(f"Added (ID: {stored.id}): {stored.title}")
            except (StorageError, ValueError) as e:
                result = ImportResult(index=index, title=book.title, error=str(e))
                logger.error(f"Error inserting {book.title!r}: {e}")
        summary.results.append(result)
        if on_result:
            on_result(result)

    logger.info(f"Import finished: {summary.succeeded} inserted, {summary.failed} failed")
    return summary


def run_import(
    library: Library,
    path: Optional[str] = None,
    on_result: Optional[Callable[[ImportResult], None]] = None,
) -> ImportSummary:
    """Load ``path`` (default: the configured import file) and import its books."""
    path = path or settings.import_file
    data = load_import_file(path)
    logger.info(f"Import file {path!r} loaded")
    return import_books(library, extract_records(data), on_result=on_result)
