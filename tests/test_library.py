import sqlite3

import pytest

from bookvault.book import Book
from bookvault.library import Library, StorageError


def test_add_list_and_find(lib):
    assert lib.list_books() == []

    book = lib.add_book(Book("Ulysses", "James Joyce", year=1922))

    assert book.id is not None
    assert lib.find_book(book.id) == book
    assert len(lib.list_books()) == 1
    assert lib.list_books()[0].title == "Ulysses"


def test_add_book_assigns_unique_ids(lib):
    first = lib.add_book(Book("Dune", "Frank Herbert"))
    second = lib.add_book(Book("Dune", "Frank Herbert"))
    assert first.id != second.id


def test_add_book_requires_title_and_author(lib):
    with pytest.raises(ValueError, match="Title and author are required"):
        lib.add_book(Book("", "Someone"))
    with pytest.raises(ValueError):
        lib.add_book(Book("Something", "   "))
    with pytest.raises(ValueError):
        lib.add_book(Book(None, None))

    assert lib.count_books() == 0


def test_optional_fields_stored_as_null(lib):
    book = lib.add_book(Book("Sapiens", "Yuval Noah Harari"))
    stored = lib.find_book(book.id)
    assert stored.year is None
    assert stored.genre is None
    assert stored.description is None
    assert stored.rating is None


def test_persistence(db_file):
    Library(db_file).add_book(Book("Sapiens", "Yuval Noah Harari", genre="History"))

    # New instance should read persisted data from SQLite
    lib2 = Library(db_file)
    assert len(lib2.list_books()) == 1
    assert lib2.list_books()[0].genre == "History"


def test_schema_creation_is_idempotent(db_file):
    Library(db_file).add_book(Book("Emma", "Jane Austen"))
    Library(db_file)
    Library(db_file)
    assert Library(db_file).count_books() == 1


def test_list_is_in_insertion_order(lib):
    titles = ["Zorba", "Anna Karenina", "Moby Dick"]
    for title in titles:
        lib.add_book(Book(title, "Author"))
    assert [b.title for b in lib.list_books()] == titles


def test_search_is_case_insensitive_substring(lib):
    dune = lib.add_book(Book("Dune", "Herbert"))
    lib.add_book(Book("Emma", "Jane Austen"))

    assert lib.list_books("dun") == [dune]
    assert lib.list_books("DUNE") == [dune]


def test_search_matches_title_author_or_genre(lib):
    by_title = lib.add_book(Book("The Hobbit", "Tolkien"))
    by_author = lib.add_book(Book("Carrie", "Stephen King", genre="Horror"))
    by_genre = lib.add_book(Book("Foundation", "Asimov", genre="Science Fiction"))
    lib.add_book(Book("Emma", "Jane Austen", description="a hobbit-free novel about science"))

    assert lib.list_books("hobbit") == [by_title]
    assert lib.list_books("king") == [by_author]
    assert lib.list_books("fiction") == [by_genre]


def test_search_handles_non_ascii_case(lib):
    book = lib.add_book(Book("Ölüm Şarkısı", "Ñuñez"))
    assert lib.list_books("ölüm") == [book]
    assert lib.list_books("ÑUÑ") == [book]


def test_search_treats_like_wildcards_literally(lib):
    lib.add_book(Book("Plain", "Author"))
    percent = lib.add_book(Book("100% Pure", "Author"))

    assert lib.list_books("%") == [percent]
    assert lib.list_books("_") == []


def test_update_book_partial(lib):
    book = lib.add_book(Book("A", "B", year=2000))

    updated = lib.update_book(book.id, {"year": 2001})
    assert updated.title == "A"
    assert updated.author == "B"
    assert updated.year == 2001

    reread = lib.find_book(book.id)
    assert reread.to_dict() == {
        "id": book.id, "title": "A", "author": "B", "year": 2001,
        "genre": None, "description": None, "rating": None,
    }


def test_update_returns_merged_row(lib):
    book = lib.add_book(Book("Original Title", "Original Author", genre="Drama", rating=4.5))

    updated = lib.update_book(book.id, {"title": "Only Title Changed"})
    assert updated.title == "Only Title Changed"
    assert updated.author == "Original Author"
    assert updated.genre == "Drama"
    assert updated.rating == 4.5


def test_update_with_explicit_null_clears_optional_field(lib):
    book = lib.add_book(Book("Title", "Author", genre="Drama"))
    updated = lib.update_book(book.id, {"genre": None})
    assert updated.genre is None


def test_update_with_no_fields_is_noop(lib):
    book = lib.add_book(Book("Title", "Author", year=1999))
    assert lib.update_book(book.id, {}) == book


def test_update_ignores_unknown_columns(lib):
    book = lib.add_book(Book("Title", "Author"))
    updated = lib.update_book(book.id, {"id": 999, "isbn": "123", "year": 1990})
    assert updated.id == book.id
    assert updated.year == 1990


def test_update_rejects_blank_required_fields(lib):
    book = lib.add_book(Book("Title", "Author"))
    with pytest.raises(ValueError):
        lib.update_book(book.id, {"title": "  "})
    with pytest.raises(ValueError):
        lib.update_book(book.id, {"author": None})
    assert lib.find_book(book.id).title == "Title"


def test_update_book_not_found(lib):
    assert lib.update_book(12345, {"title": "New Title"}) is None
    assert lib.update_book(12345, {}) is None


def test_remove(lib):
    book = lib.add_book(Book("Test", "Author"))
    assert lib.remove_book(book.id) == 1
    assert lib.remove_book(book.id) == 0  # Second delete finds nothing
    assert lib.find_book(book.id) is None


def test_remove_missing_keeps_collection(lib):
    lib.add_book(Book("Keep", "Me"))
    assert lib.remove_book(999) == 0
    assert lib.count_books() == 1


def test_ids_are_not_reused_after_delete(lib):
    first = lib.add_book(Book("First", "Author"))
    second = lib.add_book(Book("Second", "Author"))
    lib.remove_book(second.id)
    third = lib.add_book(Book("Third", "Author"))
    assert third.id not in (first.id, second.id)


def test_storage_failure_raises_storage_error(lib, db_file):
    conn = sqlite3.connect(db_file)
    conn.execute("DROP TABLE books")
    conn.commit()
    conn.close()

    with pytest.raises(StorageError):
        lib.list_books()


def test_unopenable_database_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        Library(str(tmp_path / "missing" / "library.db"))


def test_out_of_range_id_is_not_found(lib):
    lib.add_book(Book("Keep", "Me"))
    huge = 10**20
    assert lib.find_book(huge) is None
    assert lib.update_book(huge, {"title": "New"}) is None
    assert lib.remove_book(-huge) == 0
    assert lib.count_books() == 1


def test_out_of_range_year_raises_storage_error(lib):
    with pytest.raises(StorageError):
        lib.add_book(Book("Big", "Year", year=10**20))
    assert lib.count_books() == 0
