from __future__ import annotations


class Book:
    """Represents a single catalog record."""

    def __init__(self, title: str | None, author: str | None, id: int | None = None, year: int | None = None,
                 genre: str | None = None, description: str | None = None,
                 rating: float | None = None) -> None:
        self.id = id
        self.title = (title or "").strip()
        self.author = (author or "").strip()
        self.year = year
        self.genre = genre
        self.description = description
        self.rating = rating

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "year": self.year,
            "genre": self.genre,
            "description": self.description,
            "rating": self.rating,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data.get("id"),
            title=data["title"],
            author=data["author"],
            year=data.get("year"),
            genre=data.get("genre"),
            description=data.get("description"),
            rating=data.get("rating"),
        )
