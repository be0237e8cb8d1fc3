from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass
class BookDetails:
    author: str
    publication_year: int


@dataclass
class DVDDetails:
    director: str
    duration_minutes: int


ItemDetails = Union[BookDetails, DVDDetails]


@dataclass
class Item:
    """A single lendable item in the catalog: a book or a DVD.

    The shared fields live on the item itself; everything that depends on the
    kind of item lives in ``details``.
    """

    id: str
    title: str
    details: ItemDetails
    available: bool = True

    @classmethod
    def book(cls, item_id: str, title: str, author: str, publication_year: int) -> "Item":
        return cls(id=item_id.strip(), title=title.strip(),
                   details=BookDetails(author=author.strip(), publication_year=publication_year))

    @classmethod
    def dvd(cls, item_id: str, title: str, director: str, duration_minutes: int) -> "Item":
        return cls(id=item_id.strip(), title=title.strip(),
                   details=DVDDetails(director=director.strip(), duration_minutes=duration_minutes))

    @property
    def kind(self) -> str:
        if isinstance(self.details, BookDetails):
            return "book"
        if isinstance(self.details, DVDDetails):
            return "dvd"
        raise TypeError(f"Unknown item details: {type(self.details).__name__}")

    @property
    def status(self) -> str:
        return "Available" if self.available else "Borrowed"

    def describe(self) -> str:
        """Multi-line description in the console's display format."""
        details = self.details
        if isinstance(details, BookDetails):
            lines = [
                f"Book ID: {self.id}",
                f"Title: {self.title}",
                f"Author: {details.author}",
                f"Publication Year: {details.publication_year}",
            ]
        elif isinstance(details, DVDDetails):
            lines = [
                f"DVD ID: {self.id}",
                f"Title: {self.title}",
                f"Director: {details.director}",
                f"Duration: {details.duration_minutes} minutes",
            ]
        else:
            raise TypeError(f"Unknown item details: {type(details).__name__}")
        lines.append(f"Status: {self.status}")
        return "\n".join(lines)

    def summary(self) -> str:
        """One-line creator/length summary used in tables."""
        details = self.details
        if isinstance(details, BookDetails):
            return f"{details.author} ({details.publication_year})"
        if isinstance(details, DVDDetails):
            return f"{details.director} ({details.duration_minutes} min)"
        raise TypeError(f"Unknown item details: {type(details).__name__}")

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} [{self.kind.upper()} {self.id}]"

    def to_dict(self) -> dict:
        data = {
            "kind": self.kind,
            "id": self.id,
            "title": self.title,
            "available": self.available,
        }
        if isinstance(self.details, BookDetails):
            data["author"] = self.details.author
            data["publication_year"] = self.details.publication_year
        else:
            data["director"] = self.details.director
            data["duration_minutes"] = self.details.duration_minutes
        return data
