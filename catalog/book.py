from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Book(Base):
    """A single book in the catalog."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[str] = mapped_column(String(120), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"<Book id={self.id} title={self.title!r} author={self.author!r}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "author": self.author, "genre": self.genre}


@dataclass(frozen=True)
class BookPatch:
    """Partial update for a book.

    Only fields that are set are written. ``from_fields`` treats every falsy
    value (``None``, ``""``) as "leave unchanged", so a field can never be
    cleared through an update.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None

    @classmethod
    def from_fields(cls, **values: Any) -> "BookPatch":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in names and v})

    def changes(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}

    def is_empty(self) -> bool:
        return not self.changes()

    def apply(self, book: Book) -> Book:
        for name, value in self.changes().items():
            setattr(book, name, value)
        return book
