import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.book import Book, BookPatch
from catalog.database import create_session_factory, initialize_database
from catalog.errors import BookNotFoundError, BookValidationError, StoreError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title, author and genre are required fields"

# Signed 64-bit range of an INTEGER primary key
MIN_BOOK_ID = -(2 ** 63)
MAX_BOOK_ID = 2 ** 63 - 1


class Library:
    """Manages the book catalog and its persistence."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None) -> None:
        self.engine = engine or initialize_database(database_url)
        self._session_factory = create_session_factory(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Open a session for one operation, mapping driver failures to StoreError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Store operation failed: {e}")
            raise StoreError() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        with self._session() as session:
            return list(session.scalars(select(Book).order_by(Book.id)))

    def find_book(self, book_id: int) -> Optional[Book]:
        if not MIN_BOOK_ID <= book_id <= MAX_BOOK_ID:
            return None
        with self._session() as session:
            return session.get(Book, book_id)

    def add_book(self, title: Optional[str], author: Optional[str], genre: Optional[str]) -> Book:
        """Create a book. All three fields must be non-empty."""
        if not title or not author or not genre:
            raise BookValidationError(REQUIRED_FIELDS_MESSAGE)

        book = Book(title=title, author=author, genre=genre)
        with self._session() as session:
            session.add(book)
            session.flush()
        logger.info(f"Book created: id={book.id} title={book.title!r}")
        return book

    def update_book(self, book_id: int, patch: BookPatch) -> Book:
        """Apply a partial update. Raises BookNotFoundError for an unknown id."""
        self._check_id(book_id)
        with self._session() as session:
            book = session.get(Book, book_id)
            if book is None:
                raise BookNotFoundError(book_id)
            patch.apply(book)
        logger.info(f"Book updated: id={book_id} fields={sorted(patch.changes())}")
        return book

    def remove_book(self, book_id: int) -> None:
        """Delete a book by id. Raises BookNotFoundError for an unknown id."""
        self._check_id(book_id)
        with self._session() as session:
            book = session.get(Book, book_id)
            if book is None:
                raise BookNotFoundError(book_id)
            session.delete(book)
        logger.info(f"Book deleted: id={book_id}")

    @staticmethod
    def _check_id(book_id: int) -> None:
        # Ids the store cannot represent can never exist
        if not MIN_BOOK_ID <= book_id <= MAX_BOOK_ID:
            raise BookNotFoundError(book_id)

    def count_books(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(Book)) or 0

    def close(self) -> None:
        """Release pooled database connections."""
        self.engine.dispose()
