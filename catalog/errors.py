from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failures the API can report, with their HTTP status."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.INTERNAL: 500,
}


class CatalogError(Exception):
    """Base error for catalog operations. Carries the kind used for the response."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class BookValidationError(CatalogError, ValueError):
    kind = ErrorKind.VALIDATION


class BookNotFoundError(CatalogError, LookupError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, book_id: int) -> None:
        super().__init__("Book not found")
        self.book_id = book_id


class StoreError(CatalogError):
    """Any data store failure that isn't a missing record."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
