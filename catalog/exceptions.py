"""
Error taxonomy for the book catalog.

Every failure the catalog can report belongs to exactly one ErrorKind. The
exceptions are raised where the failure is detected and translated to an HTTP
response only at the API boundary (see api.errors).
"""

from enum import Enum
from typing import List, Optional

from catalog.models import FieldViolation


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""
    VALIDATION_FAILED = "ValidationFailed"
    INVALID_IDENTIFIER = "InvalidIdentifier"
    NOT_FOUND = "NotFound"
    DUPLICATE_KEY = "DuplicateKey"
    STORE_UNAVAILABLE = "StoreUnavailable"
    UNEXPECTED = "Unexpected"


class LibraryError(Exception):
    """Base exception for catalog errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(LibraryError):
    """Request failed field-level rules. Carries one violation per offending field."""

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        violations: List[FieldViolation],
        message: str = "There was an error validating the input."
    ):
        super().__init__(message)
        self.violations = list(violations)


class InvalidIdentifierError(LibraryError):
    """Raw identifier is not a syntactically valid store key."""

    kind = ErrorKind.INVALID_IDENTIFIER

    def __init__(self, book_id: str):
        super().__init__(
            f"The ID: {book_id} is not valid, it must be a valid 24-character hex string"
        )
        self.book_id = book_id


class BookNotFoundError(LibraryError):
    """Well-formed identifier with no matching book."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, book_id: str):
        super().__init__(f"Book with ID: {book_id} was not found")
        self.book_id = book_id


class DuplicateKeyConflictError(LibraryError):
    """ISBN uniqueness constraint violated at write time."""

    kind = ErrorKind.DUPLICATE_KEY

    def __init__(self, isbn: Optional[str]):
        super().__init__(f"A book with ISBN: {isbn} already exists")
        self.isbn = isbn


class StoreUnavailableError(LibraryError):
    """The document store timed out or could not be reached."""

    kind = ErrorKind.STORE_UNAVAILABLE
