"""
Book service: the business rules of the catalog.

Coordinates validation, identifier resolution, ISBN uniqueness and persistence.
Failures are raised as catalog.exceptions errors and left for the API layer to translate.
"""

import structlog
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from catalog import mapper
from catalog.database import BookRepository
from catalog.exceptions import BookNotFoundError, DuplicateKeyConflictError, InvalidIdentifierError
from catalog.models import (
    Book, BookResponse, CreateBookRequest, PagedBookResponse, UpdateBookRequest
)
from catalog.validation import (
    ensure_valid, validate_create_request, validate_pagination, validate_update_request
)

logger = structlog.get_logger(__name__)


class BookService:
    """Service for book CRUD operations."""

    def __init__(self, repository: BookRepository):
        self.repository = repository

    async def create_book(self, request: CreateBookRequest) -> BookResponse:
        """
        Validate and persist a new book.

        Args:
            request: Create request

        Returns:
            BookResponse including the identifier assigned by the store

        Raises:
            ValidationFailedError: Request failed field validation
            DuplicateKeyConflictError: ISBN already exists
        """
        ensure_valid(validate_create_request(request))

        book = mapper.to_entity(request)
        try:
            await self.repository.save(book)
        except DuplicateKeyError as e:
            logger.warning("Duplicate ISBN on create", isbn=book.isbn)
            raise DuplicateKeyConflictError(book.isbn) from e

        logger.info("Created new book", book_id=book.id)
        return mapper.to_response(book)

    async def get_all_books(self, page: int, size: int) -> PagedBookResponse:
        """
        Get one page of books.

        Args:
            page: 0-based page index
            size: Number of books per page (at least 1)

        Returns:
            PagedBookResponse for the requested page
        """
        ensure_valid(validate_pagination(page, size))

        books, total = await self.repository.find_all_paged(page, size)
        logger.debug("Retrieved books page", page=page, size=size, count=len(books), total=total)
        return mapper.to_paged_response(books, page, size, total)

    async def get_book_by_id(self, book_id: str) -> BookResponse:
        """Get a single book by identifier."""
        book = await self._resolve_book(book_id)

        logger.info("Found book", book_id=book.id)
        return mapper.to_response(book)

    async def update_book(self, book_id: str, request: UpdateBookRequest) -> BookResponse:
        """
        Apply a partial update to an existing book.

        Args:
            book_id: Identifier of the book to update
            request: Fields to change; omitted fields keep their stored values

        Returns:
            BookResponse of the updated book

        Raises:
            ValidationFailedError: A supplied field failed validation
            InvalidIdentifierError: book_id is not a valid ObjectId
            BookNotFoundError: No book with that identifier
            DuplicateKeyConflictError: New ISBN already used by another book
        """
        ensure_valid(validate_update_request(request))

        book = await self._resolve_book(book_id)
        updated = mapper.apply_update(request, book)
        try:
            await self.repository.save(updated)
        except DuplicateKeyError as e:
            logger.warning("Duplicate ISBN on update", book_id=book_id, isbn=updated.isbn)
            raise DuplicateKeyConflictError(updated.isbn) from e

        logger.info(
            "Updated book",
            book_id=updated.id,
            updated=request.model_dump(exclude_none=True, mode="json")
        )
        return mapper.to_response(updated)

    async def delete_book(self, book_id: str) -> None:
        """Delete a book by identifier."""
        book = await self._resolve_book(book_id)

        await self.repository.delete(book)
        logger.info("Deleted book", book_id=book.id)

    async def _resolve_book(self, book_id: str) -> Book:
        """
        Resolve a raw identifier to a stored book.

        The format check always runs before the lookup, so a malformed identifier
        is reported as invalid even if it could never match a stored book.

        Raises:
            InvalidIdentifierError: book_id is not a valid ObjectId
            BookNotFoundError: No book with that identifier
        """
        if not ObjectId.is_valid(book_id):
            logger.warning("Invalid book ID", book_id=book_id)
            raise InvalidIdentifierError(book_id)

        book = await self.repository.find_by_id(book_id)
        if book is None:
            logger.warning("Book not found", book_id=book_id)
            raise BookNotFoundError(book_id)
        return book
