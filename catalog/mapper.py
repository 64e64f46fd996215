"""
Conversions between API request/response models and the Book entity.
"""

import math
from datetime import date
from typing import List

from catalog.models import (
    Book, BookResponse, CreateBookRequest, PagedBookResponse, UpdateBookRequest
)


def format_published_date(published_date: date) -> str:
    """Render a date as dd-MM-yyyy, zero-padding the year to four digits."""
    return f"{published_date.day:02d}-{published_date.month:02d}-{published_date.year:04d}"


def to_entity(request: CreateBookRequest) -> Book:
    """Build a new, unsaved Book from a create request."""
    return Book(
        id=None,
        title=request.title,
        author=request.author,
        isbn=request.isbn,
        published_date=request.published_date,
    )


def to_entity_list(requests: List[CreateBookRequest]) -> List[Book]:
    """Batch form of to_entity."""
    return [to_entity(request) for request in requests]


def to_response(book: Book) -> BookResponse:
    """Convert a Book to its API representation, rendering the date as dd-MM-yyyy."""
    return BookResponse(
        id=book.id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        published_date=format_published_date(book.published_date),
    )


def apply_update(request: UpdateBookRequest, book: Book) -> Book:
    """
    Apply a partial update to a Book in place.

    Only fields supplied with a non-null value overwrite the entity; the
    identifier is never touched.

    Args:
        request: Partial update request
        book: Entity to mutate

    Returns:
        The same Book instance, updated
    """
    if request.title is not None:
        book.title = request.title
    if request.author is not None:
        book.author = request.author
    if request.isbn is not None:
        book.isbn = request.isbn
    if request.published_date is not None:
        book.published_date = request.published_date
    return book


def to_paged_response(books: List[Book], page: int, size: int, total: int) -> PagedBookResponse:
    """Build a paged response. Total pages is 0 for an empty catalog."""
    total_pages = math.ceil(total / size) if total else 0
    return PagedBookResponse(
        books=[to_response(book) for book in books],
        current_page=page,
        total_pages=total_pages,
        total_books=total,
    )
