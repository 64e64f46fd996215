"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from catalog.database import BookRepository
from catalog.exceptions import BookNotFoundError
from catalog.models import Book, CreateBookRequest
from catalog.service import BookService


class InMemoryBookRepository:
    """
    Dict-backed stand-in for BookRepository.

    Keeps insertion order, assigns ObjectId strings and enforces ISBN uniqueness by
    raising DuplicateKeyError like the unique index does. Replacing a missing
    book raises BookNotFoundError instead of recreating it. Books are copied in and
    out so callers cannot mutate stored state without saving.
    """

    def __init__(self):
        self.books: Dict[str, Book] = {}

    async def save(self, book: Book) -> Book:
        for stored_id, stored in self.books.items():
            if stored.isbn == book.isbn and stored_id != book.id:
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: bookdb.books index: isbn_1 dup key: {{ isbn: \"{book.isbn}\" }}",
                    code=11000
                )
        if book.id is None:
            book.id = str(ObjectId())
        elif book.id not in self.books:
            raise BookNotFoundError(book.id)
        self.books[book.id] = book.model_copy()
        return book

    async def save_all(self, books: List[Book]) -> List[Book]:
        for book in books:
            await self.save(book)
        return books

    async def find_by_id(self, book_id: str) -> Optional[Book]:
        book = self.books.get(book_id)
        return book.model_copy() if book else None

    async def find_all_paged(self, page: int, size: int) -> Tuple[List[Book], int]:
        books = list(self.books.values())
        start = page * size
        return [book.model_copy() for book in books[start:start + size]], len(books)

    async def delete(self, book: Book) -> None:
        self.books.pop(book.id, None)

    async def count(self) -> int:
        return len(self.books)

    async def health_check(self) -> Dict:
        return {"status": "healthy", "books_collection": "accessible", "books_count": len(self.books)}


@pytest.fixture
def repository():
    """Create an empty in-memory repository."""
    return InMemoryBookRepository()


@pytest.fixture
def book_service(repository):
    """Create a book service over the in-memory repository."""
    return BookService(repository)


@pytest.fixture
def mock_repository():
    """Create a mock BookRepository for testing."""
    repo = AsyncMock(spec=BookRepository)
    repo.find_by_id.return_value = None
    repo.count.return_value = 0
    return repo


@pytest.fixture
def mock_collection():
    """
    Create a mock motor collection.

    find() is synchronous and returns a chainable cursor whose to_list() is awaited.
    """
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.insert_many = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock()

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def sample_create_request():
    """Create a valid create request."""
    return CreateBookRequest(
        title="T",
        author="A",
        isbn="1234567890123",
        published_date=date(2020, 1, 1)
    )


@pytest.fixture
def sample_book():
    """Create a stored book."""
    return Book(
        id="665b11112222333344445555",
        title="Integration Test",
        author="Author Name",
        isbn="9876543210123",
        published_date=date(2024, 6, 1)
    )


@pytest.fixture
def make_create_request():
    """Factory for distinct valid create requests."""
    def _make(index: int) -> CreateBookRequest:
        return CreateBookRequest(
            title=f"Book {index}",
            author=f"Author {index}",
            isbn=f"{9780000000000 + index}",
            published_date=date(2000 + index, 1, 1)
        )
    return _make
