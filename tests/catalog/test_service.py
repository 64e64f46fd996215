"""
Unit tests for the book service.
Tests business rules against the in-memory repository and error propagation with mocks.
"""

import asyncio
from datetime import date

import pytest
from bson import ObjectId

from catalog.exceptions import (
    BookNotFoundError, DuplicateKeyConflictError, ErrorKind, InvalidIdentifierError,
    StoreUnavailableError, ValidationFailedError
)
from catalog.models import CreateBookRequest, UpdateBookRequest
from catalog.service import BookService


class TestCreateBook:
    """Test cases for creating books."""

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, book_service, repository, sample_create_request):
        """Test that a created book gets a store identifier and a formatted date."""
        response = await book_service.create_book(sample_create_request)

        assert ObjectId.is_valid(response.id)
        assert response.isbn == "1234567890123"
        assert response.published_date == "01-01-2020"
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_duplicate_isbn(self, book_service, repository, sample_create_request):
        """Test that a second book with the same ISBN is a conflict."""
        await book_service.create_book(sample_create_request)

        with pytest.raises(DuplicateKeyConflictError) as exc_info:
            await book_service.create_book(sample_create_request)

        assert exc_info.value.kind == ErrorKind.DUPLICATE_KEY
        assert "1234567890123" in exc_info.value.message
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_creates(self, book_service, repository, sample_create_request):
        """Test that at most one of two same-ISBN creates succeeds."""
        results = await asyncio.gather(
            book_service.create_book(sample_create_request),
            book_service.create_book(sample_create_request),
            return_exceptions=True
        )

        conflicts = [r for r in results if isinstance(r, DuplicateKeyConflictError)]
        assert len(conflicts) == 1
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_invalid_request_never_reaches_store(self, mock_repository):
        """Test that validation runs before persistence."""
        service = BookService(mock_repository)

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.create_book(CreateBookRequest(title="T"))

        assert [v.parameter for v in exc_info.value.violations] == ["author", "isbn", "publishedDate"]
        mock_repository.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_unavailable_propagates(self, mock_repository, sample_create_request):
        """Test that store timeouts are not swallowed or retried."""
        mock_repository.save.side_effect = StoreUnavailableError("timed out")
        service = BookService(mock_repository)

        with pytest.raises(StoreUnavailableError):
            await service.create_book(sample_create_request)

        assert mock_repository.save.await_count == 1


class TestGetBook:
    """Test cases for fetching a single book."""

    @pytest.mark.asyncio
    async def test_get_existing(self, book_service, sample_create_request):
        """Test fetching a created book."""
        created = await book_service.create_book(sample_create_request)

        fetched = await book_service.get_book_by_id(created.id)

        assert fetched == created

    @pytest.mark.asyncio
    async def test_malformed_id(self, book_service):
        """Test that a malformed identifier is invalid."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            await book_service.get_book_by_id("not-a-valid-key")

        assert exc_info.value.message == (
            "The ID: not-a-valid-key is not valid, it must be a valid 24-character hex string"
        )

    @pytest.mark.asyncio
    async def test_absent_id(self, book_service):
        """Test that a well-formed but unknown identifier is not found."""
        with pytest.raises(BookNotFoundError) as exc_info:
            await book_service.get_book_by_id("665b11112222333344445555")

        assert exc_info.value.message == "Book with ID: 665b11112222333344445555 was not found"

    @pytest.mark.asyncio
    async def test_malformed_id_checked_before_lookup(self, mock_repository, sample_book):
        """Test that the format check wins even when the store would return a book."""
        mock_repository.find_by_id.return_value = sample_book
        service = BookService(mock_repository)

        with pytest.raises(InvalidIdentifierError):
            await service.get_book_by_id("665b1111222233334444555")

        mock_repository.find_by_id.assert_not_called()


class TestListBooks:
    """Test cases for paginated listing."""

    @pytest.mark.asyncio
    async def test_first_page(self, book_service, make_create_request):
        """Test page 0 of size 2 over 3 books."""
        for i in range(3):
            await book_service.create_book(make_create_request(i))

        paged = await book_service.get_all_books(0, 2)

        assert [book.title for book in paged.books] == ["Book 0", "Book 1"]
        assert paged.current_page == 0
        assert paged.total_pages == 2
        assert paged.total_books == 3

    @pytest.mark.asyncio
    async def test_last_partial_page(self, book_service, make_create_request):
        """Test that the last page holds the remainder."""
        for i in range(3):
            await book_service.create_book(make_create_request(i))

        paged = await book_service.get_all_books(1, 2)

        assert [book.title for book in paged.books] == ["Book 2"]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, book_service):
        """Test that an empty catalog has zero pages."""
        paged = await book_service.get_all_books(0, 10)

        assert paged.books == []
        assert paged.total_pages == 0
        assert paged.total_books == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,size", [(-1, 10), (0, 0), (0, -1)])
    async def test_invalid_pagination(self, mock_repository, page, size):
        """Test that bad pagination is rejected before querying."""
        service = BookService(mock_repository)

        with pytest.raises(ValidationFailedError):
            await service.get_all_books(page, size)

        mock_repository.find_all_paged.assert_not_called()


class TestUpdateBook:
    """Test cases for partial updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, book_service):
        """Test that only the supplied title changes."""
        created = await book_service.create_book(CreateBookRequest(
            title="T", author="A", isbn="1234567890123", published_date=date(2020, 1, 1)
        ))

        updated = await book_service.update_book(created.id, UpdateBookRequest(title="New"))

        assert updated.id == created.id
        assert updated.title == "New"
        assert updated.author == "A"
        assert updated.isbn == "1234567890123"
        assert (await book_service.get_book_by_id(created.id)).title == "New"

    @pytest.mark.asyncio
    async def test_empty_update_changes_nothing(self, book_service, sample_create_request):
        """Test that an update without fields returns the stored book."""
        created = await book_service.create_book(sample_create_request)

        updated = await book_service.update_book(created.id, UpdateBookRequest())

        assert updated == created

    @pytest.mark.asyncio
    async def test_keep_own_isbn(self, book_service, sample_create_request):
        """Test that re-submitting a book's own ISBN is not a conflict."""
        created = await book_service.create_book(sample_create_request)

        updated = await book_service.update_book(
            created.id, UpdateBookRequest(isbn=sample_create_request.isbn, author="B")
        )

        assert updated.author == "B"

    @pytest.mark.asyncio
    async def test_update_to_taken_isbn(self, book_service, repository, make_create_request):
        """Test that taking another book's ISBN is a conflict and nothing is saved."""
        first = await book_service.create_book(make_create_request(1))
        second = await book_service.create_book(make_create_request(2))

        with pytest.raises(DuplicateKeyConflictError):
            await book_service.update_book(
                second.id, UpdateBookRequest(title="Changed", isbn=first.isbn)
            )

        stored = await repository.find_by_id(second.id)
        assert stored.isbn == second.isbn
        assert stored.title == second.title

    @pytest.mark.asyncio
    async def test_update_validates_before_lookup(self, mock_repository):
        """Test that invalid fields are reported before identity resolution."""
        service = BookService(mock_repository)

        with pytest.raises(ValidationFailedError):
            await service.update_book("not-a-valid-key", UpdateBookRequest(isbn="123"))

        mock_repository.find_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_missing_book(self, book_service):
        """Test updating an unknown book."""
        with pytest.raises(BookNotFoundError):
            await book_service.update_book("665b11112222333344445555", UpdateBookRequest(title="New"))

    @pytest.mark.asyncio
    async def test_saves_resolved_identity(self, mock_repository, sample_book):
        """Test that the entity saved back carries the resolved identifier."""
        mock_repository.find_by_id.return_value = sample_book
        service = BookService(mock_repository)

        await service.update_book(sample_book.id, UpdateBookRequest(title="New"))

        saved = mock_repository.save.await_args.args[0]
        assert saved.id == "665b11112222333344445555"
        assert saved.title == "New"

    @pytest.mark.asyncio
    async def test_update_of_concurrently_deleted_book(self, book_service, repository, sample_create_request):
        """Test that a book deleted between lookup and save stays deleted."""
        created = await book_service.create_book(sample_create_request)
        original_find = repository.find_by_id

        async def find_then_delete(book_id):
            book = await original_find(book_id)
            await repository.delete(book)
            return book

        repository.find_by_id = find_then_delete

        with pytest.raises(BookNotFoundError):
            await book_service.update_book(created.id, UpdateBookRequest(title="New"))

        assert await repository.count() == 0


class TestDeleteBook:
    """Test cases for deleting books."""

    @pytest.mark.asyncio
    async def test_delete_then_get(self, book_service, sample_create_request):
        """Test that a deleted book can no longer be found."""
        created = await book_service.create_book(sample_create_request)

        await book_service.delete_book(created.id)

        with pytest.raises(BookNotFoundError):
            await book_service.get_book_by_id(created.id)

    @pytest.mark.asyncio
    async def test_delete_twice(self, book_service, sample_create_request):
        """Test that deleting an already deleted book is not found."""
        created = await book_service.create_book(sample_create_request)
        await book_service.delete_book(created.id)

        with pytest.raises(BookNotFoundError):
            await book_service.delete_book(created.id)

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, mock_repository):
        """Test that a malformed identifier is invalid on delete."""
        service = BookService(mock_repository)

        with pytest.raises(InvalidIdentifierError):
            await service.delete_book("xyz")

        mock_repository.delete.assert_not_called()
