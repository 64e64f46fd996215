"""
MongoDB repository for book documents.
Handles connection, indexing, and the persistence operations the book service relies on.
"""

from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ExecutionTimeout

from catalog.exceptions import BookNotFoundError, StoreUnavailableError
from catalog.models import Book

logger = structlog.get_logger(__name__)

# Failures that mean the store could not be reached in time. ServerSelectionTimeoutError,
# NetworkTimeout and AutoReconnect are all ConnectionFailure subclasses.
STORE_UNAVAILABLE_ERRORS = (ConnectionFailure, ExecutionTimeout)


class BookRepository:
    """
    Async MongoDB repository for Book entities.

    The store owns identifier generation (ObjectId) and enforces ISBN uniqueness
    through a unique index. Duplicate key errors are propagated unchanged.
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        collection_name: str,
        timeout_ms: int = 5000
    ):
        """
        Initialize the repository.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the books collection
            timeout_ms: Server selection timeout in milliseconds
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.timeout_ms = timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(
                self.connection_url, serverSelectionTimeoutMS=self.timeout_ms
            )
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise StoreUnavailableError(f"Could not connect to MongoDB: {e}") from e

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique ISBN index backing the uniqueness rule."""
        await self.collection.create_index("isbn", unique=True)
        logger.info("Successfully created MongoDB indexes")

    @staticmethod
    def _to_document(book: Book) -> Dict[str, Any]:
        # BSON has no date-only type; dates are stored as midnight datetimes.
        return {
            "title": book.title,
            "author": book.author,
            "isbn": book.isbn,
            "published_date": datetime.combine(book.published_date, time.min),
        }

    @staticmethod
    def _from_document(document: Dict[str, Any]) -> Book:
        published = document["published_date"]
        if isinstance(published, datetime):
            published = published.date()
        return Book(
            id=str(document["_id"]),
            title=document["title"],
            author=document["author"],
            isbn=document["isbn"],
            published_date=published,
        )

    @staticmethod
    def _unavailable(operation: str, error: Exception) -> StoreUnavailableError:
        logger.error("MongoDB unavailable", operation=operation, error=str(error))
        return StoreUnavailableError(f"The database is currently unavailable: {error}")

    async def save(self, book: Book) -> Book:
        """
        Insert a new book or replace an existing one.

        A book without an identifier is inserted and receives the ObjectId generated
        by the store. Otherwise the document with that identifier is replaced; a
        document deleted in the meantime is not recreated.

        Args:
            book: Book to persist

        Returns:
            The same Book, with its identifier set

        Raises:
            DuplicateKeyError: ISBN already used by another document
            BookNotFoundError: No document with the book's identifier to replace
            StoreUnavailableError: MongoDB could not be reached
        """
        document = self._to_document(book)
        try:
            if book.id is None:
                result = await self.collection.insert_one(document)
                book.id = str(result.inserted_id)
                logger.debug("Inserted book", book_id=book.id, isbn=book.isbn)
            else:
                result = await self.collection.replace_one({"_id": ObjectId(book.id)}, document)
                if result.matched_count == 0:
                    raise BookNotFoundError(book.id)
                logger.debug("Replaced book", book_id=book.id, isbn=book.isbn)
            return book
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("save", e) from e

    async def save_all(self, books: List[Book]) -> List[Book]:
        """
        Insert multiple new books in one batch.

        Args:
            books: Unsaved Book instances

        Returns:
            The same books with identifiers assigned
        """
        if not books:
            return []

        documents = [self._to_document(book) for book in books]
        try:
            result = await self.collection.insert_many(documents, ordered=True)
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("save_all", e) from e

        for book, inserted_id in zip(books, result.inserted_ids):
            book.id = str(inserted_id)
        logger.info("Batch insert completed", total=len(books))
        return books

    async def find_by_id(self, book_id: str) -> Optional[Book]:
        """
        Get a book by its identifier.

        Args:
            book_id: String form of a valid ObjectId

        Returns:
            Book or None if not found
        """
        try:
            document = await self.collection.find_one({"_id": ObjectId(book_id)})
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("find_by_id", e) from e

        if document is None:
            return None
        return self._from_document(document)

    async def find_all_paged(self, page: int, size: int) -> Tuple[List[Book], int]:
        """
        Get one page of books in insertion order.

        Args:
            page: 0-based page index
            size: Number of books per page

        Returns:
            Tuple of (books on the page, total number of books)
        """
        try:
            total = await self.collection.count_documents({})
            cursor = self.collection.find({}).sort("_id", 1).skip(page * size).limit(size)
            documents = await cursor.to_list(length=size)
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("find_all_paged", e) from e

        return [self._from_document(document) for document in documents], total

    async def delete(self, book: Book) -> None:
        """Delete a book by identifier. Deleting an absent document is a no-op."""
        try:
            result = await self.collection.delete_one({"_id": ObjectId(book.id)})
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("delete", e) from e

        logger.debug("Deleted book", book_id=book.id, deleted=result.deleted_count)

    async def count(self) -> int:
        """Get total number of books in the collection."""
        try:
            return await self.collection.count_documents({})
        except STORE_UNAVAILABLE_ERRORS as e:
            raise self._unavailable("count", e) from e

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
