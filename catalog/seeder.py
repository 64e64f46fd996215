"""
Seed data loading for an empty book catalog.
"""

import json
from pathlib import Path
from typing import List, Union

import structlog

from catalog import mapper
from catalog.database import BookRepository
from catalog.models import Book, CreateBookRequest

logger = structlog.get_logger(__name__)


class BookDataSeeder:
    """
    Populates the books collection from a JSON file when it is empty.

    The seed file holds a list of create-request shaped records
    (title, author, isbn, publishedDate).
    """

    def __init__(self, repository: BookRepository, seed_file: Union[str, Path]):
        self.repository = repository
        self.seed_file = Path(seed_file)

    def load_requests(self) -> List[CreateBookRequest]:
        """
        Read seed records from disk.

        Raises:
            FileNotFoundError: Seed file does not exist
        """
        if not self.seed_file.exists():
            logger.error("Could not find seed file", seed_file=str(self.seed_file))
            raise FileNotFoundError(f"{self.seed_file} was not found.")

        with open(self.seed_file, "r", encoding="utf-8") as f:
            records = json.load(f)

        return [CreateBookRequest.model_validate(record) for record in records]

    async def run(self) -> List[Book]:
        """
        Seed the collection if it holds no books.

        Returns:
            Books that were inserted (empty when the collection was already populated)
        """
        books_count = await self.repository.count()
        if books_count != 0:
            logger.debug("Books collection already initialized", documents=books_count)
            return []

        books = mapper.to_entity_list(self.load_requests())
        await self.repository.save_all(books)

        logger.info("Added seed books", count=len(books))
        return books
