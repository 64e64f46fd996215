"""
Command line entry point for seeding the book catalog.

Usage:
    python main.py [seed_file]

Inserts the seed books when the collection is empty and leaves it untouched otherwise.
"""

import asyncio
import sys

import structlog

from catalog.database import BookRepository
from catalog.seeder import BookDataSeeder
from utilities.config import config
from utilities.logger import setup_logging


async def main():
    """Connect to MongoDB and run the seeder."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = structlog.get_logger(__name__)
    seed_file = sys.argv[1] if len(sys.argv) > 1 else config.get_seed_file_path()
    logger.info("Starting book catalog seeding", seed_file=str(seed_file))

    repository = BookRepository(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection,
        timeout_ms=config.mongodb_timeout_ms
    )

    try:
        await repository.connect()

        inserted = await BookDataSeeder(repository, seed_file).run()
        total = await repository.count()
        logger.info("Seeding finished", inserted=len(inserted), total_books=total)

    except Exception as e:
        logger.error("Fatal error occurred", error=str(e))
        sys.exit(1)

    finally:
        await repository.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
