"""
Initialize the Loan Ledger database.

This script:
1. Creates the ledger tables
2. Optionally stocks a handful of sample books
3. Verifies the expected tables are present

Usage:
    loan-ledger-init-db [--drop-existing] [--sample-data] [--database-url URL]
"""

import argparse
import logging
import sys

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from ..database.book_repository import BookCreateSchema, BookRepository
from ..database.session import DatabaseManager, get_db_manager
from ..exceptions import LedgerError

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"books", "loans", "loan_items"}

SAMPLE_BOOKS = [
    {"title": "Laskar Pelangi", "author": "Andrea Hirata", "stock": 5},
    {"title": "Bumi Manusia", "author": "Pramoedya Ananta Toer", "stock": 3},
    {"title": "The Great Gatsby", "author": "F. Scott Fitzgerald", "stock": 2},
    {"title": "Nineteen Eighty-Four", "author": "George Orwell", "stock": 4},
    {"title": "Ronggeng Dukuh Paruk", "author": "Ahmad Tohari", "stock": 1},
]


def load_sample_data(db_manager: DatabaseManager) -> int:
    """Stock the sample books. Returns how many were added."""
    with db_manager.session_scope() as session:
        repo = BookRepository(session)
        for book in SAMPLE_BOOKS:
            created = repo.create(BookCreateSchema(**book))
            logger.info("Added book %s: %s (stock %d)", created.id, created.title, created.stock)
    return len(SAMPLE_BOOKS)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for database initialization."""
    parser = argparse.ArgumentParser(description="Initialize the Loan Ledger database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Stock sample books after creating tables",
    )
    parser.add_argument(
        "--database-url",
        help="Override default database URL",
    )
    args = parser.parse_args(argv)

    logger.info("Initializing database manager...")
    db_manager = get_db_manager(args.database_url)

    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        sys.exit(1)

    try:
        db_manager.init_database(drop_existing=args.drop_existing)

        if args.sample_data:
            count = load_sample_data(db_manager)
            logger.info("Loaded %d sample books", count)

        tables = set(inspect(db_manager.engine).get_table_names())
        missing_tables = EXPECTED_TABLES - tables
        if missing_tables:
            logger.error("Missing expected tables: %s", ", ".join(sorted(missing_tables)))
            sys.exit(1)

        logger.info("Database initialization complete: %s", ", ".join(sorted(tables)))

    except (LedgerError, SQLAlchemyError):
        logger.exception("Database initialization failed")
        sys.exit(1)
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()
