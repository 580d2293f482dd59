"""Test configuration and fixtures for the Loan Ledger.

1. Isolated test databases - each test gets its own SQLite file
2. Configuration isolation - settings point at the test's temporary directory
3. Seeded inventory - a few books with known stock

Sessions opened by tests must stay short: SQLite writers take the database
lock at the start of every transaction, so a session left open blocks the
code under test.
"""

from collections.abc import Generator
from pathlib import Path

import logfire
import pytest

from loan_ledger.config import LedgerConfig, reset_config
from loan_ledger.database.book_repository import BookCreateSchema, BookRepository
from loan_ledger.database.session import DatabaseManager, reset_db_manager

logfire.configure(send_to_logfire=False, console=False)


# === Pytest Configuration ===


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "concurrency: mark test as exercising concurrent writers")


# === Environment Isolation ===


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch) -> Generator[None, None, None]:
    """Keep every test away from the real data directory and global singletons."""
    monkeypatch.setenv("LOAN_LEDGER_DATABASE_PATH", str(tmp_path / "env_ledger.db"))
    monkeypatch.delenv("LOAN_LEDGER_DATABASE_URL", raising=False)
    monkeypatch.delenv("LOAN_LEDGER_PENALTY_PER_DAY", raising=False)
    reset_config()
    reset_db_manager()

    yield

    reset_db_manager()
    reset_config()


# === Test Database Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for each test."""
    return tmp_path / "test_ledger.db"


@pytest.fixture
def test_database_url(test_db_path: Path) -> str:
    """Provide a SQLAlchemy database URL for testing."""
    return f"sqlite:///{test_db_path}"


@pytest.fixture
def db_manager(test_database_url: str) -> Generator[DatabaseManager, None, None]:
    """A database manager over a freshly created ledger schema."""
    manager = DatabaseManager(test_database_url, lock_timeout=5.0)
    manager.init_database()

    yield manager

    manager.close()


@pytest.fixture
def books(db_manager: DatabaseManager) -> dict[str, int]:
    """Seed three books and return their ids by short name.

    Stock: laskar=5, bumi=3, gatsby=1.
    """
    seeded = {}
    with db_manager.session_scope() as session:
        repo = BookRepository(session)
        for key, title, author, stock in (
            ("laskar", "Laskar Pelangi", "Andrea Hirata", 5),
            ("bumi", "Bumi Manusia", "Pramoedya Ananta Toer", 3),
            ("gatsby", "The Great Gatsby", "F. Scott Fitzgerald", 1),
        ):
            book = repo.create(BookCreateSchema(title=title, author=author, stock=stock))
            seeded[key] = book.id
    return seeded


@pytest.fixture
def stock_of(db_manager: DatabaseManager):
    """Read a book's current stock in its own short session."""

    def _stock_of(book_id: int) -> int | None:
        with db_manager.session_scope() as session:
            return BookRepository(session).get_stock(book_id)

    return _stock_of


# === Configuration Fixtures ===


@pytest.fixture
def test_config(test_db_path: Path) -> Generator[LedgerConfig, None, None]:
    """Provide a test-specific configuration."""
    reset_config()

    config = LedgerConfig(
        server_name="test-loan-ledger",
        server_version="0.0.1-test",
        database_path=test_db_path,
        debug=True,
        log_level="DEBUG",
    )

    yield config

    reset_config()
