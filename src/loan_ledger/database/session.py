"""
Database session management for the Loan Ledger.

Every loan operation runs as one unit of work: a single transaction on a
single session that either commits as a whole or leaves no trace.

Stock rows are read with ``SELECT ... FOR UPDATE`` so server databases lock
them for the rest of the transaction. SQLite ignores ``FOR UPDATE``; there the
engine opens every transaction with ``BEGIN IMMEDIATE``, taking the database
write lock up front so two writers can never act on the same stale stock
value. A writer that cannot get the lock within ``lock_timeout_seconds``
fails with ``StorageFailure``.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..exceptions import LedgerError, StorageFailure
from .schema import Base

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """
    Owns the engine and session factory of the ledger's backing store.
    """

    def __init__(self, database_url: str | None = None, lock_timeout: float | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, taken from configuration.
            lock_timeout: Seconds a SQLite writer waits for the database lock.
        """
        if database_url is None or lock_timeout is None:
            config = get_config()
            if database_url is None:
                database_url = config.get_database_url()
            if lock_timeout is None:
                lock_timeout = config.lock_timeout_seconds
            logger.info("Using database at: %s", database_url)

        self.database_url = database_url
        self.lock_timeout = lock_timeout
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.database_url.startswith("sqlite"):
                self._engine = self._create_sqlite_engine()
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    def _create_sqlite_engine(self) -> Engine:
        kwargs = {
            "connect_args": {"check_same_thread": False, "timeout": self.lock_timeout},
            "echo": False,
        }
        if _is_memory_sqlite(self.database_url):
            # An in-memory database only lives as long as its one connection
            kwargs["poolclass"] = StaticPool

        engine = create_engine(self.database_url, **kwargs)
        busy_timeout_ms = int(self.lock_timeout * 1000)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
            # Hand transaction control to SQLAlchemy so BEGIN IMMEDIATE below is honoured
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
            cursor.close()

        @event.listens_for(engine, "begin")
        def begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """Create a new database session. Callers must close it."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db_manager.session_scope() as session:
            LoanRepository(session).return_loan(loan_id, date.today())
        ```
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
            logger.debug("Database transaction committed successfully")
        except LedgerError:
            session.rollback()
            raise
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Create the ledger tables.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        engine = self.engine

        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """Return True when the store answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - Singleton pattern for database manager

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)

    return _db_manager


def reset_db_manager() -> None:
    """Dispose of the global manager so the next call builds a fresh one."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Convenience context manager over the global database manager."""
    with get_db_manager().session_scope() as session:
        yield session


@contextmanager
def unit_of_work(session: Session, operation: str) -> Generator[Session, None, None]:
    """
    Run the enclosed block as one all-or-nothing transaction.

    Commits when the block finishes. On any error the session is rolled back;
    ledger errors are re-raised unchanged and database errors are re-raised
    as ``StorageFailure``.

    Args:
        session: The database session
        operation: Name of the loan operation (for logs and error messages)
    """
    try:
        yield session
        session.commit()
        logger.debug("Unit of work '%s' committed", operation)
    except LedgerError as e:
        session.rollback()
        logger.warning("Unit of work '%s' rolled back: %s", operation, e)
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning("Unit of work '%s' rolled back on database error: %s", operation, e)
        raise StorageFailure(operation, e) from e
    except Exception:
        session.rollback()
        raise


def safe_query(session: Session, query_func: Callable[[Session], T], operation: str) -> T:
    """
    Execute a read, turning database errors into ``StorageFailure``.

    Args:
        session: The database session
        query_func: Function that performs the query
        operation: Description of the read (for error messages)
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed: %s", operation)
        raise StorageFailure(operation, e) from e
