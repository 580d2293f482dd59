"""
Database package for the Loan Ledger.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and units of work (session.py)
- The stock guard that owns every shelf-stock change (stock_guard.py)
- Repositories for books and loans
"""

from .book_repository import BookCreateSchema, BookRepository
from .loan_repository import LoanRepository
from .repository import BaseRepository
from .schema import Base, Book, Loan, LoanItem, LoanStatusEnum
from .session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
    safe_query,
    session_scope,
    unit_of_work,
)
from .stock_guard import StockGuard

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "BookCreateSchema",
    "BookRepository",
    "DatabaseManager",
    "Loan",
    "LoanItem",
    "LoanRepository",
    "LoanStatusEnum",
    "StockGuard",
    "get_db_manager",
    "reset_db_manager",
    "safe_query",
    "session_scope",
    "unit_of_work",
]
