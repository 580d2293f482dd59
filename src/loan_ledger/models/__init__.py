"""
Pydantic models for the Loan Ledger.

- Book: inventory items and their shelf stock
- Loan models: loan requests, stored loans with their items, return receipts
"""

from .book import Book
from .loan import (
    Loan,
    LoanCreate,
    LoanDetail,
    LoanItem,
    LoanItemInput,
    LoanStatus,
    ReturnReceipt,
)

__all__ = [
    "Book",
    "Loan",
    "LoanCreate",
    "LoanDetail",
    "LoanItem",
    "LoanItemInput",
    "LoanStatus",
    "ReturnReceipt",
]
