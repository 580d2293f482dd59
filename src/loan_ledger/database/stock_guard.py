"""
Stock guard: the only code that moves ``books.stock``.

Both operations read the book row with ``FOR UPDATE`` and write the new
value in the caller's transaction. They flush but never commit, so a later
failure in the same unit of work undoes them.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..exceptions import BookNotFoundError, InsufficientStockError
from .schema import Book as BookDB
from .session import safe_query

logger = logging.getLogger(__name__)


class StockGuard:
    """Validated stock movements for books, within one session."""

    def __init__(self, session: Session):
        self.session = session

    def _lock_book(self, book_id: int) -> BookDB:
        book = safe_query(
            self.session,
            lambda s: s.execute(
                select(BookDB)
                .where(BookDB.id == book_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none(),
            "lock book stock",
        )
        if book is None:
            raise BookNotFoundError(book_id)
        return book

    def reserve(self, book_id: int, quantity: int) -> int:
        """
        Take ``quantity`` copies of a book off the shelf.

        Returns:
            The stock before the reservation

        Raises:
            BookNotFoundError: If the book does not exist
            InsufficientStockError: If fewer than ``quantity`` copies are on the shelf
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        book = self._lock_book(book_id)
        available = book.stock
        if quantity > available:
            raise InsufficientStockError(book_id, available, quantity)

        book.stock = available - quantity
        self.session.flush()
        logger.debug("Reserved %d of book %s (stock %d -> %d)", quantity, book_id, available, book.stock)
        return available

    def release(self, book_id: int, quantity: int) -> int:
        """
        Put ``quantity`` copies of a book back on the shelf.

        No upper bound is enforced: total capacity is not tracked.

        Returns:
            The stock after the release
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        book = self._lock_book(book_id)
        book.stock = book.stock + quantity
        self.session.flush()
        logger.debug("Released %d of book %s (stock now %d)", quantity, book_id, book.stock)
        return book.stock
