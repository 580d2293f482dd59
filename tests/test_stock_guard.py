"""Tests for the stock guard."""

import pytest

from loan_ledger.database.stock_guard import StockGuard
from loan_ledger.exceptions import BookNotFoundError, InsufficientStockError


class TestReserve:
    def test_reserve_decrements_stock(self, db_manager, books, stock_of):
        with db_manager.session_scope() as session:
            previous = StockGuard(session).reserve(books["laskar"], 2)

        assert previous == 5
        assert stock_of(books["laskar"]) == 3

    def test_reserve_entire_stock(self, db_manager, books, stock_of):
        with db_manager.session_scope() as session:
            StockGuard(session).reserve(books["bumi"], 3)

        assert stock_of(books["bumi"]) == 0

    def test_reserve_more_than_available(self, db_manager, books, stock_of):
        with pytest.raises(InsufficientStockError) as exc_info:
            with db_manager.session_scope() as session:
                StockGuard(session).reserve(books["gatsby"], 2)

        error = exc_info.value
        assert error.book_id == books["gatsby"]
        assert error.available == 1
        assert error.requested == 2
        assert str(error) == (
            f"Not enough stock for book ID {books['gatsby']}. Available: 1, Requested: 2"
        )
        assert stock_of(books["gatsby"]) == 1

    def test_reserve_missing_book(self, db_manager, books):
        with pytest.raises(BookNotFoundError) as exc_info:
            with db_manager.session_scope() as session:
                StockGuard(session).reserve(999, 1)

        assert exc_info.value.book_id == 999
        assert str(exc_info.value) == "Book with ID 999 not found"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_reserve_rejects_non_positive_quantity(self, db_manager, books, quantity):
        with pytest.raises(ValueError):
            with db_manager.session_scope() as session:
                StockGuard(session).reserve(books["laskar"], quantity)

    def test_reserve_is_undone_by_rollback(self, db_manager, books, stock_of):
        session = db_manager.create_session()
        try:
            StockGuard(session).reserve(books["laskar"], 4)
            session.rollback()
        finally:
            session.close()

        assert stock_of(books["laskar"]) == 5


class TestRelease:
    def test_release_increments_stock(self, db_manager, books, stock_of):
        with db_manager.session_scope() as session:
            new_stock = StockGuard(session).release(books["gatsby"], 2)

        assert new_stock == 3
        assert stock_of(books["gatsby"]) == 3

    def test_release_missing_book(self, db_manager, books):
        with pytest.raises(BookNotFoundError):
            with db_manager.session_scope() as session:
                StockGuard(session).release(404, 1)

    def test_reserve_then_release_restores_stock(self, db_manager, books, stock_of):
        with db_manager.session_scope() as session:
            guard = StockGuard(session)
            guard.reserve(books["bumi"], 2)
            guard.release(books["bumi"], 2)

        assert stock_of(books["bumi"]) == 3
