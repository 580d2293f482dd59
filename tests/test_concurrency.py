"""
Concurrent writers against the same stock.

Each worker runs a loan operation in its own session and thread, the way
two MCP clients would hit the server at once.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError

from loan_ledger.database.loan_repository import LoanRepository
from loan_ledger.database.schema import Loan as LoanDB
from loan_ledger.database.session import DatabaseManager
from loan_ledger.exceptions import InsufficientStockError, StorageFailure
from loan_ledger.models.loan import LoanCreate, LoanItemInput

pytestmark = pytest.mark.concurrency


def _loan_for(book_id: int, quantity: int) -> LoanCreate:
    return LoanCreate(
        admin_id=1,
        user_id=7,
        borrow_date=date(2023, 1, 1),
        return_date=date(2023, 1, 15),
        items=[LoanItemInput(book_id=book_id, quantity=quantity)],
    )


def _run_together(db_manager, loans: list[LoanCreate]) -> list[int | Exception]:
    """Start every create_loan at the same moment; collect ids or errors."""
    barrier = threading.Barrier(len(loans))

    def worker(loan: LoanCreate) -> int | Exception:
        barrier.wait()
        try:
            with db_manager.session_scope() as session:
                return LoanRepository(session, penalty_per_day=Decimal("5")).create_loan(loan)
        except InsufficientStockError as e:
            return e

    with ThreadPoolExecutor(max_workers=len(loans)) as pool:
        return list(pool.map(worker, loans))


def test_two_loans_race_for_the_last_copies(db_manager, books, stock_of):
    # bumi has 3 copies; each loan wants 2
    outcomes = _run_together(db_manager, [_loan_for(books["bumi"], 2), _loan_for(books["bumi"], 2)])

    successes = [o for o in outcomes if isinstance(o, int)]
    failures = [o for o in outcomes if isinstance(o, InsufficientStockError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].available == 1
    assert failures[0].requested == 2
    assert stock_of(books["bumi"]) == 1


def test_many_single_copy_loans_never_oversell(db_manager, books, stock_of):
    # laskar has 5 copies; eight borrowers want one each
    outcomes = _run_together(db_manager, [_loan_for(books["laskar"], 1) for _ in range(8)])

    successes = [o for o in outcomes if isinstance(o, int)]
    failures = [o for o in outcomes if isinstance(o, InsufficientStockError)]
    assert len(successes) == 5
    assert len(failures) == 3
    assert all(f.available == 0 for f in failures)
    assert stock_of(books["laskar"]) == 0


def test_concurrent_returns_restore_all_stock(db_manager, books, stock_of):
    loan_ids = []
    for _ in range(3):
        with db_manager.session_scope() as session:
            loan_ids.append(
                LoanRepository(session, penalty_per_day=Decimal("5")).create_loan(
                    _loan_for(books["bumi"], 1)
                )
            )
    assert stock_of(books["bumi"]) == 0

    barrier = threading.Barrier(len(loan_ids))

    def worker(loan_id: int):
        barrier.wait()
        with db_manager.session_scope() as session:
            return LoanRepository(session, penalty_per_day=Decimal("5")).return_loan(
                loan_id, "2023-01-16"
            )

    with ThreadPoolExecutor(max_workers=len(loan_ids)) as pool:
        receipts = list(pool.map(worker, loan_ids))

    assert [r.days_late for r in receipts] == [1, 1, 1]
    assert stock_of(books["bumi"]) == 3


def test_writer_gives_up_when_lock_is_held(db_manager, books, stock_of, test_database_url):
    holder = db_manager.create_session()
    holder.execute(text("SELECT 1"))

    contender = DatabaseManager(test_database_url, lock_timeout=0.2)
    try:
        with pytest.raises(StorageFailure) as exc_info:
            with contender.session_scope() as session:
                LoanRepository(session, penalty_per_day=Decimal("5")).create_loan(
                    _loan_for(books["bumi"], 1)
                )
    finally:
        holder.rollback()
        holder.close()
        contender.close()

    assert exc_info.value.operation == "create loan"
    assert isinstance(exc_info.value.cause, OperationalError)
    assert stock_of(books["bumi"]) == 3
    with db_manager.session_scope() as session:
        assert session.execute(select(func.count()).select_from(LoanDB)).scalar_one() == 0
