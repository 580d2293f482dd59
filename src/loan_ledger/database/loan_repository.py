"""
Loan repository: the transaction coordinator of the Loan Ledger.

Each public write is one unit of work over a single session:

1. **create_loan**: insert the loan, reserve stock item by item, insert items
2. **return_loan**: assess the late fee, release stock, mark the loan returned
3. **delete_loan**: release stock if still borrowed, then remove the records

A failure at any step rolls back everything the call did, so a loan is never
half-issued and stock is never half-moved. Items of a new loan are reserved in
the order supplied, which makes the reported failing book deterministic.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .. import penalty
from ..config import get_config
from ..exceptions import AlreadyReturnedError, InvalidDateError, LoanNotFoundError
from ..models.loan import LoanCreate, LoanDetail, LoanItem, LoanStatus, ReturnReceipt
from .schema import Loan as LoanDB
from .schema import LoanItem as LoanItemDB
from .schema import LoanStatusEnum
from .session import safe_query, unit_of_work
from .stock_guard import StockGuard

logger = logging.getLogger(__name__)


class LoanRepository:
    """
    Repository for loan operations.

    Coordinates the loan tables and the StockGuard so that stock and loan
    records always change together.
    """

    def __init__(self, session: Session, penalty_per_day: Decimal | None = None):
        """
        Args:
            session: Session the loan operations run in
            penalty_per_day: Late fee per day; defaults to the configured rate
        """
        self.session = session
        self.stock_guard = StockGuard(session)
        if penalty_per_day is None:
            penalty_per_day = get_config().penalty_per_day
        self.penalty_per_day = Decimal(penalty_per_day)

    def create_loan(self, loan_data: LoanCreate) -> int:
        """
        Issue a loan and take its books off the shelf.

        Args:
            loan_data: Actor, borrower, dates and line items

        Returns:
            ID of the new loan

        Raises:
            InvalidDateError: If the expected return date precedes the borrow date
            BookNotFoundError: If an item references a missing book
            InsufficientStockError: If an item asks for more copies than are on the shelf
            StorageFailure: If the unit of work could not commit
        """
        if loan_data.return_date < loan_data.borrow_date:
            raise InvalidDateError(
                f"Return date {loan_data.return_date} is before borrow date {loan_data.borrow_date}"
            )

        with unit_of_work(self.session, "create loan"):
            loan = LoanDB(
                admin_id=loan_data.admin_id,
                user_id=loan_data.user_id,
                borrow_date=loan_data.borrow_date,
                return_date=loan_data.return_date,
                status=LoanStatusEnum.BORROWED,
                days_late=0,
                penalty_fee=Decimal("0"),
            )
            self.session.add(loan)
            self.session.flush()

            for item in loan_data.items:
                self.stock_guard.reserve(item.book_id, item.quantity)

            for item in loan_data.items:
                self.session.add(
                    LoanItemDB(loan_id=loan.id, book_id=item.book_id, quantity=item.quantity)
                )
            self.session.flush()
            loan_id = loan.id

        logger.info(
            "Loan %s created by admin %s for user %s (%d items)",
            loan_id,
            loan_data.admin_id,
            loan_data.user_id,
            len(loan_data.items),
        )
        return loan_id

    def return_loan(
        self, loan_id: int, actual_return_date: date | datetime | str
    ) -> ReturnReceipt:
        """
        Settle a loan: charge lateness and put its books back on the shelf.

        Returns:
            Days late and the penalty fee charged

        Raises:
            InvalidDateError: If the return date cannot be parsed
            LoanNotFoundError: If the loan does not exist
            AlreadyReturnedError: If the loan was already returned
            StorageFailure: If the unit of work could not commit
        """
        actual = penalty.parse_date(actual_return_date)

        with unit_of_work(self.session, "return loan"):
            loan = self._lock_loan(loan_id)
            if loan.status == LoanStatusEnum.RETURNED:
                raise AlreadyReturnedError(loan_id)

            days_late, penalty_fee = penalty.assess(loan.return_date, actual, self.penalty_per_day)

            for item in loan.items:
                self.stock_guard.release(item.book_id, item.quantity)

            loan.status = LoanStatusEnum.RETURNED
            loan.days_late = days_late
            loan.penalty_fee = penalty_fee
            loan.actual_return_date = penalty.as_datetime(actual)
            self.session.flush()

        logger.info("Loan %s returned: %d days late, fee %s", loan_id, days_late, penalty_fee)
        return ReturnReceipt(loan_id=loan_id, days_late=days_late, penalty_fee=penalty_fee)

    def delete_loan(self, loan_id: int) -> None:
        """
        Remove a loan and its items.

        A loan still out on borrow has its stock released first; a returned
        loan already gave its stock back on return.

        Raises:
            LoanNotFoundError: If the loan does not exist
            StorageFailure: If the unit of work could not commit
        """
        with unit_of_work(self.session, "delete loan"):
            loan = self._lock_loan(loan_id)
            was_borrowed = loan.status == LoanStatusEnum.BORROWED

            if was_borrowed:
                for item in loan.items:
                    self.stock_guard.release(item.book_id, item.quantity)

            for item in list(loan.items):
                self.session.delete(item)
            self.session.delete(loan)
            self.session.flush()

        logger.info("Loan %s deleted (stock released: %s)", loan_id, was_borrowed)

    def get_loan(self, loan_id: int) -> LoanDetail:
        """
        Fetch a loan with its items.

        Raises:
            LoanNotFoundError: If the loan does not exist
        """
        loan = safe_query(
            self.session,
            lambda s: s.execute(
                self._detail_query()
                .where(LoanDB.id == loan_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none(),
            "get loan",
        )
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return self._loan_to_model(loan)

    def list_loans(self) -> list[LoanDetail]:
        """All loans with their items, oldest first."""
        loans = safe_query(
            self.session,
            lambda s: s.execute(
                self._detail_query()
                .order_by(LoanDB.id)
                .execution_options(populate_existing=True)
            )
            .scalars()
            .all(),
            "list loans",
        )
        return [self._loan_to_model(loan) for loan in loans]

    def _lock_loan(self, loan_id: int) -> LoanDB:
        loan = safe_query(
            self.session,
            lambda s: s.execute(
                select(LoanDB)
                .where(LoanDB.id == loan_id)
                .with_for_update()
                .options(selectinload(LoanDB.items))
                .execution_options(populate_existing=True)
            ).scalar_one_or_none(),
            "lock loan",
        )
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    @staticmethod
    def _detail_query():
        return select(LoanDB).options(
            selectinload(LoanDB.items).joinedload(LoanItemDB.book)
        )

    def _loan_to_model(self, loan: LoanDB) -> LoanDetail:
        """Convert loan DB object (with items loaded) to Pydantic model."""
        return LoanDetail(
            id=loan.id,
            admin_id=loan.admin_id,
            user_id=loan.user_id,
            borrow_date=loan.borrow_date,
            return_date=loan.return_date,
            actual_return_date=loan.actual_return_date,
            status=LoanStatus(loan.status.value),
            days_late=loan.days_late,
            penalty_fee=loan.penalty_fee,
            created_at=loan.created_at,
            updated_at=loan.updated_at,
            items=[
                LoanItem(
                    id=item.id,
                    loan_id=item.loan_id,
                    book_id=item.book_id,
                    quantity=item.quantity,
                    title=item.book.title if item.book else None,
                    author=item.book.author if item.book else None,
                )
                for item in loan.items
            ],
        )
