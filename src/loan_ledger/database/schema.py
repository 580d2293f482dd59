"""
SQLAlchemy database schema for the Loan Ledger.

Three tables back the ledger:

1. ``books`` - the inventory; ``stock`` counts copies currently on the shelf
2. ``loans`` - one row per loan issued by an admin to a borrower
3. ``loan_items`` - the (book, quantity) line items of a loan

Admins and borrowers are owned by the identity layer, so ``admin_id`` and
``user_id`` are plain integers rather than foreign keys.
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class LoanStatusEnum(str, enum.Enum):
    """Database enum for loan status."""

    BORROWED = "borrowed"
    RETURNED = "returned"


class Book(Base):
    """
    Books table - the stock the ledger lends against.

    ``stock`` is only ever moved by the StockGuard once the book exists.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    loan_items = relationship("LoanItem", back_populates="book")

    __table_args__ = (CheckConstraint("stock >= 0", name="check_stock_non_negative"),)


class Loan(Base):
    """
    Loans table - a multi-item loan and its settlement.

    ``days_late``, ``penalty_fee`` and ``actual_return_date`` are filled in
    when the loan is returned.
    """

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=False)
    borrow_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    actual_return_date = Column(DateTime, nullable=True)
    status = Column(Enum(LoanStatusEnum), nullable=False, default=LoanStatusEnum.BORROWED)
    days_late = Column(Integer, nullable=False, default=0)
    penalty_fee = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    # Items are deleted explicitly by the coordinator; the cascade keeps the
    # session consistent when the loan object itself is deleted.
    items = relationship(
        "LoanItem",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="LoanItem.id",
    )

    __table_args__ = (
        Index("idx_loan_user", "user_id"),
        Index("idx_loan_status", "status"),
        CheckConstraint("days_late >= 0", name="check_days_late_non_negative"),
        CheckConstraint("penalty_fee >= 0", name="check_penalty_fee_non_negative"),
    )


class LoanItem(Base):
    """Loan items table - how many copies of which book a loan holds."""

    __tablename__ = "loan_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    quantity = Column(Integer, nullable=False)

    loan = relationship("Loan", back_populates="items")
    book = relationship("Book", back_populates="loan_items")

    __table_args__ = (
        Index("idx_loan_item_loan", "loan_id"),
        Index("idx_loan_item_book", "book_id"),
        CheckConstraint("quantity > 0", name="check_quantity_positive"),
    )
