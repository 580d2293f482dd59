"""
Loan models for the Loan Ledger.

- LoanItemInput / LoanCreate: what a caller submits to open a loan
- LoanItem / Loan / LoanDetail: what the ledger reports back
- ReturnReceipt: the outcome of settling a loan
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class LoanStatus(str, Enum):
    """Status of a loan."""

    BORROWED = "borrowed"
    RETURNED = "returned"


class LoanItemInput(BaseModel):
    """One requested line item: a book and how many copies of it."""

    book_id: int = Field(..., description="ID of the book to lend", ge=1, examples=[1, 42])
    quantity: int = Field(..., description="Number of copies", gt=0, examples=[1, 2])


class LoanCreate(BaseModel):
    """
    A request to open a loan.

    ``admin_id`` identifies the issuing actor and is supplied by the trusted
    identity layer, never by the borrower.
    """

    admin_id: int = Field(..., description="ID of the admin issuing the loan", ge=1)
    user_id: int = Field(..., description="ID of the borrower", ge=1)
    borrow_date: date = Field(..., examples=["2023-01-01"])
    return_date: date = Field(
        ...,
        description="Date the books are expected back",
        examples=["2023-01-15"],
    )
    items: list[LoanItemInput] = Field(
        ...,
        description="Line items, reserved in the order given",
        min_length=1,
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "admin_id": 1,
                "user_id": 7,
                "borrow_date": "2023-01-01",
                "return_date": "2023-01-15",
                "items": [{"book_id": 1, "quantity": 2}, {"book_id": 3, "quantity": 1}],
            }
        },
    )


class LoanItem(BaseModel):
    """A stored line item, labelled with its book's title and author."""

    id: int
    loan_id: int
    book_id: int
    quantity: int = Field(..., gt=0)
    title: str | None = None
    author: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Loan(BaseModel):
    """A stored loan."""

    id: int
    admin_id: int
    user_id: int
    borrow_date: date
    return_date: date
    actual_return_date: datetime | None = None
    status: LoanStatus
    days_late: int = Field(default=0, ge=0)
    penalty_fee: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_serializer("penalty_fee")
    def serialize_penalty_fee(self, value: Decimal) -> float:
        return float(value)

    @property
    def is_returned(self) -> bool:
        return self.status == LoanStatus.RETURNED

    model_config = ConfigDict(from_attributes=True)


class LoanDetail(Loan):
    """A loan together with its line items."""

    items: list[LoanItem] = Field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class ReturnReceipt(BaseModel):
    """Result of returning a loan."""

    loan_id: int
    days_late: int = Field(..., ge=0)
    penalty_fee: Decimal = Field(..., ge=0)

    @field_serializer("penalty_fee")
    def serialize_penalty_fee(self, value: Decimal) -> float:
        return float(value)
