"""
Loan tools for the Loan Ledger MCP server.

1. create_loan: issue a multi-item loan, taking its books off the shelf
2. get_loan / list_loans: read loans with their items
3. return_loan: settle a loan, charging lateness and restoring stock
4. delete_loan: remove a loan, restoring stock if it was still out

Handlers validate raw tool arguments with Pydantic, run the ledger operation
in a session, and answer with text content plus structured ``data``. Ledger
errors come back as ``isError`` results whose ``error`` block names the error
type and carries its ids and counts.
"""

import logging
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..database.loan_repository import LoanRepository
from ..database.session import session_scope
from ..exceptions import InvalidDateError, LedgerError
from ..models.loan import LoanCreate, LoanItemInput
from ..observability.decorators import trace_tool
from ..penalty import parse_date

logger = logging.getLogger(__name__)

_ERROR_CONTEXT_FIELDS = ("book_id", "loan_id", "available", "requested", "operation")


def _error_result(text: str, error_type: str, **context: Any) -> dict[str, Any]:
    return {
        "isError": True,
        "content": [{"type": "text", "text": text}],
        "error": {"type": error_type, "message": text, **context},
    }


def _ledger_error_result(error: LedgerError) -> dict[str, Any]:
    context = {
        field: getattr(error, field) for field in _ERROR_CONTEXT_FIELDS if hasattr(error, field)
    }
    return _error_result(str(error), type(error).__name__, **context)


def _invalid_parameters(tool_name: str, error: ValidationError) -> dict[str, Any]:
    logger.warning("Invalid %s parameters: %s", tool_name, error)
    return _error_result(f"Invalid parameters: {error}", "ValidationError")


def _unexpected(tool_name: str, error: Exception) -> dict[str, Any]:
    logger.exception("Unexpected error in %s tool", tool_name)
    return _error_result(f"An unexpected error occurred: {error!s}", "InternalError")


# =============================================================================
# CREATE
# =============================================================================


class CreateLoanInput(BaseModel):
    """Input schema for the create_loan tool."""

    admin_id: int = Field(
        ...,
        description="ID of the authenticated admin issuing the loan",
        ge=1,
    )
    user_id: int = Field(..., description="ID of the borrower", ge=1)
    borrow_date: date = Field(..., description="Borrow date (YYYY-MM-DD)", examples=["2023-01-01"])
    return_date: date = Field(
        ..., description="Expected return date (YYYY-MM-DD)", examples=["2023-01-15"]
    )
    loan_items: list[LoanItemInput] = Field(
        ...,
        description="Books and quantities to lend, reserved in this order",
        min_length=1,
    )

    @field_validator("borrow_date", "return_date", mode="before")
    @classmethod
    def validate_calendar_date(cls, v: Any) -> date:
        """Accept ISO dates or datetimes; keep only the calendar day."""
        parsed = _parse_or_reject(v)
        return parsed.date() if isinstance(parsed, datetime) else parsed

    def to_loan_create(self) -> LoanCreate:
        return LoanCreate(
            admin_id=self.admin_id,
            user_id=self.user_id,
            borrow_date=self.borrow_date,
            return_date=self.return_date,
            items=self.loan_items,
        )


def _parse_or_reject(value: Any) -> date | datetime:
    try:
        return parse_date(value)
    except InvalidDateError as e:
        raise ValueError(str(e)) from e


@trace_tool("create_loan")
async def create_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the create_loan tool."""
    try:
        params = CreateLoanInput.model_validate(arguments)
    except ValidationError as e:
        return _invalid_parameters("create_loan", e)

    try:
        with session_scope() as session:
            loan_id = LoanRepository(session).create_loan(params.to_loan_create())
    except LedgerError as e:
        logger.info("Create loan failed: %s", e)
        return _ledger_error_result(e)
    except Exception as e:
        return _unexpected("create_loan", e)

    return {
        "content": [{"type": "text", "text": f"Loan created successfully (ID {loan_id})"}],
        "data": {"message": "Loan created successfully", "loan_id": loan_id},
    }


# =============================================================================
# READ
# =============================================================================


class LoanIdInput(BaseModel):
    """Input schema for tools addressing a single loan."""

    loan_id: int = Field(..., description="ID of the loan", ge=1)


@trace_tool("get_loan")
async def get_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the get_loan tool."""
    try:
        params = LoanIdInput.model_validate(arguments)
    except ValidationError as e:
        return _invalid_parameters("get_loan", e)

    try:
        with session_scope() as session:
            loan = LoanRepository(session).get_loan(params.loan_id)
    except LedgerError as e:
        logger.info("Get loan failed: %s", e)
        return _ledger_error_result(e)
    except Exception as e:
        return _unexpected("get_loan", e)

    books = ", ".join(f"{item.title} x{item.quantity}" for item in loan.items)
    return {
        "content": [
            {
                "type": "text",
                "text": f"Loan {loan.id} for user {loan.user_id} is {loan.status.value}: {books}",
            }
        ],
        "data": {"loan": loan.model_dump(mode="json")},
    }


@trace_tool("list_loans")
async def list_loans_handler(arguments: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ARG001
    """Handler for the list_loans tool."""
    try:
        with session_scope() as session:
            loans = LoanRepository(session).list_loans()
    except LedgerError as e:
        logger.info("List loans failed: %s", e)
        return _ledger_error_result(e)
    except Exception as e:
        return _unexpected("list_loans", e)

    outstanding = sum(1 for loan in loans if not loan.is_returned)
    return {
        "content": [
            {
                "type": "text",
                "text": f"{len(loans)} loans ({outstanding} still borrowed)",
            }
        ],
        "data": {"loans": [loan.model_dump(mode="json") for loan in loans]},
    }


# =============================================================================
# RETURN / DELETE
# =============================================================================


class ReturnLoanInput(LoanIdInput):
    """Input schema for the return_loan tool."""

    actual_return_date: str = Field(
        ...,
        description="Date the books came back (YYYY-MM-DD or ISO-8601 datetime)",
        examples=["2023-01-20"],
    )

    @field_validator("actual_return_date")
    @classmethod
    def validate_actual_return_date(cls, v: str) -> str:
        _parse_or_reject(v)
        return v


@trace_tool("return_loan")
async def return_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the return_loan tool."""
    try:
        params = ReturnLoanInput.model_validate(arguments)
    except ValidationError as e:
        return _invalid_parameters("return_loan", e)

    try:
        with session_scope() as session:
            receipt = LoanRepository(session).return_loan(params.loan_id, params.actual_return_date)
    except LedgerError as e:
        logger.info("Return loan failed: %s", e)
        return _ledger_error_result(e)
    except Exception as e:
        return _unexpected("return_loan", e)

    message = "Loan returned successfully."
    if receipt.days_late > 0:
        message += f" {receipt.days_late} days late, penalty fee {receipt.penalty_fee:.2f}."
    else:
        message += " Returned on time - no penalty."

    return {
        "content": [{"type": "text", "text": message}],
        "data": {
            "message": "Loan returned successfully",
            "days_late": receipt.days_late,
            "penalty_fee": float(receipt.penalty_fee),
        },
    }


@trace_tool("delete_loan")
async def delete_loan_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the delete_loan tool."""
    try:
        params = LoanIdInput.model_validate(arguments)
    except ValidationError as e:
        return _invalid_parameters("delete_loan", e)

    try:
        with session_scope() as session:
            LoanRepository(session).delete_loan(params.loan_id)
    except LedgerError as e:
        logger.info("Delete loan failed: %s", e)
        return _ledger_error_result(e)
    except Exception as e:
        return _unexpected("delete_loan", e)

    return {
        "content": [{"type": "text", "text": "Loan deleted successfully"}],
        "data": {"message": "Loan deleted successfully", "loan_id": params.loan_id},
    }


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

create_loan = {
    "name": "create_loan",
    "description": (
        "Issue a loan of one or more books to a borrower. Every line item is checked "
        "against shelf stock in order; if any book is missing or short, nothing is lent."
    ),
    "inputSchema": CreateLoanInput.model_json_schema(),
    "handler": create_loan_handler,
}

get_loan = {
    "name": "get_loan",
    "description": "Fetch a loan with its line items, including each book's title and author.",
    "inputSchema": LoanIdInput.model_json_schema(),
    "handler": get_loan_handler,
}

list_loans = {
    "name": "list_loans",
    "description": "List every loan with its line items.",
    "inputSchema": {"type": "object", "properties": {}},
    "handler": list_loans_handler,
}

return_loan = {
    "name": "return_loan",
    "description": (
        "Return a borrowed loan. Charges a late fee per whole day past the expected "
        "return date and puts every borrowed copy back on the shelf."
    ),
    "inputSchema": ReturnLoanInput.model_json_schema(),
    "handler": return_loan_handler,
}

delete_loan = {
    "name": "delete_loan",
    "description": (
        "Delete a loan and its line items. Copies of a loan that is still borrowed "
        "go back on the shelf first."
    ),
    "inputSchema": LoanIdInput.model_json_schema(),
    "handler": delete_loan_handler,
}
