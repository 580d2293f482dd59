"""Loan Resources - read-only views of the ledger.

Resources:
- library://loans/list - every loan with its items
- library://loans/{loan_id} - one loan with its items
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..database.loan_repository import LoanRepository
from ..database.session import session_scope
from ..exceptions import LedgerError, NotFoundError
from ..observability.decorators import trace_resource

logger = logging.getLogger(__name__)


@trace_resource("loans.list")
async def list_loans_resource() -> dict[str, Any]:
    """Returns every loan with its line items."""
    try:
        with session_scope() as session:
            loans = LoanRepository(session).list_loans()
    except LedgerError as e:
        logger.exception("Error listing loans")
        raise ResourceError(f"Failed to list loans: {e!s}") from e

    return {
        "loans": [loan.model_dump(mode="json") for loan in loans],
        "total": len(loans),
    }


@trace_resource("loans.detail")
async def get_loan_resource(loan_id: str) -> dict[str, Any]:
    """Returns one loan by ID.

    Client requests library://loans/{loan_id}.
    """
    try:
        numeric_id = int(loan_id)
    except ValueError as e:
        raise ResourceError(f"Invalid loan ID: {loan_id}") from e

    try:
        with session_scope() as session:
            loan = LoanRepository(session).get_loan(numeric_id)
    except NotFoundError as e:
        raise ResourceError(str(e)) from e
    except LedgerError as e:
        logger.exception("Error fetching loan %s", loan_id)
        raise ResourceError(f"Failed to fetch loan {loan_id}: {e!s}") from e

    return {"loan": loan.model_dump(mode="json")}


loan_resources = [
    {
        "uri": "library://loans/list",
        "name": "Loan List",
        "description": "Every loan in the ledger with its line items and settlement details.",
        "mime_type": "application/json",
        "handler": list_loans_resource,
    },
    {
        "uri_template": "library://loans/{loan_id}",
        "name": "Loan Details",
        "description": "A single loan with its line items, book titles and settlement details.",
        "mime_type": "application/json",
        "handler": get_loan_resource,
    },
]
