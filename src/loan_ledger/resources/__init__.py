"""MCP resources for the Loan Ledger server (read-only loan views)."""

from .loans import loan_resources

all_resources = loan_resources

__all__ = [
    "all_resources",
    "loan_resources",
]
