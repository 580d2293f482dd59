"""
MCP tools for the Loan Ledger server.

Tools are the write (and lookup) side of the ledger: each one validates its
arguments, runs a single ledger operation and reports the outcome.
"""

from .loans import create_loan, delete_loan, get_loan, list_loans, return_loan

all_tools = [
    create_loan,
    get_loan,
    list_loans,
    return_loan,
    delete_loan,
]

__all__ = [
    "all_tools",
    "create_loan",
    "delete_loan",
    "get_loan",
    "list_loans",
    "return_loan",
]
