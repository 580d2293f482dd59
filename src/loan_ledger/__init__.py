"""Loan Ledger - a library loan ledger served over MCP."""

__version__ = "0.1.0"
