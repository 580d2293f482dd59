"""
Error taxonomy of the Loan Ledger.

Every error raised by a loan operation aborts that operation's unit of work
and reaches the caller unchanged, carrying the ids needed to act on it.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""


class NotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""


class BookNotFoundError(NotFoundError):
    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"Book with ID {book_id} not found")


class LoanNotFoundError(NotFoundError):
    def __init__(self, loan_id: int):
        self.loan_id = loan_id
        super().__init__(f"Loan with ID {loan_id} not found")


class InsufficientStockError(LedgerError):
    """Raised when a line item asks for more copies than are on the shelf."""

    def __init__(self, book_id: int, available: int, requested: int):
        self.book_id = book_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock for book ID {book_id}. "
            f"Available: {available}, Requested: {requested}"
        )


class AlreadyReturnedError(LedgerError):
    def __init__(self, loan_id: int):
        self.loan_id = loan_id
        super().__init__(f"Loan {loan_id} has already been returned")


class InvalidDateError(LedgerError):
    """Raised for unparsable dates or an expected return before the borrow date."""


class StorageFailure(LedgerError):
    """
    Raised when the backing store could not complete a unit of work.

    Nothing from the failed unit of work survives, so callers may retry.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause!s}" if cause is not None else ""
        super().__init__(f"Database operation '{operation}' failed{detail}")
