"""
Book repository for the Loan Ledger.

Catalog management proper lives with a collaborator; this repository covers
what the ledger and its tooling need: adding stocked books, and looking them
up by id. Stock changes on existing books go through ``StockGuard``.
"""

from ..models.book import Book as BookModel
from .repository import BaseRepository
from .schema import Book as BookDB


class BookCreateSchema(BookModel):
    """Schema for creating a new book - same as base model."""


class BookRepository(BaseRepository[BookDB, BookCreateSchema, BookModel]):
    """Repository for book data access."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    def get_stock(self, book_id: int) -> int | None:
        """Current shelf stock of a book, or None if it does not exist."""
        book = self.get_by_id(book_id)
        return book.stock if book else None
