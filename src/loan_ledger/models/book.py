"""
Book model for the Loan Ledger.

The catalog itself belongs to a collaborator; the ledger only needs enough of
a book to lend it out and to label loan items.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Book(BaseModel):
    """A book in the inventory, with its current shelf stock."""

    id: int | None = Field(
        default=None,
        description="Database identifier, assigned on insert",
        ge=1,
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["The Great Gatsby", "Laskar Pelangi"],
    )

    author: str = Field(
        ...,
        description="The book's author",
        min_length=1,
        max_length=200,
        examples=["F. Scott Fitzgerald", "Andrea Hirata"],
    )

    stock: int = Field(
        default=0,
        description="Copies currently on the shelf",
        ge=0,
        examples=[0, 3, 10],
    )

    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "stock": 3,
            }
        },
    )
