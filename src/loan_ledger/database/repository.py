"""
Repository base class for the Loan Ledger.

Repositories keep SQLAlchemy out of the tool handlers: they take a session,
run queries through ``safe_query`` and hand back Pydantic models that
serialize cleanly into MCP responses.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import asc, select
from sqlalchemy.orm import Session

from .schema import Base
from .session import safe_query, unit_of_work

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseRepository(ABC, Generic[ModelType, CreateSchemaType, ResponseSchemaType]):
    """
    Common lookups and inserts for a single table.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def get_by_id(self, id: int) -> ResponseSchemaType | None:
        """
        Get entity by ID.

        Returns:
            Pydantic model or None if not found

        Raises:
            StorageFailure: On database errors
        """
        db_obj = safe_query(
            self.session,
            lambda s: s.get(self.model_class, id, populate_existing=True),
            f"get {self.model_class.__name__} by ID",
        )
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def get_all(self) -> list[ResponseSchemaType]:
        """All entities ordered by primary key."""
        query = select(self.model_class).order_by(asc(self.model_class.id))
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            f"list {self.model_class.__name__}",
        )
        return [self._to_response_model(item) for item in results]

    def create(self, data: CreateSchemaType) -> ResponseSchemaType:
        """
        Insert a new entity and commit.

        Raises:
            StorageFailure: If the insert is rejected by the database
        """
        db_obj = self.model_class(**data.model_dump(exclude_unset=True, exclude={"id"}))
        with unit_of_work(self.session, f"create {self.model_class.__name__}"):
            self.session.add(db_obj)
            self.session.flush()
            self.session.refresh(db_obj)
            created = self._to_response_model(db_obj)
        return created
