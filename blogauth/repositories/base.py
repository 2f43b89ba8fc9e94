"""Generic model repository.

Typed CRUD over a single model with mapping-style filters, relation
includes and ordering. Writes are flushed, not committed: the caller's
unit of work (the request session) owns the transaction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.database import Base
from blogauth.repositories.errors import RecordNotFoundError, translate_integrity_error
from blogauth.repositories.filters import Where, build_include, build_order_by, build_where

ModelT = TypeVar("ModelT", bound=Base)

OrderBy = Mapping[str, str] | Sequence[Mapping[str, str]]


class ModelRepository(Generic[ModelT]):
    """CRUD operations for one model.

    Subclasses set ``model``.
    """

    model: ClassVar[type[Base]]

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    def _unique_fields(self) -> set[str]:
        mapper = inspect(self.model)
        fields = set()
        for attr in mapper.column_attrs:
            column = attr.columns[0]
            if column.primary_key or column.unique:
                fields.add(attr.key)
        return fields

    async def _flush(self) -> None:
        """Flush pending writes, translating integrity failures.

        Raises:
            PersistenceError: On constraint violations. The session is rolled
                back first so it stays usable.
        """
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise translate_integrity_error(exc) from exc

    async def create(self, data: Mapping[str, Any]) -> ModelT:
        """Insert a new record.

        Raises:
            UniqueConstraintError: P2002, a unique field already exists.
            ForeignKeyConstraintError: P2003, a referenced row is missing.
            NullConstraintError: P2011, a required field is missing.
        """
        instance = self.model(**data)
        self.db.add(instance)
        await self._flush()
        return instance

    async def find_unique(
        self,
        where: Where,
        include: Mapping[str, bool] | None = None,
    ) -> ModelT | None:
        """Fetch a record by a unique field.

        Raises:
            ValueError: If ``where`` names no unique field.
        """
        if not self._unique_fields() & set(where):
            raise ValueError(
                f"find_unique on {self.model.__name__} requires one of {sorted(self._unique_fields())}"
            )
        return await self.find_first(where, include=include)

    async def find_first(
        self,
        where: Where | None = None,
        include: Mapping[str, bool] | None = None,
        order_by: OrderBy | None = None,
    ) -> ModelT | None:
        records = await self.find_many(where, include=include, order_by=order_by, take=1)
        return records[0] if records else None

    async def find_many(
        self,
        where: Where | None = None,
        include: Mapping[str, bool] | None = None,
        order_by: OrderBy | None = None,
        skip: int = 0,
        take: int | None = None,
    ) -> list[ModelT]:
        query = (
            select(self.model)
            .where(build_where(self.model, where))
            .options(*build_include(self.model, include))
            .order_by(*build_order_by(self.model, order_by))
        )
        if skip:
            query = query.offset(skip)
        if take is not None:
            query = query.limit(take)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, where: Where | None = None) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(self.model).where(build_where(self.model, where))
        )
        return result.scalar() or 0

    async def update(self, where: Where, data: Mapping[str, Any]) -> ModelT:
        """Update a record found by a unique field.

        Raises:
            RecordNotFoundError: P2025, no record matches.
        """
        instance = await self.find_unique(where)
        if instance is None:
            raise RecordNotFoundError(f"{self.model.__name__} to update not found")

        for field, value in data.items():
            setattr(instance, field, value)
        await self._flush()
        return instance

    async def delete(self, where: Where) -> ModelT:
        """Delete a record found by a unique field and return it.

        Raises:
            RecordNotFoundError: P2025, no record matches.
        """
        instance = await self.find_unique(where)
        if instance is None:
            raise RecordNotFoundError(f"{self.model.__name__} to delete not found")

        await self.db.delete(instance)
        await self._flush()
        return instance

    async def delete_many(self, where: Where | None = None) -> int:
        """Delete every matching record, returning the row count."""
        result = await self.db.execute(
            sa_delete(self.model)
            .where(build_where(self.model, where))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
