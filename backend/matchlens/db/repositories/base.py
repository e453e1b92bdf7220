"""Base repository with generic CRUD operations.

Uses SQLAlchemy 2.0 async patterns with type-safe generics.
"""

import uuid
from collections.abc import Sequence
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from matchlens.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic repository providing common CRUD operations.

    Usage:
        class TeamRepository(BaseRepository[Team]):
            def __init__(self, session: AsyncSession):
                super().__init__(Team, session)
    """

    def __init__(self, model: type[ModelT], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: uuid.UUID) -> ModelT | None:
        """Get a single record by primary key."""
        return cast(ModelT | None, await self.session.get(self.model, id))

    async def get_all(
        self,
        *,
        offset: int = 0,
        limit: int = 100,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Get all records with optional pagination."""
        stmt: Select[tuple[ModelT]] = select(self.model)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        stmt = stmt.offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_by_field(self, field_name: str, value: Any) -> ModelT | None:
        """Get a single record by field value."""
        field = getattr(self.model, field_name)
        result = await self.session.execute(select(self.model).where(field == value))
        return result.scalar_one_or_none()

    async def get_many_by_field(
        self,
        field_name: str,
        value: Any,
        *,
        order_by: Any | None = None,
        limit: int | None = None,
    ) -> Sequence[ModelT]:
        """Get multiple records by field value."""
        field = getattr(self.model, field_name)
        stmt = select(self.model).where(field == value)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def create(self, **kwargs: Any) -> ModelT:
        """Create a new record and flush it so generated columns are populated."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelT, **kwargs: Any) -> ModelT:
        """Apply field values to a loaded record."""
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self.session.flush()
        return instance

    async def delete(self, id: uuid.UUID) -> bool:
        """Delete a record by ID."""
        instance = await self.get_by_id(id)
        if instance is None:
            return False
        await self.session.delete(instance)
        await self.session.flush()
        return True

    async def count(self) -> int:
        """Count total records."""
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return cast(int, result.scalar_one())

    async def exists(self, field_name: str, value: Any) -> bool:
        """Check if a record exists by field value."""
        field = getattr(self.model, field_name)
        stmt = select(func.count()).select_from(self.model).where(field == value)
        result = await self.session.execute(stmt)
        return cast(int, result.scalar_one()) > 0

    async def upsert(
        self, unique_field: str, unique_value: Any, **kwargs: Any
    ) -> tuple[ModelT, bool]:
        """Insert or update based on a unique field.

        Returns:
            The record and whether it was newly created.
        """
        existing = await self.get_by_field(unique_field, unique_value)
        if existing is not None:
            return await self.update(existing, **kwargs), False
        kwargs[unique_field] = unique_value
        return await self.create(**kwargs), True
