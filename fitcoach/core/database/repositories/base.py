"""
Base repository interfaces and utilities.

This module provides the repository pattern shared by every aggregate of the
fitcoach database layer, built on async SQLAlchemy sessions and SQLModel
entities.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

# Generic type for SQLModel entities
EntityType = TypeVar("EntityType", bound=SQLModel)


class AsyncBaseRepository(ABC, Generic[EntityType]):
    """CRUD contract every fitcoach repository fulfils.

    Primary keys are strings for auth-owned rows (profiles) and integers
    everywhere else.
    """

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    @abstractmethod
    async def create(self, entity: EntityType) -> EntityType:
        """Persist ``entity`` and return it with generated fields populated."""

    @abstractmethod
    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]: ...

    @abstractmethod
    async def update(self, entity: EntityType) -> EntityType: ...

    @abstractmethod
    async def delete(self, entity_id: str | int) -> bool:
        """Return False when nothing matched ``entity_id``."""

    @abstractmethod
    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        """List rows newest first when the repository sets ``order_by``.

        ``filters`` are equality matches; ``None`` values are ignored.
        """


class SQLModelRepository(AsyncBaseRepository[EntityType]):
    """CRUD implementation shared by the concrete repositories."""

    order_by: Optional[str] = None

    async def create(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: str | int) -> bool:
        entity = await self.get_by_id(entity_id)
        if entity:
            await self.session.delete(entity)
            await self.session.commit()
            return True
        return False

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        stmt = select(self.model)
        if self.order_by:
            stmt = stmt.order_by(getattr(self.model, self.order_by).desc())
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def scalars(self, stmt) -> List[Any]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first(self, stmt) -> Optional[Any]:
        result = await self.session.execute(stmt)
        return result.scalars().first()


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """Apply equality filters to a select statement.

        Args:
            stmt: SQLModel select statement
            model: SQLModel entity class
            filters: Dictionary of field filters; ``None`` values are skipped

        Returns:
            Modified select statement with filters applied
        """
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        """Apply pagination to a select statement.

        Args:
            stmt: SQLModel select statement
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            Modified select statement with pagination applied
        """
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt
