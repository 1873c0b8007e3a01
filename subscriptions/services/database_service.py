"""
Database service — generic data access shared by every resource service.

Design notes
------------
- Every operation is parameterized by the ORM model class and a mapping of
  equality conditions (``where``), so resource services never build SQL.
- Writes flush but never commit; the transaction boundary is owned by the
  ``get_db`` dependency (or the caller, outside HTTP).
- ``update`` and ``delete`` return ``(rows, modified)``: the rows as they
  look after the write (or as they were before deletion) and how many were
  affected.
"""
import logging
from typing import Any, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.database import Base

ModelT = TypeVar("ModelT", bound=Base)

logger = logging.getLogger(__name__)


class DatabaseService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @staticmethod
    def _conditions(model: type[ModelT], where: dict[str, Any] | None) -> list:
        return [getattr(model, column) == value for column, value in (where or {}).items()]

    async def find_one(self, model: type[ModelT], where: dict[str, Any]) -> ModelT | None:
        """Return the first row matching *where*, or None."""
        q = select(model).where(*self._conditions(model, where)).limit(1)
        result = await self.db.execute(q)
        return result.scalar_one_or_none()

    async def find_all(
        self,
        model: type[ModelT],
        where: dict[str, Any] | None,
        limit: int,
        skip: int,
    ) -> tuple[Sequence[ModelT], int]:
        """
        Return one page of rows matching *where* plus the total match count.

        Two statements: a COUNT over the filter, then the page itself ordered
        by creation time (id breaks ties so pages never overlap).
        """
        conditions = self._conditions(model, where)
        total: int = (
            await self.db.execute(select(func.count()).select_from(model).where(*conditions))
        ).scalar_one()

        q = (
            select(model)
            .where(*conditions)
            .order_by(model.created_at, model.id)
            .offset(skip)
            .limit(limit)
        )
        rows = (await self.db.execute(q)).scalars().all()
        return rows, total

    async def count(self, model: type[ModelT], where: dict[str, Any] | None) -> int:
        q = select(func.count()).select_from(model).where(*self._conditions(model, where))
        return (await self.db.execute(q)).scalar_one()

    async def create(self, entity: ModelT) -> ModelT:
        """Insert *entity* and flush so database-assigned values are populated."""
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(
        self,
        model: type[ModelT],
        patch: dict[str, Any],
        where: dict[str, Any],
    ) -> tuple[list[ModelT], int]:
        """
        Apply *patch* to every row matching *where*.

        Rows are loaded and mutated through the session (rather than a bulk
        UPDATE) so ``onupdate`` defaults fire and the returned objects are
        current.
        """
        q = select(model).where(*self._conditions(model, where))
        rows = list((await self.db.execute(q)).scalars().all())
        for row in rows:
            for field, value in patch.items():
                setattr(row, field, value)
        if rows:
            await self.db.flush()
            for row in rows:
                await self.db.refresh(row)
        return rows, len(rows)

    async def delete(self, model: type[ModelT], where: dict[str, Any]) -> tuple[list[ModelT], int]:
        """Delete every row matching *where*, returning the deleted rows."""
        q = select(model).where(*self._conditions(model, where))
        rows = list((await self.db.execute(q)).scalars().all())
        for row in rows:
            await self.db.delete(row)
        if rows:
            await self.db.flush()
        return rows, len(rows)
