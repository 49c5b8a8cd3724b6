"""Generic async repository over a single AsyncSession.

Repositories flush but never commit; the calling service owns the
transaction boundary.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class SQLAlchemyRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, entity_id: str) -> Optional[ModelT]:
        return await self.db.get(self.model, entity_id)

    async def exists_by_id(self, entity_id: str) -> bool:
        return await self.find_by_id(entity_id) is not None

    async def save(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def _find(self, stmt: Any) -> List[ModelT]:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
