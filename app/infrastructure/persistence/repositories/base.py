"""Base repository: generic get/create/update/delete over one ORM model."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    """Base repository with get_by_id, create, update and delete.

    Subclasses add typed queries and map ORM rows to domain entities.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and reload server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush changes on an existing record (merge if detached).

        Raises ResourceNotFoundException when a detached record no longer exists.
        """
        if object_session(obj) is not self.db.sync_session:
            entity_id = getattr(obj, "id", None)
            if entity_id is None or await self.get_by_id(entity_id) is None:
                raise ResourceNotFoundException(self.model.__name__, str(entity_id))
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self.db.delete(obj)
        await self.db.flush()
