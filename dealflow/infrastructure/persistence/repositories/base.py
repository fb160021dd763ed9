"""Base repository: get/create/update helpers shared by the aggregate repositories."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_by_id, create and savepoint-wrapped add.

    Subclasses map ORM rows to application DTOs; ORM objects do not leave
    the repository layer.
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
        """Persist a new record and refresh server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def create_in_savepoint(self, obj: ModelType) -> ModelType:
        """Persist inside a SAVEPOINT so a failed insert leaves the outer transaction usable.

        Raises the underlying SQLAlchemy error (e.g. IntegrityError) after rollback
        to the savepoint.
        """
        async with self.db.begin_nested():
            self.db.add(obj)
            await self.db.flush()
        await self.db.refresh(obj)
        return obj
