"""Deal task repository for workflow create_task steps."""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.application.dtos.task import TaskResult
from dealflow.infrastructure.persistence.models.task import DealTask
from dealflow.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(t: DealTask) -> TaskResult:
    """Map DealTask ORM to TaskResult DTO."""
    return TaskResult(
        id=t.id,
        deal_id=t.deal_id,
        title=t.title,
        description=t.description,
        due_date=t.due_date,
        completed_at=t.completed_at,
        created_by=t.created_by,
        created_at=t.created_at,
    )


class TaskRepository(BaseRepository[DealTask]):
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DealTask)

    async def create_task(
        self,
        deal_id: str,
        title: str,
        *,
        description: str | None = None,
        due_date: date | None = None,
        created_by: str | None = None,
    ) -> TaskResult:
        """Create a task and return the result DTO."""
        task = DealTask(
            deal_id=deal_id,
            title=title,
            description=description,
            due_date=due_date,
            created_by=created_by,
        )
        return _to_result(await self.create(task))
