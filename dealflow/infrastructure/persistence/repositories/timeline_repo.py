"""Deal timeline (audit trail) repository."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.infrastructure.persistence.models.timeline import DealTimelineEvent
from dealflow.infrastructure.persistence.repositories.base import BaseRepository


class TimelineRepository(BaseRepository[DealTimelineEvent]):
    """Implements ITimelineRepository. Writes run in a savepoint."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DealTimelineEvent)

    async def record(
        self,
        deal_id: str,
        event_type: str,
        description: str,
        metadata: dict[str, Any] | None = None,
        created_by: str | None = None,
    ) -> None:
        await self.create_in_savepoint(
            DealTimelineEvent(
                deal_id=deal_id,
                event_type=event_type,
                description=description,
                event_metadata=metadata or {},
                created_by=created_by,
            )
        )
