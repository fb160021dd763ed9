"""Alert repository."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.infrastructure.persistence.models.alert import Alert
from dealflow.infrastructure.persistence.repositories.base import BaseRepository


class AlertRepository(BaseRepository[Alert]):
    """Implements IAlertRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Alert)

    async def create_alert(self, deal_id: str, alert_type: str, level: str, message: str) -> None:
        await self.create_in_savepoint(
            Alert(deal_id=deal_id, type=alert_type, level=level, message=message, is_read=False)
        )
