"""DTOs for deal tasks created by workflow create_task steps (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class TaskResult:
    """Deal task; ``created_by`` is None for system-created tasks."""

    id: str
    deal_id: str
    title: str
    description: str | None
    due_date: date | None
    completed_at: datetime | None
    created_by: str | None
    created_at: datetime
