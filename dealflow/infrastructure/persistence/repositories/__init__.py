"""Repositories: one per aggregate, returning application DTOs."""

from dealflow.infrastructure.persistence.repositories.alert_repo import AlertRepository
from dealflow.infrastructure.persistence.repositories.base import BaseRepository
from dealflow.infrastructure.persistence.repositories.deal_repo import (
    DealRepository,
    PartyDirectoryRepository,
)
from dealflow.infrastructure.persistence.repositories.email_repo import (
    EmailLogRepository,
    EmailTemplateRepository,
)
from dealflow.infrastructure.persistence.repositories.task_repo import TaskRepository
from dealflow.infrastructure.persistence.repositories.timeline_repo import TimelineRepository
from dealflow.infrastructure.persistence.repositories.workflow_repo import WorkflowRepository

__all__ = [
    "AlertRepository",
    "BaseRepository",
    "DealRepository",
    "EmailLogRepository",
    "EmailTemplateRepository",
    "PartyDirectoryRepository",
    "TaskRepository",
    "TimelineRepository",
    "WorkflowRepository",
]
