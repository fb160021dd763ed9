"""Shared enumerations for the dealflow application.

Cross-cutting enums used by application and infrastructure (workflow runs,
the email ledger, alerts). Deal-specific enums (e.g. DealStatus) live in
dealflow.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class WorkflowRunStatus(_ValuesMixin, str, Enum):
    """Workflow run lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkflowRunStepStatus(_ValuesMixin, str, Enum):
    """Run step status. Terminal once it leaves PENDING."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


class EmailLogStatus(_ValuesMixin, str, Enum):
    """Status of a row in the transaction email ledger."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class AlertType(_ValuesMixin, str, Enum):
    OVERDUE_TASK = "overdue_task"
    MISSING_DOC = "missing_doc"
    CLOSING_SOON = "closing_soon"
    EMAIL_FAILED = "email_failed"


class AlertLevel(_ValuesMixin, str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class TimelineEventType(_ValuesMixin, str, Enum):
    """Event types written to the deal timeline (audit trail)."""

    WORKFLOW_STARTED = "workflow_started"
    DEAL_EVENT = "deal_event"
    STEP_EXECUTED = "step_executed"
    TASK_CREATED = "task_created"
    FIELD_UPDATED = "field_updated"
    INTERNAL_CHAT = "internal_chat"
