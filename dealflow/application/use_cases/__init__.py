"""Application use cases: one entry point per workflow."""

from dealflow.application.use_cases.deal_events import DealEventService
from dealflow.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationRuleEngine,
    dispatch_batch,
)
from dealflow.application.use_cases.scheduler import WorkflowScheduler

__all__ = [
    "DealEventService",
    "NotificationDispatcher",
    "NotificationRuleEngine",
    "WorkflowScheduler",
    "dispatch_batch",
]
