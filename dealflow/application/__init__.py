"""Application layer: DTOs, interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, mail transport,
template renderer, recipient resolver, workflow engine).
"""

from dealflow.application.services.date_service import DateService
from dealflow.application.use_cases.deal_events import DealEventService
from dealflow.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationRuleEngine,
)
from dealflow.application.use_cases.scheduler import WorkflowScheduler

__all__ = [
    "DateService",
    "DealEventService",
    "NotificationDispatcher",
    "NotificationRuleEngine",
    "WorkflowScheduler",
]
