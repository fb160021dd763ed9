"""Persistence models: ORM entities and mixins."""

from dealflow.infrastructure.persistence.models.alert import Alert
from dealflow.infrastructure.persistence.models.deal import (
    AgentProfile,
    Deal,
    DealParty,
    EscrowCompany,
    Lender,
)
from dealflow.infrastructure.persistence.models.email import (
    EmailTemplate,
    TransactionEmailLog,
)
from dealflow.infrastructure.persistence.models.mixins import EntityModel
from dealflow.infrastructure.persistence.models.task import DealTask
from dealflow.infrastructure.persistence.models.timeline import DealTimelineEvent
from dealflow.infrastructure.persistence.models.workflow import (
    WorkflowDefinition,
    WorkflowRun,
    WorkflowRunStep,
    WorkflowStep,
)

__all__ = [
    "AgentProfile",
    "Alert",
    "Deal",
    "DealParty",
    "DealTask",
    "DealTimelineEvent",
    "EmailTemplate",
    "EntityModel",
    "EscrowCompany",
    "Lender",
    "TransactionEmailLog",
    "WorkflowDefinition",
    "WorkflowRun",
    "WorkflowRunStep",
    "WorkflowStep",
]
