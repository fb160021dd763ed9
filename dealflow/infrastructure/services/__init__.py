"""Infrastructure implementations of application service interfaces."""

from dealflow.infrastructure.services.recipient_resolver import RecipientResolver
from dealflow.infrastructure.services.template_renderer import TemplateRenderer
from dealflow.infrastructure.services.workflow_engine import (
    WorkflowEngine,
    calculate_scheduled_date,
)

__all__ = [
    "RecipientResolver",
    "TemplateRenderer",
    "WorkflowEngine",
    "calculate_scheduled_date",
]
