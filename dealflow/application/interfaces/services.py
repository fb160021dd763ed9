"""Service interfaces (ports) for the application layer.

Protocols for template rendering, recipient resolution, mail transport,
notification dispatch and the workflow engine. Implementations live in
application.use_cases or infrastructure.services (DIP).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from dealflow.application.dtos.deal import DealEvent, DealResult
    from dealflow.application.dtos.notification import (
        DispatchResult,
        Recipient,
        SendResult,
    )
    from dealflow.application.dtos.workflow import (
        DueRunStep,
        StepExecutionStats,
        WorkflowRunResult,
    )


class IMailTransport(Protocol):
    """Outbound email provider. Never raises; failures come back in SendResult."""

    async def send(
        self,
        recipients: list[Recipient],
        subject: str,
        html: str,
        text: str | None = None,
    ) -> SendResult:
        ...


class ITemplateRenderer(Protocol):
    """Renders email templates against deal data."""

    def build_template_data(
        self, deal: DealResult, extra: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        ...

    def render(self, template: str, data: dict[str, Any]) -> str:
        ...

    def render_email(
        self, subject: str, body: str, data: dict[str, Any]
    ) -> tuple[str, str]:
        ...


class IRecipientResolver(Protocol):
    async def resolve(self, deal: DealResult, audience_type: str | None) -> list[Recipient]:
        """Return recipients for an audience; empty on unknown audience or lookup error."""


class INotificationDispatcher(Protocol):
    async def dispatch(
        self, deal_id: str, template_key: str, context_date: date | None = None
    ) -> DispatchResult:
        ...


class IWorkflowEngine(Protocol):
    """Workflow run instantiation, event handling and step execution."""

    async def start_workflows_for_deal(
        self, deal_id: str, *, now: datetime | None = None
    ) -> list[WorkflowRunResult]:
        ...

    async def handle_deal_event(
        self, event: DealEvent, *, now: datetime | None = None
    ) -> DealResult:
        ...

    async def run_due_workflow_steps(self, now: datetime | None = None) -> StepExecutionStats:
        ...

    async def execute_workflow_step(self, due: DueRunStep, now: datetime) -> None:
        ...
