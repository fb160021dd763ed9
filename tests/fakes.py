"""In-memory repositories and transports for unit and API tests."""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from dealflow.application.dtos.deal import (
    AgentProfileResult,
    DealPartyResult,
    DealResult,
    EscrowCompanyResult,
    LenderResult,
)
from dealflow.application.dtos.notification import (
    EmailLogResult,
    EmailTemplateResult,
    Recipient,
    SendResult,
)
from dealflow.application.dtos.step_action import parse_step_action
from dealflow.application.dtos.task import TaskResult
from dealflow.application.dtos.workflow import (
    DueRunStep,
    WorkflowDefinitionResult,
    WorkflowRunResult,
    WorkflowRunStepResult,
    WorkflowStepResult,
)
from dealflow.domain.exceptions import ResourceNotFoundException
from dealflow.infrastructure.persistence.repositories.deal_repo import coerce_deal_value
from dealflow.shared.enums import EmailLogStatus, WorkflowRunStatus, WorkflowRunStepStatus

CREATED_AT = datetime(2024, 11, 1, 17, 0, tzinfo=UTC)

_ids = itertools.count(1)


def next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


def make_deal(**overrides: Any) -> DealResult:
    values: dict[str, Any] = {
        "id": "deal-1",
        "property_address": "123 Main St, Sacramento, CA",
        "side": "listing",
        "status": "in_escrow",
        "created_at": CREATED_AT,
    }
    values.update(overrides)
    return DealResult(**values)


def make_template(key: str, audience_type: str = "all_parties", **overrides: Any) -> EmailTemplateResult:
    values: dict[str, Any] = {
        "id": f"tpl-{key}",
        "key": key,
        "name": key.replace("_", " ").title(),
        "subject_template": "Update for {{ property_address }}",
        "body_html": "<p>Hi {{ recipient_names }}, closing {{ format_date(estimated_coe_date) }}</p>",
        "audience_type": audience_type,
        "is_active": True,
    }
    values.update(overrides)
    return EmailTemplateResult(**values)


def make_step(
    action_type: str,
    action_config: dict[str, Any] | None,
    *,
    definition_id: str = "wf-1",
    step_order: int = 1,
    relative_to: str = "none",
    offset_days: int = 0,
    name: str | None = None,
) -> WorkflowStepResult:
    return WorkflowStepResult(
        id=next_id("step"),
        workflow_definition_id=definition_id,
        step_order=step_order,
        name=name or f"{action_type} step",
        relative_to=relative_to,
        offset_days=offset_days,
        action_type=action_type,
        action_config=action_config,
        action=parse_step_action(action_type, action_config),
    )


class FakeDealRepository:
    def __init__(self, deals: Sequence[DealResult] = ()) -> None:
        self.deals: dict[str, DealResult] = {d.id: d for d in deals}

    def add(self, deal: DealResult) -> DealResult:
        self.deals[deal.id] = deal
        return deal

    async def get_by_id(self, deal_id: str) -> DealResult | None:
        return self.deals.get(deal_id)

    async def list_by_statuses(self, statuses: Sequence[str]) -> list[DealResult]:
        return [d for d in self.deals.values() if d.status in statuses]

    async def update_fields(self, deal_id: str, values: dict[str, Any]) -> DealResult:
        deal = self.deals.get(deal_id)
        if deal is None:
            raise ResourceNotFoundException("deal", deal_id)
        updated = dataclasses.replace(deal, **values)
        self.deals[deal_id] = updated
        return updated

    async def set_field(self, deal_id: str, field: str, value: Any) -> DealResult:
        return await self.update_fields(deal_id, {field: coerce_deal_value(field, value)})


class FakePartyDirectory:
    def __init__(self) -> None:
        self.agents: dict[str, AgentProfileResult] = {}
        self.escrow_companies: dict[str, EscrowCompanyResult] = {}
        self.lenders: dict[str, LenderResult] = {}
        self.parties: list[DealPartyResult] = []

    async def get_agent_profile(self, agent_id: str) -> AgentProfileResult | None:
        return self.agents.get(agent_id)

    async def get_escrow_company(self, escrow_company_id: str) -> EscrowCompanyResult | None:
        return self.escrow_companies.get(escrow_company_id)

    async def get_lender(self, lender_id: str) -> LenderResult | None:
        return self.lenders.get(lender_id)

    async def list_parties(self, deal_id: str, role: str | None = None) -> list[DealPartyResult]:
        return [
            p for p in self.parties if p.deal_id == deal_id and (role is None or p.role == role)
        ]


class FakeEmailTemplateRepository:
    def __init__(self, templates: Sequence[EmailTemplateResult] = ()) -> None:
        self.templates: dict[str, EmailTemplateResult] = {t.key: t for t in templates}

    def add(self, template: EmailTemplateResult) -> None:
        self.templates[template.key] = template

    async def get_active_by_key(self, key: str) -> EmailTemplateResult | None:
        template = self.templates.get(key)
        return template if template is not None and template.is_active else None


class FakeEmailLogRepository:
    """Ledger with the same uniqueness rule as the table (None context dates collide)."""

    def __init__(self) -> None:
        self.rows: dict[tuple[str, str, date | None], EmailLogResult] = {}

    def statuses(self) -> dict[tuple[str, str, date | None], str]:
        return {k: v.status for k, v in self.rows.items()}

    async def get_by_key(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        return self.rows.get((deal_id, template_key, context_date))

    async def record(
        self,
        deal_id: str,
        template_key: str,
        context_date: date | None,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> EmailLogResult | None:
        key = (deal_id, template_key, context_date)
        if key in self.rows:
            return None
        row = EmailLogResult(
            id=next_id("log"),
            deal_id=deal_id,
            template_key=template_key,
            context_date=context_date,
            status=status,
            recipient_emails=recipient_emails,
            error_message=error_message,
        )
        self.rows[key] = row
        return row

    async def claim(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        return await self.record(
            deal_id, template_key, context_date, EmailLogStatus.PENDING.value
        )

    async def finalize(
        self,
        log_id: str,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> None:
        for key, row in self.rows.items():
            if row.id == log_id:
                self.rows[key] = dataclasses.replace(
                    row,
                    status=status,
                    recipient_emails=recipient_emails,
                    error_message=error_message,
                )
                return


class FakeAlertRepository:
    def __init__(self) -> None:
        self.alerts: list[dict[str, str]] = []

    async def create_alert(self, deal_id: str, alert_type: str, level: str, message: str) -> None:
        self.alerts.append(
            {"deal_id": deal_id, "type": alert_type, "level": level, "message": message}
        )


class FakeTimelineRepository:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["event_type"] == event_type]

    async def record(
        self,
        deal_id: str,
        event_type: str,
        description: str,
        metadata: dict[str, Any] | None = None,
        created_by: str | None = None,
    ) -> None:
        self.events.append(
            {
                "deal_id": deal_id,
                "event_type": event_type,
                "description": description,
                "metadata": metadata,
                "created_by": created_by,
            }
        )


class FakeTaskRepository:
    def __init__(self) -> None:
        self.tasks: list[TaskResult] = []

    async def create_task(
        self,
        deal_id: str,
        title: str,
        *,
        description: str | None = None,
        due_date: date | None = None,
        created_by: str | None = None,
    ) -> TaskResult:
        task = TaskResult(
            id=next_id("task"),
            deal_id=deal_id,
            title=title,
            description=description,
            due_date=due_date,
            completed_at=None,
            created_by=created_by,
            created_at=CREATED_AT,
        )
        self.tasks.append(task)
        return task


class FakeWorkflowRepository:
    def __init__(self) -> None:
        self.definitions: dict[str, WorkflowDefinitionResult] = {}
        self.steps: dict[str, WorkflowStepResult] = {}
        self.runs: dict[str, WorkflowRunResult] = {}
        self.run_steps: dict[str, WorkflowRunStepResult] = {}

    def add_definition(
        self, side: str, steps: Sequence[WorkflowStepResult], *, definition_id: str = "wf-1"
    ) -> WorkflowDefinitionResult:
        definition = WorkflowDefinitionResult(
            id=definition_id,
            name=f"{side} escrow workflow",
            side=side,
            trigger_type="in_escrow",
            is_active=True,
        )
        self.definitions[definition.id] = definition
        for step in steps:
            self.steps[step.id] = dataclasses.replace(step, workflow_definition_id=definition.id)
        return definition

    def _due(self, run_step: WorkflowRunStepResult) -> DueRunStep:
        run = self.runs[run_step.workflow_run_id]
        return DueRunStep(
            run_step=run_step, step=self.steps[run_step.workflow_step_id], deal_id=run.deal_id
        )

    async def list_active_definitions(
        self, side: str, trigger_type: str
    ) -> list[WorkflowDefinitionResult]:
        return [
            d
            for d in self.definitions.values()
            if d.is_active and d.side == side and d.trigger_type == trigger_type
        ]

    async def list_steps(self, workflow_definition_id: str) -> list[WorkflowStepResult]:
        steps = [s for s in self.steps.values() if s.workflow_definition_id == workflow_definition_id]
        return sorted(steps, key=lambda s: s.step_order)

    async def get_run(self, deal_id: str, workflow_definition_id: str) -> WorkflowRunResult | None:
        for run in self.runs.values():
            if run.deal_id == deal_id and run.workflow_definition_id == workflow_definition_id:
                return run
        return None

    async def create_run(
        self, deal_id: str, workflow_definition_id: str, started_at: datetime
    ) -> WorkflowRunResult:
        run = WorkflowRunResult(
            id=next_id("run"),
            deal_id=deal_id,
            workflow_definition_id=workflow_definition_id,
            status=WorkflowRunStatus.ACTIVE.value,
            started_at=started_at,
        )
        self.runs[run.id] = run
        return run

    async def create_run_step(
        self, workflow_run_id: str, workflow_step_id: str, scheduled_for: datetime
    ) -> WorkflowRunStepResult:
        run_step = WorkflowRunStepResult(
            id=next_id("rs"),
            workflow_run_id=workflow_run_id,
            workflow_step_id=workflow_step_id,
            scheduled_for=scheduled_for,
            status=WorkflowRunStepStatus.PENDING.value,
        )
        self.run_steps[run_step.id] = run_step
        return run_step

    async def list_pending_steps_for_deal(self, deal_id: str) -> list[DueRunStep]:
        return [
            self._due(rs)
            for rs in self.run_steps.values()
            if rs.status == WorkflowRunStepStatus.PENDING
            and self.runs[rs.workflow_run_id].deal_id == deal_id
            and self.runs[rs.workflow_run_id].status == WorkflowRunStatus.ACTIVE
        ]

    async def reschedule_run_step(self, run_step_id: str, scheduled_for: datetime) -> None:
        self.run_steps[run_step_id] = dataclasses.replace(
            self.run_steps[run_step_id], scheduled_for=scheduled_for
        )

    async def list_due_steps(self, now: datetime, limit: int | None = None) -> list[DueRunStep]:
        due = sorted(
            (
                rs
                for rs in self.run_steps.values()
                if rs.status == WorkflowRunStepStatus.PENDING
                and rs.scheduled_for <= now
                and self.runs[rs.workflow_run_id].status == WorkflowRunStatus.ACTIVE
            ),
            key=lambda rs: rs.scheduled_for,
        )
        return [self._due(rs) for rs in due[:limit]]

    async def mark_run_step(
        self,
        run_step_id: str,
        status: str,
        executed_at: datetime,
        error_message: str | None = None,
    ) -> None:
        self.run_steps[run_step_id] = dataclasses.replace(
            self.run_steps[run_step_id],
            status=status,
            executed_at=executed_at,
            error_message=error_message,
        )

    async def count_pending_steps(self, workflow_run_id: str) -> int:
        return sum(
            1
            for rs in self.run_steps.values()
            if rs.workflow_run_id == workflow_run_id and rs.status == WorkflowRunStepStatus.PENDING
        )

    async def complete_run(self, workflow_run_id: str, completed_at: datetime) -> None:
        self.runs[workflow_run_id] = dataclasses.replace(
            self.runs[workflow_run_id],
            status=WorkflowRunStatus.COMPLETED.value,
            completed_at=completed_at,
        )


class RecordingTransport:
    """IMailTransport that records calls and returns a fixed result."""

    def __init__(self, result: SendResult | None = None) -> None:
        self.result = result or SendResult(success=True, message_id="msg-1")
        self.sent: list[dict[str, Any]] = []

    async def send(
        self,
        recipients: list[Recipient],
        subject: str,
        html: str,
        text: str | None = None,
    ) -> SendResult:
        self.sent.append({"recipients": recipients, "subject": subject, "html": html, "text": text})
        return self.result
