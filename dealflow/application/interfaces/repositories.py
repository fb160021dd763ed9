"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from dealflow.application.dtos.deal import (
        AgentProfileResult,
        DealPartyResult,
        DealResult,
        EscrowCompanyResult,
        LenderResult,
    )
    from dealflow.application.dtos.notification import EmailLogResult, EmailTemplateResult
    from dealflow.application.dtos.task import TaskResult
    from dealflow.application.dtos.workflow import (
        DueRunStep,
        WorkflowDefinitionResult,
        WorkflowRunResult,
        WorkflowRunStepResult,
        WorkflowStepResult,
    )


# Deal repository interface
class IDealRepository(Protocol):
    """Protocol for deal repository (DIP)."""

    async def get_by_id(self, deal_id: str) -> DealResult | None:
        """Return deal by id or None."""

    async def list_by_statuses(self, statuses: Sequence[str]) -> list[DealResult]:
        """Return all deals whose status is in statuses."""

    async def update_fields(self, deal_id: str, values: dict[str, Any]) -> DealResult:
        """Write typed column values; raise ResourceNotFoundException if missing."""

    async def set_field(self, deal_id: str, field: str, value: Any) -> DealResult:
        """Write one whitelisted column, coercing ISO strings for date columns.

        Raises ValidationException for unknown columns or unparsable values.
        """


# Recipient lookups
class IPartyDirectory(Protocol):
    """Lookups for people and companies attached to a deal."""

    async def get_agent_profile(self, agent_id: str) -> AgentProfileResult | None:
        ...

    async def get_escrow_company(self, escrow_company_id: str) -> EscrowCompanyResult | None:
        ...

    async def get_lender(self, lender_id: str) -> LenderResult | None:
        ...

    async def list_parties(
        self, deal_id: str, role: str | None = None
    ) -> list[DealPartyResult]:
        """Return deal parties (optionally filtered by role) in insertion order."""


# Workflow repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow definitions, runs and run steps."""

    async def list_active_definitions(
        self, side: str, trigger_type: str
    ) -> list[WorkflowDefinitionResult]:
        """Return active definitions matching side and trigger type."""

    async def list_steps(self, workflow_definition_id: str) -> list[WorkflowStepResult]:
        """Return steps of a definition ordered by step_order."""

    async def get_run(
        self, deal_id: str, workflow_definition_id: str
    ) -> WorkflowRunResult | None:
        """Return the run of a definition for a deal, if any."""

    async def create_run(
        self, deal_id: str, workflow_definition_id: str, started_at: datetime
    ) -> WorkflowRunResult:
        """Create an active run."""

    async def create_run_step(
        self, workflow_run_id: str, workflow_step_id: str, scheduled_for: datetime
    ) -> WorkflowRunStepResult:
        """Create a pending run step."""

    async def list_pending_steps_for_deal(self, deal_id: str) -> list[DueRunStep]:
        """Return pending run steps of the deal's active runs, joined to step definitions."""

    async def reschedule_run_step(self, run_step_id: str, scheduled_for: datetime) -> None:
        """Set scheduled_for on a pending run step."""

    async def list_due_steps(self, now: datetime, limit: int | None = None) -> list[DueRunStep]:
        """Return pending run steps with scheduled_for <= now, oldest first."""

    async def mark_run_step(
        self,
        run_step_id: str,
        status: str,
        executed_at: datetime,
        error_message: str | None = None,
    ) -> None:
        """Move a run step to a terminal status."""

    async def count_pending_steps(self, workflow_run_id: str) -> int:
        """Return the number of pending steps left in a run."""

    async def complete_run(self, workflow_run_id: str, completed_at: datetime) -> None:
        """Mark an active run completed."""


# Email templates and ledger
class IEmailTemplateRepository(Protocol):
    async def get_active_by_key(self, key: str) -> EmailTemplateResult | None:
        """Return the active template with this key, or None."""


class IEmailLogRepository(Protocol):
    """Transaction email ledger (one row per deal, template key, context date)."""

    async def get_by_key(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        """Return the ledger row for the dedup key (NULL context dates compare equal)."""

    async def claim(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        """Insert a pending row for the key; None when the key is already taken."""

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
        """Insert a finished row; None when the key is already taken."""

    async def finalize(
        self,
        log_id: str,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> None:
        """Update a claimed row with the send outcome."""


class IAlertRepository(Protocol):
    async def create_alert(self, deal_id: str, alert_type: str, level: str, message: str) -> None:
        """Create an unread alert for the deal."""


class ITaskRepository(Protocol):
    async def create_task(
        self,
        deal_id: str,
        title: str,
        *,
        description: str | None = None,
        due_date: date | None = None,
        created_by: str | None = None,
    ) -> TaskResult:
        """Create a deal task and return the result DTO."""


class ITimelineRepository(Protocol):
    async def record(
        self,
        deal_id: str,
        event_type: str,
        description: str,
        metadata: dict[str, Any] | None = None,
        created_by: str | None = None,
    ) -> None:
        """Append an audit record to the deal timeline."""
