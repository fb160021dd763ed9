"""DTOs for workflow definitions, runs and run steps (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from dealflow.application.dtos.step_action import (
    CreateTaskAction,
    SendEmailAction,
    UpdateFieldAction,
    WaitForEventAction,
)


@dataclass(frozen=True)
class WorkflowDefinitionResult:
    id: str
    name: str
    side: str
    trigger_type: str
    is_active: bool
    description: str | None = None


@dataclass(frozen=True)
class WorkflowStepResult:
    """Step definition. ``action`` is the parsed action_config (None if invalid)."""

    id: str
    workflow_definition_id: str
    step_order: int
    name: str
    relative_to: str
    offset_days: int
    action_type: str
    action_config: dict[str, Any] | None
    action: SendEmailAction | CreateTaskAction | UpdateFieldAction | WaitForEventAction | None
    description: str | None = None


@dataclass(frozen=True)
class WorkflowRunResult:
    id: str
    deal_id: str
    workflow_definition_id: str
    status: str
    started_at: datetime
    completed_at: datetime | None = None


@dataclass(frozen=True)
class WorkflowRunStepResult:
    id: str
    workflow_run_id: str
    workflow_step_id: str
    scheduled_for: datetime
    status: str
    executed_at: datetime | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class DueRunStep:
    """A pending run step joined with its step definition and the run's deal."""

    run_step: WorkflowRunStepResult
    step: WorkflowStepResult
    deal_id: str


@dataclass(frozen=True)
class StepExecutionStats:
    """Outcome of one due-step executor pass."""

    selected: int = 0
    completed: int = 0
    errored: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)


@dataclass
class SchedulerTickResult:
    """One scheduler tick: due steps plus (optionally) the daily email rules."""

    steps: StepExecutionStats
    email_rules: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "selected": self.steps.selected,
            "completed": self.steps.completed,
            "errored": self.steps.errored,
        }
        if self.email_rules is not None:
            out["email_rules"] = self.email_rules
        return out
