"""Workflow repository: definitions, steps, runs and run steps."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.application.dtos.workflow import (
    DueRunStep,
    WorkflowDefinitionResult,
    WorkflowRunResult,
    WorkflowRunStepResult,
    WorkflowStepResult,
)
from dealflow.infrastructure.persistence.models.workflow import (
    WorkflowDefinition,
    WorkflowRun,
    WorkflowRunStep,
    WorkflowStep,
)
from dealflow.infrastructure.persistence.repositories.base import BaseRepository
from dealflow.shared.enums import WorkflowRunStatus, WorkflowRunStepStatus


def _definition_result(d: WorkflowDefinition) -> WorkflowDefinitionResult:
    return WorkflowDefinitionResult(
        id=d.id,
        name=d.name,
        side=d.side,
        trigger_type=d.trigger_type,
        is_active=d.is_active,
        description=d.description,
    )


def _step_result(s: WorkflowStep) -> WorkflowStepResult:
    return WorkflowStepResult(
        id=s.id,
        workflow_definition_id=s.workflow_definition_id,
        step_order=s.step_order,
        name=s.name,
        relative_to=s.relative_to,
        offset_days=s.offset_days,
        action_type=s.action_type,
        action_config=s.action_config,
        action=s.action,
        description=s.description,
    )


def _run_result(r: WorkflowRun) -> WorkflowRunResult:
    return WorkflowRunResult(
        id=r.id,
        deal_id=r.deal_id,
        workflow_definition_id=r.workflow_definition_id,
        status=r.status,
        started_at=r.started_at,
        completed_at=r.completed_at,
    )


def _run_step_result(rs: WorkflowRunStep) -> WorkflowRunStepResult:
    return WorkflowRunStepResult(
        id=rs.id,
        workflow_run_id=rs.workflow_run_id,
        workflow_step_id=rs.workflow_step_id,
        scheduled_for=rs.scheduled_for,
        status=rs.status,
        executed_at=rs.executed_at,
        error_message=rs.error_message,
    )


class WorkflowRepository(BaseRepository[WorkflowRun]):
    """Workflow repository. Implements IWorkflowRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowRun)

    async def list_active_definitions(
        self, side: str, trigger_type: str
    ) -> list[WorkflowDefinitionResult]:
        result = await self.db.execute(
            select(WorkflowDefinition)
            .where(
                WorkflowDefinition.side == side,
                WorkflowDefinition.trigger_type == trigger_type,
                WorkflowDefinition.is_active.is_(True),
            )
            .order_by(WorkflowDefinition.created_at)
        )
        return [_definition_result(d) for d in result.scalars().all()]

    async def list_steps(self, workflow_definition_id: str) -> list[WorkflowStepResult]:
        result = await self.db.execute(
            select(WorkflowStep)
            .where(WorkflowStep.workflow_definition_id == workflow_definition_id)
            .order_by(WorkflowStep.step_order.asc())
        )
        return [_step_result(s) for s in result.scalars().all()]

    async def get_run(
        self, deal_id: str, workflow_definition_id: str
    ) -> WorkflowRunResult | None:
        result = await self.db.execute(
            select(WorkflowRun).where(
                WorkflowRun.deal_id == deal_id,
                WorkflowRun.workflow_definition_id == workflow_definition_id,
            )
        )
        run = result.scalar_one_or_none()
        return _run_result(run) if run else None

    async def create_run(
        self, deal_id: str, workflow_definition_id: str, started_at: datetime
    ) -> WorkflowRunResult:
        run = WorkflowRun(
            deal_id=deal_id,
            workflow_definition_id=workflow_definition_id,
            status=WorkflowRunStatus.ACTIVE.value,
            started_at=started_at,
        )
        return _run_result(await self.create_in_savepoint(run))

    async def create_run_step(
        self, workflow_run_id: str, workflow_step_id: str, scheduled_for: datetime
    ) -> WorkflowRunStepResult:
        run_step = WorkflowRunStep(
            workflow_run_id=workflow_run_id,
            workflow_step_id=workflow_step_id,
            scheduled_for=scheduled_for,
            status=WorkflowRunStepStatus.PENDING.value,
        )
        return _run_step_result(await self.create_in_savepoint(run_step))

    def _pending_joined(self):
        return (
            select(WorkflowRunStep, WorkflowStep, WorkflowRun.deal_id)
            .join(WorkflowStep, WorkflowStep.id == WorkflowRunStep.workflow_step_id)
            .join(WorkflowRun, WorkflowRun.id == WorkflowRunStep.workflow_run_id)
            .where(
                WorkflowRunStep.status == WorkflowRunStepStatus.PENDING.value,
                WorkflowRun.status == WorkflowRunStatus.ACTIVE.value,
            )
        )

    async def list_pending_steps_for_deal(self, deal_id: str) -> list[DueRunStep]:
        result = await self.db.execute(
            self._pending_joined()
            .where(WorkflowRun.deal_id == deal_id)
            .order_by(WorkflowRunStep.scheduled_for)
        )
        return [
            DueRunStep(run_step=_run_step_result(rs), step=_step_result(s), deal_id=d)
            for rs, s, d in result.all()
        ]

    async def reschedule_run_step(self, run_step_id: str, scheduled_for: datetime) -> None:
        await self.db.execute(
            update(WorkflowRunStep)
            .where(
                WorkflowRunStep.id == run_step_id,
                WorkflowRunStep.status == WorkflowRunStepStatus.PENDING.value,
            )
            .values(scheduled_for=scheduled_for)
        )

    async def list_due_steps(self, now: datetime, limit: int | None = None) -> list[DueRunStep]:
        q = (
            self._pending_joined()
            .where(WorkflowRunStep.scheduled_for <= now)
            .order_by(WorkflowRunStep.scheduled_for, WorkflowRunStep.id)
        )
        if limit is not None:
            q = q.limit(limit)
        result = await self.db.execute(q)
        return [
            DueRunStep(run_step=_run_step_result(rs), step=_step_result(s), deal_id=d)
            for rs, s, d in result.all()
        ]

    async def mark_run_step(
        self,
        run_step_id: str,
        status: str,
        executed_at: datetime,
        error_message: str | None = None,
    ) -> None:
        await self.db.execute(
            update(WorkflowRunStep)
            .where(WorkflowRunStep.id == run_step_id)
            .values(status=status, executed_at=executed_at, error_message=error_message)
        )

    async def count_pending_steps(self, workflow_run_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(WorkflowRunStep)
            .where(
                WorkflowRunStep.workflow_run_id == workflow_run_id,
                WorkflowRunStep.status == WorkflowRunStepStatus.PENDING.value,
            )
        )
        return int(result.scalar_one())

    async def complete_run(self, workflow_run_id: str, completed_at: datetime) -> None:
        await self.db.execute(
            update(WorkflowRun)
            .where(
                WorkflowRun.id == workflow_run_id,
                WorkflowRun.status == WorkflowRunStatus.ACTIVE.value,
            )
            .values(status=WorkflowRunStatus.COMPLETED.value, completed_at=completed_at)
        )
