"""Workflow engine: run instantiation, event-driven advancement and step execution.

Implements IWorkflowEngine. A deal entering escrow gets one run per matching
active definition, with one pending run step per definition step scheduled
relative to a deal date. Business events update the deal and may reschedule
``wait_for_event`` steps; the scheduler executes steps once they are due.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dealflow.application.dtos.deal import DealEvent, DealResult
from dealflow.application.dtos.step_action import (
    CreateTaskAction,
    SendEmailAction,
    UpdateFieldAction,
    WaitForEventAction,
)
from dealflow.application.dtos.workflow import (
    DueRunStep,
    StepExecutionStats,
    WorkflowRunResult,
)
from dealflow.application.interfaces.repositories import (
    IDealRepository,
    ITaskRepository,
    ITimelineRepository,
    IWorkflowRepository,
)
from dealflow.application.interfaces.services import INotificationDispatcher
from dealflow.application.services.date_service import DateService
from dealflow.domain.enums import (
    EVENT_TO_WAIT_EVENT,
    DealEventType,
    DealStatus,
    RelativeTo,
    WorkflowTriggerType,
)
from dealflow.domain.exceptions import ResourceNotFoundException, ValidationException
from dealflow.shared.enums import TimelineEventType, WorkflowRunStepStatus
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.utils.datetime import ensure_utc, parse_datetime, utc_now

logger = get_logger(__name__)

StepScope = Callable[[], AsyncContextManager[Any]]


def calculate_scheduled_date(
    deal: DealResult,
    relative_to: str | None,
    offset_days: int,
    *,
    now: datetime | None = None,
) -> datetime:
    """Anchor date for relative_to plus offset_days calendar days.

    coe_date and inspection_deadline fall back to ``now`` when unset;
    deal_created uses the deal's created_at; anything else uses ``now``.
    """
    now = now or utc_now()
    match relative_to:
        case RelativeTo.COE_DATE:
            anchor = deal.coe_date or now
        case RelativeTo.INSPECTION_DEADLINE:
            anchor = deal.inspection_deadline or now
        case RelativeTo.DEAL_CREATED:
            anchor = deal.created_at
        case _:
            anchor = now
    return ensure_utc(anchor) + timedelta(days=offset_days or 0)


def _event_datetime(data: dict[str, Any], key: str) -> datetime | None:
    raw = data.get(key)
    if not raw:
        return None
    try:
        return parse_datetime(raw)
    except (TypeError, ValueError) as e:
        raise ValidationException(f"Invalid datetime for '{key}': {raw!r}", field=key) from e


class WorkflowEngine:
    """Starts runs for deals, applies deal events and executes due steps."""

    def __init__(
        self,
        deal_repo: IDealRepository,
        workflow_repo: IWorkflowRepository,
        timeline_repo: ITimelineRepository,
        task_repo: ITaskRepository,
        dispatcher: INotificationDispatcher,
        *,
        date_service: DateService | None = None,
        step_scope: StepScope | None = None,
    ) -> None:
        self.deal_repo = deal_repo
        self.workflow_repo = workflow_repo
        self.timeline_repo = timeline_repo
        self.task_repo = task_repo
        self.dispatcher = dispatcher
        self.dates = date_service or DateService()
        # Each due step runs inside one scope (a SAVEPOINT in production).
        self._step_scope: StepScope = step_scope or contextlib.nullcontext

    calculate_scheduled_date = staticmethod(calculate_scheduled_date)

    async def _get_deal(self, deal_id: str) -> DealResult:
        deal = await self.deal_repo.get_by_id(deal_id)
        if deal is None:
            raise ResourceNotFoundException("deal", deal_id)
        return deal

    async def _record_timeline(
        self, deal_id: str, event_type: str, description: str, metadata: dict[str, Any]
    ) -> None:
        """Audit write; failures are logged, never raised."""
        try:
            await self.timeline_repo.record(deal_id, event_type, description, metadata)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to write %s timeline event for deal %s: %s", event_type, deal_id, e
            )

    # Run instantiation

    async def start_workflows_for_deal(
        self, deal_id: str, *, now: datetime | None = None
    ) -> list[WorkflowRunResult]:
        """Create runs for active in_escrow definitions matching the deal's side.

        No-op unless the deal is in escrow. Definitions that already have a
        run for this deal are skipped.
        """
        now = now or utc_now()
        deal = await self._get_deal(deal_id)
        if deal.status != DealStatus.IN_ESCROW:
            return []

        definitions = await self.workflow_repo.list_active_definitions(
            deal.side, WorkflowTriggerType.IN_ESCROW.value
        )
        runs: list[WorkflowRunResult] = []
        for definition in definitions:
            if await self.workflow_repo.get_run(deal.id, definition.id) is not None:
                logger.info(
                    "Workflow %s already started for deal %s", definition.id, deal.id
                )
                continue
            try:
                run = await self.workflow_repo.create_run(deal.id, definition.id, now)
            except IntegrityError:
                logger.info(
                    "Workflow %s started concurrently for deal %s", definition.id, deal.id
                )
                continue
            for step in await self.workflow_repo.list_steps(definition.id):
                scheduled_for = calculate_scheduled_date(
                    deal, step.relative_to, step.offset_days, now=now
                )
                try:
                    await self.workflow_repo.create_run_step(run.id, step.id, scheduled_for)
                except SQLAlchemyError as e:
                    logger.error(
                        "Failed to create run step for step %s (run %s): %s",
                        step.id,
                        run.id,
                        e,
                    )
            runs.append(run)

        if runs:
            await self._record_timeline(
                deal.id,
                TimelineEventType.WORKFLOW_STARTED.value,
                f"Started {len(runs)} workflow(s) for deal",
                {
                    "message": f"Started {len(runs)} workflow(s) for deal",
                    "workflows": [r.workflow_definition_id for r in runs],
                    "workflow_run_ids": [r.id for r in runs],
                },
            )
        logger.info("Started %d workflow(s) for deal %s", len(runs), deal.id)
        return runs

    # Deal events

    def _event_update(self, event: DealEvent, now: datetime) -> dict[str, Any]:
        """Deal columns written by an event type (empty for unknown types)."""
        data = event.data or {}
        match event.event_type:
            case DealEventType.SET_EMD_RECEIVED:
                return {"emd_received_at": now}
            case DealEventType.SET_INSPECTION_DEADLINE:
                deadline = _event_datetime(data, "deadline")
                return {"inspection_deadline": deadline} if deadline else {}
            case DealEventType.MARK_INSPECTION_CONTINGENCY_REMOVED:
                return {"inspection_contingency_removed_at": now}
            case DealEventType.SET_COE_DATE:
                coe_date = _event_datetime(data, "coe_date")
                return {"coe_date": coe_date} if coe_date else {}
            case DealEventType.SET_INSPECTION_SCHEDULED:
                scheduled_at = _event_datetime(data, "scheduled_at") or now
                return {"inspection_scheduled_at": scheduled_at}
            case DealEventType.STATUS_CHANGED:
                status = data.get("status")
                if not status:
                    return {}
                if status not in DealStatus.values():
                    raise ValidationException(f"Invalid deal status: {status}", field="status")
                return {"status": status}
            case _:
                return {}

    async def handle_deal_event(
        self, event: DealEvent, *, now: datetime | None = None
    ) -> DealResult:
        """Apply the event's deal update, advance waiting steps, and audit it.

        Returns the deal as it is after the update.
        """
        now = now or utc_now()
        deal = await self._get_deal(event.deal_id)
        update = self._event_update(event, now)
        if update:
            deal = await self.deal_repo.update_fields(deal.id, update)

        await self.advance_wait_for_event_steps(deal, event.event_type, now=now)

        await self._record_timeline(
            deal.id,
            TimelineEventType.DEAL_EVENT.value,
            f"Deal event: {event.event_type}",
            {"event_type": event.event_type, "data": event.data},
        )
        return deal

    async def advance_wait_for_event_steps(
        self, deal: DealResult, event_type: str, *, now: datetime | None = None
    ) -> int:
        """Reschedule pending wait_for_event steps released by this event.

        Only scheduled_for changes; the scheduler executes them once due.
        Returns the number of run steps rescheduled.
        """
        wait_event = EVENT_TO_WAIT_EVENT.get(event_type)
        if wait_event is None:
            return 0
        rescheduled = 0
        for due in await self.workflow_repo.list_pending_steps_for_deal(deal.id):
            action = due.step.action
            if not isinstance(action, WaitForEventAction) or action.event_type != wait_event:
                continue
            scheduled_for = calculate_scheduled_date(
                deal, due.step.relative_to, due.step.offset_days, now=now
            )
            await self.workflow_repo.reschedule_run_step(due.run_step.id, scheduled_for)
            rescheduled += 1
        if rescheduled:
            logger.info(
                "Rescheduled %d step(s) waiting for %s on deal %s",
                rescheduled,
                wait_event,
                deal.id,
            )
        return rescheduled

    # Step execution

    async def run_due_workflow_steps(self, now: datetime | None = None) -> StepExecutionStats:
        """Execute every pending step due at ``now``; failures mark the step error."""
        now = now or utc_now()
        due_steps = await self.workflow_repo.list_due_steps(now)
        completed = 0
        errors: list[dict[str, str]] = []
        touched_runs: list[str] = []

        for due in due_steps:
            try:
                async with self._step_scope():
                    await self.execute_workflow_step(due, now)
                completed += 1
            except Exception as e:
                logger.exception(
                    "Failed to execute workflow step %s (deal %s)", due.run_step.id, due.deal_id
                )
                await self.workflow_repo.mark_run_step(
                    due.run_step.id, WorkflowRunStepStatus.ERROR.value, now, str(e) or type(e).__name__
                )
                errors.append({"run_step_id": due.run_step.id, "error": str(e)})
            if due.run_step.workflow_run_id not in touched_runs:
                touched_runs.append(due.run_step.workflow_run_id)

        for run_id in touched_runs:
            if await self.workflow_repo.count_pending_steps(run_id) == 0:
                await self.workflow_repo.complete_run(run_id, now)
                logger.info("Workflow run %s completed", run_id)

        stats = StepExecutionStats(
            selected=len(due_steps),
            completed=completed,
            errored=len(errors),
            errors=errors,
        )
        if due_steps:
            logger.info(
                "Due workflow steps: selected=%d completed=%d errored=%d",
                stats.selected,
                stats.completed,
                stats.errored,
            )
        return stats

    async def execute_workflow_step(self, due: DueRunStep, now: datetime) -> None:
        """Run the step's action and mark it completed. Raises on failure."""
        step = due.step
        action = step.action
        if action is None:
            raise ValidationException(
                f"Invalid action_config for step {step.id}", field="action_config"
            )
        await self._get_deal(due.deal_id)

        match action:
            case SendEmailAction():
                result = await self.dispatcher.dispatch(due.deal_id, action.template_name)
                if result.sent:
                    logger.info("Workflow sent email %s", action.template_name)
                elif result.skipped:
                    logger.info(
                        "Workflow skipped email %s: %s", action.template_name, result.reason
                    )
                else:
                    logger.error(
                        "Workflow failed to send email %s: %s",
                        action.template_name,
                        result.error,
                    )
            case CreateTaskAction():
                due_date = None
                if action.due_date_offset_days is not None:
                    due_date = self.dates.add_days(
                        self.dates.today(now), action.due_date_offset_days
                    )
                task = await self.task_repo.create_task(
                    due.deal_id,
                    action.title,
                    description=action.description,
                    due_date=due_date,
                )
                await self._record_timeline(
                    due.deal_id,
                    TimelineEventType.TASK_CREATED.value,
                    f"Task created: {action.title}",
                    {"task_id": task.id, "title": action.title},
                )
            case UpdateFieldAction():
                await self.deal_repo.set_field(due.deal_id, action.field, action.value)
                await self._record_timeline(
                    due.deal_id,
                    TimelineEventType.FIELD_UPDATED.value,
                    f"Field updated: {action.field}",
                    {"field": action.field, "value": action.value},
                )
            case WaitForEventAction():
                pass

        await self.workflow_repo.mark_run_step(
            due.run_step.id, WorkflowRunStepStatus.COMPLETED.value, now
        )
        await self._record_timeline(
            due.deal_id,
            TimelineEventType.STEP_EXECUTED.value,
            f"Workflow step executed: {step.name}",
            {"step_id": step.id, "step_name": step.name, "action_type": step.action_type},
        )
