"""Scheduler entry points: execute due workflow steps and run daily email rules.

Shared by the manual HTTP trigger, the cron endpoint and the CLI scripts.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Protocol

from dealflow.application.dtos.notification import DailyRulesStats
from dealflow.application.dtos.workflow import SchedulerTickResult, StepExecutionStats
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.telemetry.tracing import add_span_attributes, traced
from dealflow.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from dealflow.application.services.date_service import DateService
    from dealflow.application.use_cases.notifications.rules import NotificationRuleEngine

logger = get_logger(__name__)


class IDueStepRunner(Protocol):
    async def run_due_workflow_steps(self, now: datetime | None = None) -> StepExecutionStats:
        ...


class WorkflowScheduler:
    """Runs one scheduler pass against the workflow engine and rule engine."""

    def __init__(
        self,
        step_runner: IDueStepRunner,
        rule_engine: NotificationRuleEngine | None,
        date_service: DateService,
    ) -> None:
        self._step_runner = step_runner
        self._rule_engine = rule_engine
        self._dates = date_service

    @traced("scheduler.run_workflow_steps")
    async def run_workflow_steps(self, now: datetime | None = None) -> StepExecutionStats:
        now = now or utc_now()
        add_span_attributes(now=now.isoformat())
        return await self._step_runner.run_due_workflow_steps(now)

    @traced("scheduler.run_daily_email_rules")
    async def run_daily_email_rules(self, today: date | None = None) -> DailyRulesStats:
        if self._rule_engine is None:
            raise RuntimeError("WorkflowScheduler has no rule engine configured")
        today = today or self._dates.today()
        add_span_attributes(today=today.isoformat())
        return await self._rule_engine.run_daily_rules(today)

    async def tick(
        self, now: datetime | None = None, *, include_email_rules: bool = False
    ) -> SchedulerTickResult:
        """Execute due steps; also run daily email rules when asked."""
        now = now or utc_now()
        steps = await self.run_workflow_steps(now)
        email_rules = None
        if include_email_rules:
            stats = await self.run_daily_email_rules(self._dates.today(now))
            email_rules = stats.to_dict()
        logger.info(
            "Scheduler tick at %s: selected=%d completed=%d errored=%d",
            now.isoformat(),
            steps.selected,
            steps.completed,
            steps.errored,
        )
        return SchedulerTickResult(steps=steps, email_rules=email_rules)
