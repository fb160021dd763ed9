"""Deal event ingestion: apply the event, start workflows, send immediate emails."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from dealflow.application.dtos.deal import DealEvent, DealEventOutcome
from dealflow.domain.enums import DealEventType, DealStatus
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from dealflow.application.interfaces.services import IWorkflowEngine
    from dealflow.application.use_cases.notifications.rules import NotificationRuleEngine

logger = get_logger(__name__)


class DealEventService:
    """Processes one business event for a deal.

    Order matters: the deal update is persisted first, so workflows started
    for a deal entering escrow and the immediate rules both see the new
    state.
    """

    def __init__(
        self,
        workflow_engine: IWorkflowEngine,
        rule_engine: NotificationRuleEngine,
    ) -> None:
        self._engine = workflow_engine
        self._rules = rule_engine

    @traced("deal_events.process")
    async def process(
        self, event: DealEvent, *, now: datetime | None = None
    ) -> DealEventOutcome:
        """Apply the event and run its follow-ups.

        Raises:
            ResourceNotFoundException: Deal does not exist.
            ValidationException: Event data cannot be applied to the deal.
        """
        add_span_attributes(deal_id=event.deal_id, event_type=event.event_type)
        deal = await self._engine.handle_deal_event(event, now=now)

        workflows_started = 0
        if (
            event.event_type == DealEventType.STATUS_CHANGED
            and deal.status == DealStatus.IN_ESCROW
        ):
            runs = await self._engine.start_workflows_for_deal(deal.id, now=now)
            workflows_started = len(runs)

        batch = await self._rules.run_immediate_rules_for_deal(deal.id)
        logger.info(
            "Processed %s for deal %s (workflows started: %d, emails sent: %d)",
            event.event_type,
            deal.id,
            workflows_started,
            batch.sent,
        )
        return DealEventOutcome(
            deal=deal,
            workflows_started=workflows_started,
            emails_sent=batch.sent,
            emails_skipped=batch.skipped,
            emails_failed=batch.failed,
        )
