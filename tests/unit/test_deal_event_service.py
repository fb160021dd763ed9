"""DealEventService orchestration with mocked engines."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from dealflow.application.dtos.deal import DealEvent
from dealflow.application.dtos.notification import BatchDispatchResult, DispatchResult
from dealflow.application.use_cases.deal_events import DealEventService
from dealflow.domain.exceptions import ResourceNotFoundException
from tests.fakes import make_deal

NOW = datetime(2024, 11, 27, 18, 0, tzinfo=UTC)


@pytest.fixture
def workflow_engine() -> AsyncMock:
    engine = AsyncMock()
    engine.handle_deal_event.return_value = make_deal()
    engine.start_workflows_for_deal.return_value = [object(), object()]
    return engine


@pytest.fixture
def rule_engine() -> AsyncMock:
    rules = AsyncMock()
    batch = BatchDispatchResult()
    batch.add(DispatchResult.delivered())
    batch.add(DispatchResult.skip("Already sent (log id: log-1)"))
    rules.run_immediate_rules_for_deal.return_value = batch
    return rules


async def test_entering_escrow_starts_workflows_then_runs_immediate_rules(
    workflow_engine, rule_engine
):
    service = DealEventService(workflow_engine, rule_engine)
    event = DealEvent("deal-1", "status-changed", {"status": "in_escrow"})

    outcome = await service.process(event, now=NOW)

    workflow_engine.handle_deal_event.assert_awaited_once_with(event, now=NOW)
    workflow_engine.start_workflows_for_deal.assert_awaited_once_with("deal-1", now=NOW)
    rule_engine.run_immediate_rules_for_deal.assert_awaited_once_with("deal-1")
    assert outcome.workflows_started == 2
    assert (outcome.emails_sent, outcome.emails_skipped, outcome.emails_failed) == (1, 1, 0)


async def test_other_events_do_not_start_workflows(workflow_engine, rule_engine):
    service = DealEventService(workflow_engine, rule_engine)

    outcome = await service.process(DealEvent("deal-1", "set-emd-received"), now=NOW)

    workflow_engine.start_workflows_for_deal.assert_not_awaited()
    rule_engine.run_immediate_rules_for_deal.assert_awaited_once_with("deal-1")
    assert outcome.workflows_started == 0


async def test_status_change_away_from_escrow_starts_nothing(workflow_engine, rule_engine):
    workflow_engine.handle_deal_event.return_value = make_deal(status="closed")
    service = DealEventService(workflow_engine, rule_engine)

    outcome = await service.process(
        DealEvent("deal-1", "status-changed", {"status": "closed"}), now=NOW
    )

    workflow_engine.start_workflows_for_deal.assert_not_awaited()
    assert outcome.deal.status == "closed"


async def test_missing_deal_propagates(workflow_engine, rule_engine):
    workflow_engine.handle_deal_event.side_effect = ResourceNotFoundException("deal", "deal-404")
    service = DealEventService(workflow_engine, rule_engine)

    with pytest.raises(ResourceNotFoundException):
        await service.process(DealEvent("deal-404", "set-emd-received"))
    rule_engine.run_immediate_rules_for_deal.assert_not_awaited()
