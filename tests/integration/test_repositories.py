"""Repository tests against a migrated Postgres database (requires_db)."""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete

from dealflow.infrastructure.persistence.database import session_scope
from dealflow.infrastructure.persistence.models import Deal, WorkflowDefinition
from dealflow.infrastructure.persistence.repositories import (
    DealRepository,
    EmailLogRepository,
    TaskRepository,
    TimelineRepository,
    WorkflowRepository,
)
from dealflow.infrastructure.services.workflow_engine import WorkflowEngine

pytestmark = pytest.mark.requires_db

CONTEXT = date(2024, 11, 27)
NOW = datetime(2024, 11, 27, 18, 0, tzinfo=UTC)


@pytest.fixture
async def deal_id(db_session) -> str:
    deal = await DealRepository(db_session).create(
        Deal(property_address="9 Elm Ct", side="listing", status="in_escrow", has_hoa=True)
    )
    return deal.id


async def test_ledger_claim_is_exclusive_per_key(db_session, deal_id):
    repo = EmailLogRepository(db_session)

    first = await repo.claim(deal_id, "listing_hoa_docs_update", CONTEXT)
    second = await repo.claim(deal_id, "listing_hoa_docs_update", CONTEXT)
    other_day = await repo.claim(deal_id, "listing_hoa_docs_update", date(2024, 11, 28))

    assert first is not None and first.status == "pending"
    assert second is None
    assert other_day is not None


async def test_ledger_null_context_dates_collide(db_session, deal_id):
    repo = EmailLogRepository(db_session)

    assert await repo.claim(deal_id, "listing_opening_escrow_chat", None) is not None
    assert await repo.claim(deal_id, "listing_opening_escrow_chat", None) is None
    assert await repo.get_by_key(deal_id, "listing_opening_escrow_chat", None) is not None


async def test_ledger_finalize(db_session, deal_id):
    repo = EmailLogRepository(db_session)
    claim = await repo.claim(deal_id, "listing_hoa_docs_update", CONTEXT)

    await repo.finalize(claim.id, "sent", recipient_emails=["orders@escrow.test"])
    db_session.expire_all()
    row = await repo.get_by_key(deal_id, "listing_hoa_docs_update", CONTEXT)

    assert row.status == "sent"
    assert row.recipient_emails == ["orders@escrow.test"]
    assert row.sent_at is not None


async def test_deal_set_field_and_active_listing(db_session, deal_id):
    repo = DealRepository(db_session)

    updated = await repo.set_field(deal_id, "emd_due_date", "2024-11-30")
    active = await repo.list_by_statuses(["in_escrow"])

    assert updated.emd_due_date == date(2024, 11, 30)
    assert deal_id in [d.id for d in active]


async def test_ledger_claim_survives_caller_rollback(db_session):
    async with session_scope() as setup:
        deal = await DealRepository(setup).create(
            Deal(property_address="14 Oak Ln", side="buying", status="in_escrow")
        )
    try:
        repo = EmailLogRepository(db_session, write_scope=session_scope)
        claim = await repo.claim(deal.id, "buyer_opening_escrow", None)
        await repo.finalize(claim.id, "sent", recipient_emails=["buyer@example.test"])
        await db_session.rollback()

        async with session_scope() as check:
            row = await EmailLogRepository(check).get_by_key(
                deal.id, "buyer_opening_escrow", None
            )
        assert row is not None
        assert row.id == claim.id
        assert row.status == "sent"
        assert await repo.claim(deal.id, "buyer_opening_escrow", None) is None
    finally:
        async with session_scope() as cleanup:
            await cleanup.execute(delete(Deal).where(Deal.id == deal.id))


async def test_start_workflows_survives_concurrent_run_insert(db_session, deal_id, monkeypatch):
    first = WorkflowDefinition(name="Listing A", side="listing", trigger_type="in_escrow")
    second = WorkflowDefinition(name="Listing B", side="listing", trigger_type="in_escrow")
    db_session.add_all([first, second])
    await db_session.flush()
    workflow_repo = WorkflowRepository(db_session)
    await workflow_repo.create_run(deal_id, first.id, NOW)
    # Another worker inserted the run between the existence check and the insert.
    monkeypatch.setattr(workflow_repo, "get_run", AsyncMock(return_value=None))
    engine = WorkflowEngine(
        DealRepository(db_session),
        workflow_repo,
        TimelineRepository(db_session),
        TaskRepository(db_session),
        AsyncMock(),
    )

    runs = await engine.start_workflows_for_deal(deal_id, now=NOW)

    assert [r.workflow_definition_id for r in runs] == [second.id]
    assert await DealRepository(db_session).get_by_id(deal_id) is not None
