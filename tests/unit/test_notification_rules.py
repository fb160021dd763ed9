"""Notification rules and the rule engine run against in-memory fakes."""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock

import pytest

from dealflow.application.dtos.deal import EscrowCompanyResult
from dealflow.application.dtos.notification import DispatchRequest, DispatchResult
from dealflow.application.use_cases.notifications import NotificationRuleEngine
from dealflow.application.use_cases.notifications.rules import (
    cda_reminder_rule,
    contingency_due_today_rule,
    hoa_docs_rule,
    inspection_scheduled_rule,
    opening_escrow_rule,
    seller_disclosures_rule,
    solar_transfer_rule,
    upcoming_closing_rule,
    utility_request_rule,
)
from tests.fakes import make_deal, make_template

TODAY = date(2024, 11, 27)


def _keys(requests: list[DispatchRequest]) -> list[str]:
    return [r.template_key for r in requests]


@pytest.fixture
def engine(deal_repo, dispatcher, date_service) -> NotificationRuleEngine:
    return NotificationRuleEngine(deal_repo, dispatcher, date_service=date_service)


# Immediate rules


def test_opening_escrow_listing_side() -> None:
    deal = make_deal(escrow_company_id="esc-1", estimated_coe_date=date(2024, 12, 20))
    assert _keys(opening_escrow_rule(deal)) == [
        "listing_opening_escrow_chat",
        "listing_new_escrow_to_escrow",
        "listing_new_escrow_timeline_all",
    ]
    assert all(r.context_date is None for r in opening_escrow_rule(deal))


def test_opening_escrow_listing_side_minimal() -> None:
    assert _keys(opening_escrow_rule(make_deal())) == ["listing_opening_escrow_chat"]


def test_opening_escrow_buying_side() -> None:
    deal = make_deal(side="buying", buyer_investigation_due_date=date(2024, 12, 1))
    assert _keys(opening_escrow_rule(deal)) == [
        "buyer_opening_escrow_chat",
        "buyer_congrats_listing_side",
        "buyer_timeline_all",
    ]


def test_opening_escrow_requires_in_escrow_and_known_side() -> None:
    assert opening_escrow_rule(make_deal(status="pending")) == []
    assert opening_escrow_rule(make_deal(side="dual")) == []


def test_inspection_scheduled_buying_only() -> None:
    scheduled = datetime(2024, 11, 25, 18, 0, tzinfo=UTC)
    assert _keys(
        inspection_scheduled_rule(make_deal(side="buying", inspection_scheduled_at=scheduled))
    ) == ["buyer_inspection_scheduled_to_listing"]
    assert inspection_scheduled_rule(make_deal(inspection_scheduled_at=scheduled)) == []
    assert inspection_scheduled_rule(make_deal(side="buying")) == []


# Daily rules


def test_hoa_docs_after_five_days(date_service) -> None:
    deal = make_deal(has_hoa=True, offer_acceptance_date=date(2024, 11, 20))
    [request] = hoa_docs_rule(deal, TODAY, date_service)
    assert request.template_key == "listing_hoa_docs_update"
    assert request.context_date == TODAY

    assert hoa_docs_rule(deal, date(2024, 11, 25), date_service) == []
    assert hoa_docs_rule(deal, date(2024, 11, 26), date_service) != []


def test_hoa_docs_not_when_received_or_no_hoa(date_service) -> None:
    received = make_deal(
        has_hoa=True,
        offer_acceptance_date=date(2024, 11, 1),
        hoa_docs_received_at=datetime(2024, 11, 10, tzinfo=UTC),
    )
    assert hoa_docs_rule(received, TODAY, date_service) == []
    assert hoa_docs_rule(make_deal(offer_acceptance_date=date(2024, 11, 1)), TODAY, date_service) == []
    assert hoa_docs_rule(make_deal(has_hoa=True), TODAY, date_service) == []


def test_solar_transfer_by_side(date_service) -> None:
    listing = make_deal(has_solar=True, offer_acceptance_date=date(2024, 11, 19))
    buying = make_deal(side="buying", has_solar=True, offer_acceptance_date=date(2024, 11, 19))
    assert _keys(solar_transfer_rule(listing, TODAY, date_service)) == [
        "listing_solar_transfer_update"
    ]
    assert _keys(solar_transfer_rule(buying, TODAY, date_service)) == [
        "buyer_solar_transfer_update"
    ]
    assert solar_transfer_rule(listing, date(2024, 11, 26), date_service) == []


def test_seller_disclosures_exactly_three_days_before_due(date_service) -> None:
    deal = make_deal(side="buying", seller_disclosures_due_date=date(2024, 11, 30))
    [request] = seller_disclosures_rule(deal, TODAY, date_service)
    assert request.template_key == "buyer_seller_disclosures_followup"
    assert request.context_date == date(2024, 11, 30)

    assert seller_disclosures_rule(deal, date(2024, 11, 28), date_service) == []
    sent = make_deal(
        side="buying",
        seller_disclosures_due_date=date(2024, 11, 30),
        seller_disclosures_sent_at=datetime(2024, 11, 26, tzinfo=UTC),
    )
    assert seller_disclosures_rule(sent, TODAY, date_service) == []


def test_contingency_due_today_one_per_date(date_service) -> None:
    deal = make_deal(
        buyer_investigation_due_date=TODAY,
        buyer_loan_due_date=TODAY,
        buyer_appraisal_due_date=date(2024, 11, 28),
    )
    requests = contingency_due_today_rule(deal, TODAY, date_service)
    assert _keys(requests) == ["listing_contingency_due_today"] * 2
    assert {r.context_date for r in requests} == {TODAY}
    assert contingency_due_today_rule(
        make_deal(side="buying", buyer_loan_due_date=TODAY), TODAY, date_service
    ) == []


def test_cda_and_upcoming_closing(date_service) -> None:
    coe = date(2024, 12, 2)
    listing = make_deal(estimated_coe_date=coe)
    assert _keys(cda_reminder_rule(listing, TODAY, date_service)) == ["listing_cda_to_escrow"]
    assert cda_reminder_rule(
        make_deal(estimated_coe_date=coe, cda_sent_to_escrow_at=datetime(2024, 11, 26, tzinfo=UTC)),
        TODAY,
        date_service,
    ) == []

    buying = make_deal(side="buying", estimated_coe_date=date(2024, 11, 30))
    [request] = upcoming_closing_rule(buying, TODAY, date_service)
    assert request.template_key == "buyer_upcoming_closing_update"
    assert request.context_date == date(2024, 11, 30)
    assert upcoming_closing_rule(make_deal(estimated_coe_date=date(2024, 11, 30)), TODAY, date_service) == []


@pytest.mark.parametrize(
    ("coe", "fires"),
    [
        (date(2024, 11, 26), False),
        (date(2024, 11, 27), True),
        (date(2024, 12, 2), True),
        (date(2024, 12, 3), False),
    ],
)
def test_utility_request_window(date_service, coe, fires) -> None:
    requests = utility_request_rule(make_deal(estimated_coe_date=coe), TODAY, date_service)
    assert bool(requests) is fires
    if fires:
        assert _keys(requests) == ["listing_request_utilities_seller"]


# Engine


async def test_daily_rules_send_once_per_business_day(
    engine, deal_repo, template_repo, directory, transport, email_log_repo
):
    directory.escrow_companies["esc-1"] = EscrowCompanyResult(
        id="esc-1", name="First Escrow", email="orders@escrow.test"
    )
    template_repo.add(make_template("listing_hoa_docs_update", "escrow"))
    deal_repo.add(
        make_deal(escrow_company_id="esc-1", has_hoa=True, offer_acceptance_date=date(2024, 11, 20))
    )

    first = await engine.run_daily_rules(TODAY)
    second = await engine.run_daily_rules(TODAY)

    assert (first.considered, first.sent, first.skipped, first.failed) == (1, 1, 0, 0)
    assert (second.considered, second.sent, second.skipped, second.failed) == (1, 0, 1, 0)
    assert len(transport.sent) == 1
    assert email_log_repo.statuses() == {
        ("deal-1", "listing_hoa_docs_update", TODAY): "sent"
    }


async def test_daily_rules_skip_inactive_deals_and_count_bad_ones(engine, deal_repo):
    deal_repo.add(make_deal(id="closed", status="closed", has_hoa=True,
                            offer_acceptance_date=date(2024, 11, 1)))
    deal_repo.add(make_deal(id="bad", has_hoa=True, offer_acceptance_date="not-a-date"))
    deal_repo.add(make_deal(id="quiet", status="pending_coe"))

    stats = await engine.run_daily_rules(TODAY)

    assert stats.to_dict() == {"considered": 2, "sent": 0, "skipped": 0, "failed": 1}


async def test_daily_rules_use_dispatcher_scope_when_configured(deal_repo, date_service):
    deal_repo.add(make_deal(has_solar=True, offer_acceptance_date=date(2024, 11, 1)))
    scoped = AsyncMock()
    scoped.dispatch.return_value = DispatchResult.delivered()

    class _Scope:
        async def __aenter__(self):
            return scoped

        async def __aexit__(self, *exc):
            return False

    unused = AsyncMock()
    engine = NotificationRuleEngine(
        deal_repo, unused, date_service=date_service, dispatcher_scope=_Scope
    )
    stats = await engine.run_daily_rules(TODAY)

    assert stats.sent == 1
    scoped.dispatch.assert_awaited_once_with("deal-1", "listing_solar_transfer_update", TODAY)
    unused.dispatch.assert_not_awaited()


async def test_immediate_rules_for_deal(engine, deal_repo, template_repo, timeline_repo, transport):
    template_repo.add(make_template("listing_opening_escrow_chat", "internal_chat"))
    deal_repo.add(make_deal())

    batch = await engine.run_immediate_rules_for_deal("deal-1")
    again = await engine.run_immediate_rules_for_deal("deal-1")

    assert (batch.total, batch.sent) == (1, 1)
    assert again.skipped == 1
    assert len(timeline_repo.of_type("internal_chat")) == 1
    assert transport.sent == []


async def test_immediate_rules_missing_deal_is_empty(engine):
    batch = await engine.run_immediate_rules_for_deal("deal-404")
    assert batch.total == 0
