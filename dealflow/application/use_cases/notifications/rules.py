"""Notification rules: which transaction emails a deal is due.

Each rule is a pure function of (deal, today) returning zero or more
DispatchRequests. Immediate rules fire once ever (no context date); daily
rules carry the business date they are about, which is part of the dedup
key, so re-running a day never re-sends.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from dealflow.application.dtos.deal import DealResult
from dealflow.application.dtos.notification import (
    BatchDispatchResult,
    DailyRulesStats,
    DispatchRequest,
)
from dealflow.application.interfaces.repositories import IDealRepository
from dealflow.application.interfaces.services import INotificationDispatcher
from dealflow.application.services.date_service import DateService
from dealflow.application.use_cases.notifications.dispatcher import (
    DispatcherScope,
    dispatch_batch,
)
from dealflow.domain.enums import ACTIVE_DEAL_STATUSES, DealSide, DealStatus
from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

HOA_DOCS_MIN_DAYS_SINCE_OFFER = 5
SOLAR_MIN_DAYS_SINCE_OFFER = 7
SELLER_DISCLOSURES_DAYS_BEFORE_DUE = 3
CDA_DAYS_BEFORE_COE = 5
UPCOMING_CLOSING_DAYS_BEFORE_COE = 3
UTILITY_REQUEST_MAX_DAYS_BEFORE_COE = 5

CONTINGENCY_DATE_FIELDS: tuple[str, ...] = (
    "buyer_investigation_due_date",
    "buyer_appraisal_due_date",
    "buyer_loan_due_date",
    "buyer_insurance_due_date",
)

DailyRule = Callable[[DealResult, date, DateService], list[DispatchRequest]]


def _request(deal: DealResult, key: str, context_date: date | None = None) -> list[DispatchRequest]:
    return [DispatchRequest(deal_id=deal.id, template_key=key, context_date=context_date)]


def _by_side(deal: DealResult, listing_key: str, buyer_key: str) -> str:
    return listing_key if deal.side == DealSide.LISTING else buyer_key


# Immediate rules


def opening_escrow_rule(deal: DealResult) -> list[DispatchRequest]:
    """Opening-escrow emails when the deal is in escrow."""
    if deal.status != DealStatus.IN_ESCROW:
        return []
    requests: list[DispatchRequest] = []
    if deal.side == DealSide.LISTING:
        requests += _request(deal, "listing_opening_escrow_chat")
        if deal.escrow_company_id:
            requests += _request(deal, "listing_new_escrow_to_escrow")
        if deal.estimated_coe_date or deal.emd_due_date:
            requests += _request(deal, "listing_new_escrow_timeline_all")
    elif deal.side == DealSide.BUYING:
        requests += _request(deal, "buyer_opening_escrow_chat")
        requests += _request(deal, "buyer_congrats_listing_side")
        if deal.estimated_coe_date or deal.buyer_investigation_due_date:
            requests += _request(deal, "buyer_timeline_all")
    return requests


def inspection_scheduled_rule(deal: DealResult) -> list[DispatchRequest]:
    if deal.side != DealSide.BUYING or not deal.inspection_scheduled_at:
        return []
    return _request(deal, "buyer_inspection_scheduled_to_listing")


IMMEDIATE_RULES: tuple[Callable[[DealResult], list[DispatchRequest]], ...] = (
    opening_escrow_rule,
    inspection_scheduled_rule,
)


# Daily rules


def hoa_docs_rule(deal: DealResult, today: date, dates: DateService) -> list[DispatchRequest]:
    """Listing with HOA, docs not received, more than 5 days since offer acceptance."""
    if deal.side != DealSide.LISTING or not deal.has_hoa or deal.hoa_docs_received_at:
        return []
    days = dates.days_since(deal.offer_acceptance_date, today)
    if days is None or days <= HOA_DOCS_MIN_DAYS_SINCE_OFFER:
        return []
    return _request(deal, "listing_hoa_docs_update", today)


def solar_transfer_rule(deal: DealResult, today: date, dates: DateService) -> list[DispatchRequest]:
    """Solar on the property and more than 7 days since offer acceptance."""
    if not deal.has_solar:
        return []
    days = dates.days_since(deal.offer_acceptance_date, today)
    if days is None or days <= SOLAR_MIN_DAYS_SINCE_OFFER:
        return []
    key = _by_side(deal, "listing_solar_transfer_update", "buyer_solar_transfer_update")
    return _request(deal, key, today)


def seller_disclosures_rule(
    deal: DealResult, today: date, dates: DateService
) -> list[DispatchRequest]:
    """Buyer side: disclosures not yet sent, due in exactly 3 days."""
    if deal.side != DealSide.BUYING or not deal.seller_disclosures_due_date:
        return []
    if deal.seller_disclosures_sent_at:
        return []
    if dates.days_until(deal.seller_disclosures_due_date, today) != SELLER_DISCLOSURES_DAYS_BEFORE_DUE:
        return []
    return _request(
        deal, "buyer_seller_disclosures_followup", dates.to_date(deal.seller_disclosures_due_date)
    )


def contingency_due_today_rule(
    deal: DealResult, today: date, dates: DateService
) -> list[DispatchRequest]:
    """Listing side: one email per contingency date falling on today."""
    if deal.side != DealSide.LISTING:
        return []
    requests: list[DispatchRequest] = []
    for field in CONTINGENCY_DATE_FIELDS:
        due = getattr(deal, field)
        if due and dates.is_same_day(due, today):
            requests += _request(deal, "listing_contingency_due_today", dates.to_date(due))
    return requests


def cda_reminder_rule(deal: DealResult, today: date, dates: DateService) -> list[DispatchRequest]:
    if not deal.estimated_coe_date or deal.cda_sent_to_escrow_at:
        return []
    if dates.days_until(deal.estimated_coe_date, today) != CDA_DAYS_BEFORE_COE:
        return []
    key = _by_side(deal, "listing_cda_to_escrow", "buyer_cda_to_escrow")
    return _request(deal, key, dates.to_date(deal.estimated_coe_date))


def upcoming_closing_rule(
    deal: DealResult, today: date, dates: DateService
) -> list[DispatchRequest]:
    if deal.side != DealSide.BUYING or not deal.estimated_coe_date:
        return []
    if dates.days_until(deal.estimated_coe_date, today) != UPCOMING_CLOSING_DAYS_BEFORE_COE:
        return []
    return _request(deal, "buyer_upcoming_closing_update", dates.to_date(deal.estimated_coe_date))


def utility_request_rule(
    deal: DealResult, today: date, dates: DateService
) -> list[DispatchRequest]:
    """Close of escrow within the next 5 days (inclusive of today)."""
    if not deal.estimated_coe_date:
        return []
    days = dates.days_until(deal.estimated_coe_date, today)
    if days is None or days < 0 or days > UTILITY_REQUEST_MAX_DAYS_BEFORE_COE:
        return []
    key = _by_side(deal, "listing_request_utilities_seller", "buyer_request_utilities_from_listing")
    return _request(deal, key, dates.to_date(deal.estimated_coe_date))


DAILY_RULES: tuple[DailyRule, ...] = (
    hoa_docs_rule,
    solar_transfer_rule,
    seller_disclosures_rule,
    contingency_due_today_rule,
    cda_reminder_rule,
    upcoming_closing_rule,
    utility_request_rule,
)


class NotificationRuleEngine:
    """Evaluates notification rules and sends what is due through the dispatcher."""

    def __init__(
        self,
        deal_repo: IDealRepository,
        dispatcher: INotificationDispatcher,
        *,
        date_service: DateService | None = None,
        dispatcher_scope: DispatcherScope | None = None,
        max_concurrency: int = 5,
    ) -> None:
        self.deal_repo = deal_repo
        self.dispatcher = dispatcher
        self.dates = date_service or DateService()
        self._dispatcher_scope = dispatcher_scope
        self._max_concurrency = max_concurrency

    def evaluate_immediate_rules(self, deal: DealResult) -> list[DispatchRequest]:
        return [r for rule in IMMEDIATE_RULES for r in rule(deal)]

    def evaluate_daily_rules(self, deal: DealResult, today: date) -> list[DispatchRequest]:
        return [r for rule in DAILY_RULES for r in rule(deal, today, self.dates)]

    async def _send(self, requests: list[DispatchRequest]) -> BatchDispatchResult:
        if self._dispatcher_scope is not None:
            return await dispatch_batch(requests, self._dispatcher_scope, self._max_concurrency)
        batch = BatchDispatchResult()
        for request in requests:
            batch.add(
                await self.dispatcher.dispatch(
                    request.deal_id, request.template_key, request.context_date
                )
            )
        return batch

    async def run_immediate_rules_for_deal(self, deal_id: str) -> BatchDispatchResult:
        """Send opening-escrow / inspection-scheduled emails the deal now qualifies for.

        Uses the caller's dispatcher (same unit of work as the triggering event).
        """
        deal = await self.deal_repo.get_by_id(deal_id)
        if deal is None:
            logger.error("Immediate rules: deal not found: %s", deal_id)
            return BatchDispatchResult()
        batch = BatchDispatchResult()
        for request in self.evaluate_immediate_rules(deal):
            batch.add(
                await self.dispatcher.dispatch(
                    request.deal_id, request.template_key, request.context_date
                )
            )
        if batch.total:
            logger.info(
                "Immediate rules for deal %s: sent=%d skipped=%d failed=%d",
                deal_id,
                batch.sent,
                batch.skipped,
                batch.failed,
            )
        return batch

    async def run_daily_rules(self, today: date | None = None) -> DailyRulesStats:
        """Evaluate daily rules for every active deal and dispatch what is due.

        ``considered`` is the number of active deals; sent/skipped/failed count
        attempted dispatches. A deal whose rules fail to evaluate counts as one
        failure and does not stop the run.
        """
        today = today or self.dates.today()
        deals = await self.deal_repo.list_by_statuses([s.value for s in ACTIVE_DEAL_STATUSES])
        stats = DailyRulesStats(considered=len(deals))
        logger.info("Running daily email rules for %s: %d active deal(s)", today, len(deals))

        requests: list[DispatchRequest] = []
        for deal in deals:
            try:
                requests += self.evaluate_daily_rules(deal, today)
            except Exception:
                logger.exception("Daily rules failed for deal %s", deal.id)
                stats.failed += 1

        batch = await self._send(requests)
        for result in batch.results:
            stats.add(result)
        logger.info(
            "Daily rules complete: considered=%d sent=%d skipped=%d failed=%d",
            stats.considered,
            stats.sent,
            stats.skipped,
            stats.failed,
        )
        return stats
