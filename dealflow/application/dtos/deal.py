"""DTOs for deals and the parties attached to them (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class DealResult:
    """Deal read model used by rules, the workflow engine and templates."""

    id: str
    property_address: str | None
    side: str
    status: str
    created_at: datetime
    updated_at: datetime | None = None
    primary_agent_id: str | None = None
    escrow_company_id: str | None = None
    lender_id: str | None = None
    price: Decimal | None = None
    emd_amount: Decimal | None = None
    down_payment_percent: Decimal | None = None
    tc_fee_amount: Decimal | None = None
    tc_fee_payer: str | None = None
    loan_type: str | None = None
    coe_date: datetime | None = None
    inspection_deadline: datetime | None = None
    emd_received_at: datetime | None = None
    inspection_contingency_removed_at: datetime | None = None
    inspection_scheduled_at: datetime | None = None
    appraisal_ordered_at: datetime | None = None
    hoa_docs_received_at: datetime | None = None
    seller_disclosures_sent_at: datetime | None = None
    buyer_disclosures_signed_at: datetime | None = None
    cda_prepared_at: datetime | None = None
    cda_sent_to_escrow_at: datetime | None = None
    closed_at: datetime | None = None
    offer_acceptance_date: date | None = None
    emd_due_date: date | None = None
    close_date: date | None = None
    seller_disclosures_due_date: date | None = None
    buyer_investigation_due_date: date | None = None
    buyer_appraisal_due_date: date | None = None
    buyer_loan_due_date: date | None = None
    buyer_insurance_due_date: date | None = None
    estimated_coe_date: date | None = None
    possession_date: date | None = None
    has_hoa: bool = False
    has_solar: bool = False


@dataclass(frozen=True)
class DealPartyResult:
    id: str
    deal_id: str
    role: str
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class AgentProfileResult:
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @property
    def full_name(self) -> str | None:
        """First and last name joined; None when both are empty."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None


@dataclass(frozen=True)
class EscrowCompanyResult:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    contact_person: str | None = None


@dataclass(frozen=True)
class LenderResult:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    loan_officer_name: str | None = None


@dataclass(frozen=True)
class DealEvent:
    """A business event applied to a deal (e.g. set-emd-received)."""

    deal_id: str
    event_type: str
    data: dict | None = None


@dataclass(frozen=True)
class DealEventOutcome:
    """What processing a deal event did."""

    deal: DealResult
    workflows_started: int = 0
    emails_sent: int = 0
    emails_skipped: int = 0
    emails_failed: int = 0
