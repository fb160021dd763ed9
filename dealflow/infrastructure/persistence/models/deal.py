"""Deal aggregate and the people/companies linked to it."""

from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.domain.enums import DealStatus
from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel


class AgentProfile(EntityModel, Base):
    """Agent profile. Table: agent_profile."""

    __tablename__ = "agent_profile"

    email: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)


class EscrowCompany(EntityModel, Base):
    """Escrow company. Table: escrow_company."""

    __tablename__ = "escrow_company"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String, nullable=True)


class Lender(EntityModel, Base):
    """Lender. Table: lender."""

    __tablename__ = "lender"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    loan_officer_name: Mapped[str | None] = mapped_column(String, nullable=True)


class Deal(EntityModel, Base):
    """Real-estate transaction being coordinated. Table: deal."""

    __tablename__ = "deal"

    property_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    side: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=DealStatus.DRAFT.value, index=True
    )

    primary_agent_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("agent_profile.id", ondelete="SET NULL"), nullable=True
    )
    escrow_company_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("escrow_company.id", ondelete="SET NULL"), nullable=True
    )
    lender_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("lender.id", ondelete="SET NULL"), nullable=True
    )

    price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    emd_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    down_payment_percent: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), nullable=True
    )
    tc_fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    tc_fee_payer: Mapped[str | None] = mapped_column(String, nullable=True)
    loan_type: Mapped[str | None] = mapped_column(String, nullable=True)

    # Instants
    coe_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    inspection_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    emd_received_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    inspection_contingency_removed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    inspection_scheduled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    appraisal_ordered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    hoa_docs_received_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    seller_disclosures_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    buyer_disclosures_signed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cda_prepared_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cda_sent_to_escrow_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Calendar dates
    offer_acceptance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    emd_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    close_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    seller_disclosures_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    buyer_investigation_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    buyer_appraisal_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    buyer_loan_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    buyer_insurance_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_coe_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    possession_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    has_hoa: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
    has_solar: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )


class DealParty(EntityModel, Base):
    """Named party on a deal (buyer, seller, other side's agent...). Table: deal_party."""

    __tablename__ = "deal_party"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
