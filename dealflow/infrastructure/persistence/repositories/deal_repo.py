"""Deal repository and party directory (agents, escrow, lenders, deal parties)."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Numeric, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.application.dtos.deal import (
    AgentProfileResult,
    DealPartyResult,
    DealResult,
    EscrowCompanyResult,
    LenderResult,
)
from dealflow.domain.enums import DealSide, DealStatus
from dealflow.domain.exceptions import ResourceNotFoundException, ValidationException
from dealflow.infrastructure.persistence.models.deal import (
    AgentProfile,
    Deal,
    DealParty,
    EscrowCompany,
    Lender,
)
from dealflow.infrastructure.persistence.repositories.base import BaseRepository
from dealflow.shared.utils.datetime import parse_date, parse_datetime

# Columns that workflow update_field steps may write.
_NON_UPDATABLE = frozenset({"id", "created_at", "updated_at"})
UPDATABLE_DEAL_FIELDS: frozenset[str] = frozenset(
    c.name for c in Deal.__table__.columns if c.name not in _NON_UPDATABLE
)


def _to_result(d: Deal) -> DealResult:
    """Map Deal ORM to DealResult DTO."""
    return DealResult(**{f: getattr(d, f) for f in DealResult.__dataclass_fields__})


def coerce_deal_value(field: str, value: Any) -> Any:
    """Coerce a raw (JSON) value to the Python type of a Deal column.

    Raises:
        ValidationException: Unknown/protected column or unparsable value.
    """
    if field not in UPDATABLE_DEAL_FIELDS:
        raise ValidationException(f"Field '{field}' cannot be updated", field=field)
    if value is None:
        return None
    column_type = Deal.__table__.columns[field].type
    try:
        if isinstance(column_type, DateTime):
            return parse_datetime(value)
        if isinstance(column_type, Date):
            return parse_date(value)
        if isinstance(column_type, Boolean):
            if isinstance(value, bool):
                return value
            if str(value).lower() in ("true", "1", "yes"):
                return True
            if str(value).lower() in ("false", "0", "no"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        if isinstance(column_type, Numeric):
            return Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation) as e:
        raise ValidationException(
            f"Invalid value for '{field}': {e}", field=field
        ) from e
    text = str(value)
    if field == "status" and text not in DealStatus.values():
        raise ValidationException(f"Invalid deal status: {text}", field=field)
    if field == "side" and text not in DealSide.values():
        raise ValidationException(f"Invalid deal side: {text}", field=field)
    return text


class DealRepository(BaseRepository[Deal]):
    """Deal repository. Implements IDealRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Deal)

    async def get_by_id(self, deal_id: str) -> DealResult | None:  # type: ignore[override]
        deal = await super().get_by_id(deal_id)
        return _to_result(deal) if deal else None

    async def list_by_statuses(self, statuses: Sequence[str]) -> list[DealResult]:
        result = await self.db.execute(
            select(Deal).where(Deal.status.in_(list(statuses))).order_by(Deal.created_at)
        )
        return [_to_result(d) for d in result.scalars().all()]

    async def update_fields(self, deal_id: str, values: dict[str, Any]) -> DealResult:
        """Set typed column values on the deal and flush."""
        deal = await super().get_by_id(deal_id)
        if deal is None:
            raise ResourceNotFoundException("deal", deal_id)
        for name, value in values.items():
            if name not in UPDATABLE_DEAL_FIELDS:
                raise ValidationException(f"Field '{name}' cannot be updated", field=name)
            setattr(deal, name, value)
        await self.db.flush()
        await self.db.refresh(deal)
        return _to_result(deal)

    async def set_field(self, deal_id: str, field: str, value: Any) -> DealResult:
        """Write one whitelisted column from a raw value (ISO strings for dates)."""
        return await self.update_fields(deal_id, {field: coerce_deal_value(field, value)})


class PartyDirectoryRepository:
    """Read-only lookups for recipient resolution. Implements IPartyDirectory."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_agent_profile(self, agent_id: str) -> AgentProfileResult | None:
        p = await self.db.get(AgentProfile, agent_id)
        if p is None:
            return None
        return AgentProfileResult(
            id=p.id, email=p.email, first_name=p.first_name, last_name=p.last_name
        )

    async def get_escrow_company(self, escrow_company_id: str) -> EscrowCompanyResult | None:
        c = await self.db.get(EscrowCompany, escrow_company_id)
        if c is None:
            return None
        return EscrowCompanyResult(
            id=c.id,
            name=c.name,
            email=c.email,
            phone=c.phone,
            contact_person=c.contact_person,
        )

    async def get_lender(self, lender_id: str) -> LenderResult | None:
        lender = await self.db.get(Lender, lender_id)
        if lender is None:
            return None
        return LenderResult(
            id=lender.id,
            name=lender.name,
            email=lender.email,
            phone=lender.phone,
            loan_officer_name=lender.loan_officer_name,
        )

    async def list_parties(
        self, deal_id: str, role: str | None = None
    ) -> list[DealPartyResult]:
        q = select(DealParty).where(DealParty.deal_id == deal_id)
        if role is not None:
            q = q.where(DealParty.role == role)
        result = await self.db.execute(q.order_by(DealParty.created_at, DealParty.id))
        return [
            DealPartyResult(
                id=p.id,
                deal_id=p.deal_id,
                role=p.role,
                name=p.name,
                email=p.email,
                phone=p.phone,
            )
            for p in result.scalars().all()
        ]
