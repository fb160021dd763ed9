"""Recipient resolution: who receives a template's email for a given deal."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from dealflow.application.dtos.deal import DealResult
from dealflow.application.dtos.notification import Recipient
from dealflow.application.interfaces.repositories import IPartyDirectory
from dealflow.domain.enums import AudienceType, DealSide, PartyRole
from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class RecipientResolver:
    """Resolves email recipients from the deal's links and parties.

    Missing data is logged and yields no recipients; lookups never raise.
    """

    def __init__(self, directory: IPartyDirectory) -> None:
        self.directory = directory

    async def resolve(self, deal: DealResult, audience_type: str | None) -> list[Recipient]:
        """Return recipients for the audience; empty for internal_chat or unknown audiences."""
        if not audience_type:
            logger.warning("No audience type specified for deal %s", deal.id)
            return []
        try:
            match audience_type:
                case AudienceType.ESCROW:
                    return await self._escrow(deal.escrow_company_id)
                case AudienceType.LENDER:
                    return await self._lender(deal.lender_id)
                case AudienceType.LISTING_AGENT:
                    return await self._listing_agent(deal)
                case AudienceType.BUYING_AGENT:
                    return await self._buying_agent(deal)
                case AudienceType.SELLER:
                    return await self._parties(deal.id, PartyRole.SELLER)
                case AudienceType.BUYER:
                    return await self._parties(deal.id, PartyRole.BUYER)
                case AudienceType.ALL_PARTIES:
                    return await self._all_parties(deal)
                case AudienceType.INTERNAL_CHAT:
                    return []
                case _:
                    logger.warning("Unknown audience type: %s", audience_type)
                    return []
        except SQLAlchemyError as e:
            logger.error(
                "Error resolving %s recipients for deal %s: %s", audience_type, deal.id, e
            )
            return []

    async def _escrow(self, escrow_company_id: str | None) -> list[Recipient]:
        if not escrow_company_id:
            logger.warning("No escrow company linked")
            return []
        company = await self.directory.get_escrow_company(escrow_company_id)
        if company is None or not company.email:
            logger.warning("Escrow company %s has no email", escrow_company_id)
            return []
        return [Recipient(email=company.email, name=company.name)]

    async def _lender(self, lender_id: str | None) -> list[Recipient]:
        if not lender_id:
            logger.warning("No lender linked")
            return []
        lender = await self.directory.get_lender(lender_id)
        if lender is None or not lender.email:
            logger.warning("Lender %s has no email", lender_id)
            return []
        return [Recipient(email=lender.email, name=lender.loan_officer_name or lender.name)]

    async def _agent(self, agent_id: str) -> list[Recipient]:
        profile = await self.directory.get_agent_profile(agent_id)
        if profile is None or not profile.email:
            logger.warning("Agent %s has no email", agent_id)
            return []
        return [Recipient(email=profile.email, name=profile.full_name)]

    async def _first_party(self, deal_id: str, role: PartyRole) -> list[Recipient]:
        parties = await self.directory.list_parties(deal_id, role.value)
        if not parties or not parties[0].email:
            logger.warning("No %s found for deal %s", role.value, deal_id)
            return []
        return [Recipient(email=parties[0].email, name=parties[0].name)]

    async def _listing_agent(self, deal: DealResult) -> list[Recipient]:
        # Primary agent is the listing agent on listing-side deals.
        if deal.side == DealSide.LISTING and deal.primary_agent_id:
            return await self._agent(deal.primary_agent_id)
        return await self._first_party(deal.id, PartyRole.LISTING_AGENT)

    async def _buying_agent(self, deal: DealResult) -> list[Recipient]:
        if deal.side == DealSide.BUYING and deal.primary_agent_id:
            return await self._agent(deal.primary_agent_id)
        return await self._first_party(deal.id, PartyRole.BUYER_AGENT)

    async def _parties(self, deal_id: str, role: PartyRole) -> list[Recipient]:
        parties = await self.directory.list_parties(deal_id, role.value)
        return [Recipient(email=p.email, name=p.name) for p in parties if p.email]

    async def _all_parties(self, deal: DealResult) -> list[Recipient]:
        """Both agents, escrow and lender, de-duplicated by email (first wins)."""
        candidates = [
            *await self._listing_agent(deal),
            *await self._buying_agent(deal),
            *await self._escrow(deal.escrow_company_id),
            *await self._lender(deal.lender_id),
        ]
        seen: set[str] = set()
        unique: list[Recipient] = []
        for recipient in candidates:
            if recipient.email in seen:
                continue
            seen.add(recipient.email)
            unique.append(recipient)
        return unique
