"""Deal events API: apply a business event to a deal and run its follow-ups."""

from typing import Annotated

from fastapi import APIRouter, Depends

from dealflow.api.v1.dependencies import get_deal_event_service
from dealflow.application.dtos.deal import DealEvent
from dealflow.application.use_cases.deal_events import DealEventService
from dealflow.schemas.deal_event import DealEventRequest, DealEventResponse

router = APIRouter()


@router.post("/{deal_id}/events", response_model=DealEventResponse)
async def post_deal_event(
    deal_id: str,
    body: DealEventRequest,
    service: Annotated[DealEventService, Depends(get_deal_event_service)],
) -> DealEventResponse:
    """Apply an event (e.g. status-changed, set-emd-received) to the deal.

    Entering escrow starts matching workflows; immediate notification rules
    run for every event. Missing deal -> 404.
    """
    outcome = await service.process(
        DealEvent(deal_id=deal_id, event_type=body.event_type.value, data=body.data)
    )
    return DealEventResponse(
        deal_id=outcome.deal.id,
        event_type=body.event_type.value,
        status=outcome.deal.status,
        workflows_started=outcome.workflows_started,
        emails_sent=outcome.emails_sent,
        emails_skipped=outcome.emails_skipped,
        emails_failed=outcome.emails_failed,
    )
