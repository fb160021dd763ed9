"""Deal event API schemas."""

from typing import Any

from pydantic import BaseModel, Field

from dealflow.domain.enums import DealEventType


class DealEventRequest(BaseModel):
    """Business event for a deal. Unknown event types are rejected (422)."""

    event_type: DealEventType
    data: dict[str, Any] | None = Field(
        default=None,
        description="Event payload, e.g. {'status': 'in_escrow'} or {'coe_date': '2024-12-15'}",
    )


class DealEventResponse(BaseModel):
    """Outcome of processing a deal event."""

    success: bool = True
    deal_id: str
    event_type: str
    status: str
    workflows_started: int = 0
    emails_sent: int = 0
    emails_skipped: int = 0
    emails_failed: int = 0
