"""Deal timeline: append-only audit trail of what happened on a deal."""

from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel


class DealTimelineEvent(EntityModel, Base):
    """Table: deal_timeline_event. ``metadata`` column is mapped as event_metadata."""

    __tablename__ = "deal_timeline_event"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    event_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index("ix_deal_timeline_event_deal_created", "deal_id", "created_at"),
    )
