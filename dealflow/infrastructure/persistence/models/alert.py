"""Deal alerts surfaced to coordinators (e.g. failed email)."""

import sqlalchemy as sa
from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel


class Alert(EntityModel, Base):
    """Table: alert."""

    __tablename__ = "alert"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
