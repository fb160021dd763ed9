"""Deal task ORM model. Created by users or by workflow create_task steps."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel


class DealTask(EntityModel, Base):
    """Task on a deal. created_by NULL means created by the system. Table: deal_task."""

    __tablename__ = "deal_task"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
