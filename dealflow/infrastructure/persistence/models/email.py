"""Email templates and the transaction email ledger."""

from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel
from dealflow.shared.enums import EmailLogStatus


class EmailTemplate(EntityModel, Base):
    """Transaction email template keyed by a stable key. Table: email_template."""

    __tablename__ = "email_template"

    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    subject_template: Mapped[str] = mapped_column(Text, nullable=False)
    body_html: Mapped[str] = mapped_column(Text, nullable=False)
    body_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    audience_type: Mapped[str] = mapped_column(String, nullable=False)
    side: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )


class TransactionEmailLog(EntityModel, Base):
    """Dedup ledger: at most one row per (deal, template key, context date).

    NULL context dates compare equal, so immediate (undated) emails fire once.
    Table: transaction_email_log.
    """

    __tablename__ = "transaction_email_log"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_key: Mapped[str] = mapped_column(String, nullable=False)
    context_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=EmailLogStatus.PENDING.value
    )
    recipient_emails: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "deal_id",
            "template_key",
            "context_date",
            name="uq_transaction_email_log_key",
            postgresql_nulls_not_distinct=True,
        ),
    )
