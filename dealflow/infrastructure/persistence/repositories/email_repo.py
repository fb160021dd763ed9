"""Email template and transaction email ledger repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncContextManager

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.application.dtos.notification import EmailLogResult, EmailTemplateResult
from dealflow.infrastructure.persistence.models.email import EmailTemplate, TransactionEmailLog
from dealflow.infrastructure.persistence.repositories.base import BaseRepository
from dealflow.shared.enums import EmailLogStatus
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.utils.datetime import utc_now

logger = get_logger(__name__)

SessionScope = Callable[[], AsyncContextManager[AsyncSession]]


def _log_result(row: TransactionEmailLog) -> EmailLogResult:
    return EmailLogResult(
        id=row.id,
        deal_id=row.deal_id,
        template_key=row.template_key,
        context_date=row.context_date,
        status=row.status,
        sent_at=row.sent_at,
        recipient_emails=row.recipient_emails,
        error_message=row.error_message,
    )


class EmailTemplateRepository(BaseRepository[EmailTemplate]):
    """Implements IEmailTemplateRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, EmailTemplate)

    async def get_active_by_key(self, key: str) -> EmailTemplateResult | None:
        result = await self.db.execute(
            select(EmailTemplate).where(
                EmailTemplate.key == key, EmailTemplate.is_active.is_(True)
            )
        )
        t = result.scalar_one_or_none()
        if t is None:
            return None
        return EmailTemplateResult(
            id=t.id,
            key=t.key,
            name=t.name,
            subject_template=t.subject_template,
            body_html=t.body_html,
            body_text=t.body_text,
            audience_type=t.audience_type,
            side=t.side,
            is_active=t.is_active,
        )


class EmailLogRepository(BaseRepository[TransactionEmailLog]):
    """Dedup ledger. Implements IEmailLogRepository.

    The unique key (deal_id, template_key, context_date) with NULLS NOT
    DISTINCT makes claim() the serialization point between concurrent
    dispatchers: exactly one insert per key succeeds.

    With ``write_scope`` (a factory of committed sessions) every ledger write
    runs and commits in its own transaction, so a claim is durable before the
    mail is sent and survives a rollback of the caller's session. Reads always
    use ``db``.
    """

    def __init__(self, db: AsyncSession, *, write_scope: SessionScope | None = None) -> None:
        super().__init__(db, TransactionEmailLog)
        self._write_scope = write_scope

    @asynccontextmanager
    async def _writer(self) -> AsyncIterator[EmailLogRepository]:
        if self._write_scope is None:
            yield self
            return
        async with self._write_scope() as session:
            yield EmailLogRepository(session)

    async def get_by_key(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        q = select(TransactionEmailLog).where(
            TransactionEmailLog.deal_id == deal_id,
            TransactionEmailLog.template_key == template_key,
        )
        if context_date is None:
            q = q.where(TransactionEmailLog.context_date.is_(None))
        else:
            q = q.where(TransactionEmailLog.context_date == context_date)
        result = await self.db.execute(q.limit(1))
        row = result.scalar_one_or_none()
        return _log_result(row) if row else None

    async def record(
        self,
        deal_id: str,
        template_key: str,
        context_date: date | None,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> EmailLogResult | None:
        row = TransactionEmailLog(
            deal_id=deal_id,
            template_key=template_key,
            context_date=context_date,
            status=status,
            recipient_emails=recipient_emails,
            error_message=error_message,
        )
        async with self._writer() as writer:
            try:
                row = await writer.create_in_savepoint(row)
            except IntegrityError:
                logger.info(
                    "Ledger key already taken: deal=%s template=%s context_date=%s",
                    deal_id,
                    template_key,
                    context_date,
                )
                return None
            return _log_result(row)

    async def claim(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> EmailLogResult | None:
        return await self.record(
            deal_id, template_key, context_date, EmailLogStatus.PENDING.value
        )

    async def finalize(
        self,
        log_id: str,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> None:
        async with self._writer() as writer, writer.db.begin_nested():
            await writer.db.execute(
                update(TransactionEmailLog)
                .where(TransactionEmailLog.id == log_id)
                .values(
                    status=status,
                    recipient_emails=recipient_emails,
                    error_message=error_message,
                    sent_at=utc_now(),
                )
            )
