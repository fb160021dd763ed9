"""Idempotent transaction email dispatch.

One dispatch per (deal, template key, context date). The ledger row is
claimed before the transport is called, so concurrent dispatchers for the
same key send at most once. Any existing row for the key, including a
failed one, blocks further attempts.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import date
from typing import AsyncContextManager

from dealflow.application.dtos.deal import DealResult
from dealflow.application.dtos.notification import (
    BatchDispatchResult,
    DispatchRequest,
    DispatchResult,
    EmailTemplateResult,
    SendResult,
)
from dealflow.application.interfaces.repositories import (
    IAlertRepository,
    IDealRepository,
    IEmailLogRepository,
    IEmailTemplateRepository,
    ITimelineRepository,
)
from dealflow.application.interfaces.services import (
    IMailTransport,
    INotificationDispatcher,
    IRecipientResolver,
    ITemplateRenderer,
)
from dealflow.domain.enums import AudienceType
from dealflow.shared.enums import AlertLevel, AlertType, EmailLogStatus, TimelineEventType
from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DispatcherScope = Callable[[], AsyncContextManager[INotificationDispatcher]]


class NotificationDispatcher:
    """Sends one templated transaction email (or internal chat note) per dedup key.

    Never raises: every outcome is a DispatchResult. Ledger finalisation and
    alert writes are best-effort and only logged on failure.
    """

    def __init__(
        self,
        deal_repo: IDealRepository,
        template_repo: IEmailTemplateRepository,
        email_log_repo: IEmailLogRepository,
        alert_repo: IAlertRepository,
        timeline_repo: ITimelineRepository,
        recipient_resolver: IRecipientResolver,
        renderer: ITemplateRenderer,
        transport: IMailTransport,
    ) -> None:
        self.deal_repo = deal_repo
        self.template_repo = template_repo
        self.email_log_repo = email_log_repo
        self.alert_repo = alert_repo
        self.timeline_repo = timeline_repo
        self.recipient_resolver = recipient_resolver
        self.renderer = renderer
        self.transport = transport

    async def dispatch(
        self, deal_id: str, template_key: str, context_date: date | None = None
    ) -> DispatchResult:
        """Send template_key for the deal unless the key was already handled."""
        logger.info(
            "Processing %s for deal %s (context_date=%s)", template_key, deal_id, context_date
        )
        try:
            return await self._dispatch(deal_id, template_key, context_date)
        except Exception as e:
            logger.exception("Dispatch of %s for deal %s failed", template_key, deal_id)
            return DispatchResult.failure(str(e) or type(e).__name__)

    async def _dispatch(
        self, deal_id: str, template_key: str, context_date: date | None
    ) -> DispatchResult:
        deal = await self.deal_repo.get_by_id(deal_id)
        if deal is None:
            error = f"Deal not found: {deal_id}"
            logger.error(error)
            return DispatchResult.failure(error)

        template = await self.template_repo.get_active_by_key(template_key)
        if template is None:
            error = f"Template not found or inactive: {template_key}"
            logger.error(error)
            return DispatchResult.failure(error)

        existing = await self.email_log_repo.get_by_key(deal_id, template_key, context_date)
        if existing is not None:
            reason = f"Already sent (log id: {existing.id})"
            logger.info("%s: %s for deal %s", reason, template_key, deal_id)
            return DispatchResult.skip(reason)

        if template.audience_type == AudienceType.INTERNAL_CHAT:
            return await self._internal_chat(deal, template, context_date)

        recipients = await self.recipient_resolver.resolve(deal, template.audience_type)
        if not recipients:
            reason = f"No recipients found for {template.audience_type}"
            logger.warning("%s (template=%s, deal=%s)", reason, template_key, deal_id)
            # Recorded as failed so the key is not retried every tick.
            await self._record_failed(deal_id, template_key, context_date, reason)
            return DispatchResult.skip(reason)

        data = self.renderer.build_template_data(
            deal,
            {
                "template_key": template_key,
                "recipient_names": ", ".join(r.name for r in recipients if r.name),
            },
        )
        subject, html = self.renderer.render_email(
            template.subject_template, template.body_html, data
        )
        text = self.renderer.render(template.body_text, data) if template.body_text else None

        claim = await self.email_log_repo.claim(deal_id, template_key, context_date)
        if claim is None:
            reason = "Already sent (claimed by a concurrent dispatch)"
            logger.info("%s: %s for deal %s", reason, template_key, deal_id)
            return DispatchResult.skip(reason)

        recipient_emails = [r.email for r in recipients]
        # From here on the claimed row must end up sent or failed.
        try:
            result = await self.transport.send(recipients, subject, html, text)
        except Exception as e:
            logger.exception("Mail transport raised for %s (deal %s)", template_key, deal_id)
            result = SendResult(success=False, error=str(e) or type(e).__name__)
        if not result.success:
            error = result.error or "Failed to send email"
            logger.error("Failed to send %s for deal %s: %s", template_key, deal_id, error)
            await self._finalize(
                claim.id,
                EmailLogStatus.FAILED.value,
                recipient_emails=recipient_emails,
                error_message=error,
            )
            await self._alert_failure(deal_id, template_key, error)
            return DispatchResult.failure(error)

        await self._finalize(claim.id, EmailLogStatus.SENT.value, recipient_emails=recipient_emails)
        logger.info(
            "Sent %s to %d recipient(s) for deal %s (message_id=%s)",
            template_key,
            len(recipients),
            deal_id,
            result.message_id,
        )
        return DispatchResult.delivered()

    async def _internal_chat(
        self, deal: DealResult, template: EmailTemplateResult, context_date: date | None
    ) -> DispatchResult:
        """Post the rendered message to the deal timeline instead of emailing it."""
        claim = await self.email_log_repo.claim(deal.id, template.key, context_date)
        if claim is None:
            return DispatchResult.skip("Already sent (claimed by a concurrent dispatch)")
        data = self.renderer.build_template_data(deal, {"template_key": template.key})
        subject, message = self.renderer.render_email(
            template.subject_template, template.body_text or template.body_html, data
        )
        try:
            await self.timeline_repo.record(
                deal.id,
                TimelineEventType.INTERNAL_CHAT.value,
                subject,
                {
                    "template_key": template.key,
                    "message": message,
                    "context_date": context_date.isoformat() if context_date else None,
                },
            )
        except Exception as e:
            logger.error("Failed to log internal chat %s for deal %s: %s", template.key, deal.id, e)
            await self._finalize(claim.id, EmailLogStatus.FAILED.value, error_message=str(e))
            return DispatchResult.failure(str(e) or "Failed to log internal chat")
        await self._finalize(claim.id, EmailLogStatus.SENT.value)
        logger.info("Logged internal chat %s for deal %s", template.key, deal.id)
        return DispatchResult.delivered()

    async def _record_failed(
        self, deal_id: str, template_key: str, context_date: date | None, reason: str
    ) -> None:
        try:
            await self.email_log_repo.record(
                deal_id,
                template_key,
                context_date,
                EmailLogStatus.FAILED.value,
                error_message=reason,
            )
        except Exception as e:
            logger.error("Failed to insert email log for %s: %s", template_key, e)

    async def _finalize(
        self,
        log_id: str,
        status: str,
        *,
        recipient_emails: list[str] | None = None,
        error_message: str | None = None,
    ) -> None:
        try:
            await self.email_log_repo.finalize(
                log_id,
                status,
                recipient_emails=recipient_emails or None,
                error_message=error_message,
            )
        except Exception as e:
            logger.error("Failed to finalize email log %s as %s: %s", log_id, status, e)

    async def _alert_failure(self, deal_id: str, template_key: str, error: str) -> None:
        try:
            await self.alert_repo.create_alert(
                deal_id,
                AlertType.EMAIL_FAILED.value,
                AlertLevel.WARNING.value,
                f"Failed to send {template_key} email: {error}",
            )
        except Exception as e:
            logger.error("Failed to create alert for %s (deal %s): %s", template_key, deal_id, e)


async def dispatch_batch(
    requests: Sequence[DispatchRequest],
    dispatcher_scope: DispatcherScope,
    max_concurrency: int = 5,
) -> BatchDispatchResult:
    """Dispatch requests concurrently, each inside its own dispatcher scope.

    ``dispatcher_scope`` yields a dispatcher bound to a fresh unit of work
    (session). At most ``max_concurrency`` dispatches run at once.
    Results keep the order of ``requests``.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _one(request: DispatchRequest) -> DispatchResult:
        async with semaphore:
            try:
                async with dispatcher_scope() as dispatcher:
                    return await dispatcher.dispatch(
                        request.deal_id, request.template_key, request.context_date
                    )
            except Exception as e:
                logger.exception(
                    "Batch dispatch of %s for deal %s failed",
                    request.template_key,
                    request.deal_id,
                )
                return DispatchResult.failure(str(e) or type(e).__name__)

    batch = BatchDispatchResult()
    for result in await asyncio.gather(*(_one(r) for r in requests)):
        batch.add(result)
    logger.info(
        "Batch dispatch: total=%d sent=%d skipped=%d failed=%d",
        batch.total,
        batch.sent,
        batch.skipped,
        batch.failed,
    )
    return batch
