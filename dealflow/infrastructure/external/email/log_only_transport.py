"""Dry-run mail transport: logs instead of sending."""

from __future__ import annotations

import logging

from dealflow.application.dtos.notification import Recipient, SendResult
from dealflow.infrastructure.external.email.resend_transport import (
    format_recipient,
    valid_recipients,
)
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.utils.generators import dry_run_message_id

logger = get_logger(__name__)


class LogOnlyMailTransport:
    """IMailTransport implementation that logs instead of sending email.

    Used when EMAIL_DRY_RUN is set or no Resend key is configured. Returns a
    synthetic ``dry-run-<ms>`` message id so callers record the email as sent.
    """

    def __init__(self, sender: str = "TC Team <onboarding@resend.dev>") -> None:
        self.sender = sender

    async def send(
        self,
        recipients: list[Recipient],
        subject: str,
        html: str,
        text: str | None = None,
    ) -> SendResult:
        """Log the email; no actual email sent."""
        if not recipients:
            return SendResult(success=False, error="No recipients provided")
        valid = valid_recipients(recipients)
        if not valid:
            return SendResult(success=False, error="No valid email addresses provided")
        logger.info(
            "[EMAIL DRY-RUN] Would send from %s to %s (subject=%r)",
            self.sender,
            [format_recipient(r) for r in valid],
            (subject or "")[:80],
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("[EMAIL DRY-RUN] body (first 500 chars): %s", (html or "")[:500])
        return SendResult(success=True, message_id=dry_run_message_id())
