"""Mail transport factory: Resend when configured, log-only otherwise."""

from __future__ import annotations

import httpx

from dealflow.application.interfaces.services import IMailTransport
from dealflow.core.config import Settings
from dealflow.infrastructure.external.email.log_only_transport import LogOnlyMailTransport
from dealflow.infrastructure.external.email.resend_transport import ResendMailTransport
from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TEST_SENDER = "onboarding@resend.dev"


def create_mail_transport(
    settings: Settings, *, http_client: httpx.AsyncClient | None = None
) -> IMailTransport:
    """Build the transport selected by EMAIL_DRY_RUN / RESEND_API_KEY.

    Args:
        settings: Application settings.
        http_client: Optional shared httpx.AsyncClient for connection reuse.

    Returns:
        ResendMailTransport, or LogOnlyMailTransport in dry-run mode or when
        no API key is configured.
    """
    from_address = settings.email_from_address or DEFAULT_TEST_SENDER
    api_key = settings.resend_api_key.get_secret_value() if settings.resend_api_key else ""
    if settings.email_dry_run or not api_key:
        if not settings.email_dry_run:
            logger.warning("RESEND_API_KEY not set; emails will be logged, not sent")
        return LogOnlyMailTransport(sender=f"{settings.email_from_name} <{from_address}>")
    return ResendMailTransport(
        api_key,
        from_address,
        from_name=settings.email_from_name,
        api_url=settings.resend_api_url,
        timeout=settings.email_timeout_seconds,
        http_client=http_client,
    )
