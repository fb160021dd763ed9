"""Resend mail transport: sends transaction emails via the Resend HTTP API."""

from __future__ import annotations

import re

import httpx

from dealflow.application.dtos.notification import Recipient, SendResult
from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0

_EMAIL_RE = re.compile(r"^[^@\s<>]+@[^@\s<>]+$")


def format_recipient(recipient: Recipient) -> str:
    """'Name <email>' when a name is known, else the bare address."""
    return f"{recipient.name} <{recipient.email}>" if recipient.name else recipient.email


def valid_recipients(recipients: list[Recipient]) -> list[Recipient]:
    """Drop recipients whose address is empty or malformed."""
    return [r for r in recipients if r.email and _EMAIL_RE.match(r.email.strip())]


class ResendMailTransport:
    """IMailTransport over the Resend API. Single attempt; never raises.

    Pass a shared httpx.AsyncClient (created in the app lifespan) for
    connection reuse; otherwise a client is created per send.
    """

    def __init__(
        self,
        api_key: str,
        from_address: str,
        *,
        from_name: str | None = None,
        api_url: str = RESEND_SEND_URL,
        timeout: float = RESEND_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = f"{from_name} <{from_address}>" if from_name else from_address
        self._api_url = api_url
        self._timeout = timeout
        self._http_client = http_client

    async def send(
        self,
        recipients: list[Recipient],
        subject: str,
        html: str,
        text: str | None = None,
    ) -> SendResult:
        if not recipients:
            return SendResult(success=False, error="No recipients provided")
        valid = valid_recipients(recipients)
        if not valid:
            return SendResult(success=False, error="No valid email addresses provided")

        payload: dict[str, object] = {
            "from": self._sender,
            "to": [format_recipient(r) for r in valid],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._api_url, headers=headers, json=payload, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._api_url, headers=headers, json=payload)
        except httpx.TimeoutException:
            logger.warning("Resend timeout sending %r", subject)
            return SendResult(success=False, error="Connection timeout")
        except httpx.HTTPError as e:
            logger.exception("Resend connection error sending %r", subject)
            return SendResult(success=False, error=f"Connection error: {e.__class__.__name__}")

        if 200 <= response.status_code < 300:
            message_id = None
            try:
                data = response.json()
                if isinstance(data, dict):
                    message_id = data.get("id")
            except ValueError:
                pass
            logger.info("Email sent to %d recipient(s): %s", len(valid), subject)
            return SendResult(success=True, message_id=message_id)

        error_detail = None
        try:
            data = response.json()
            if isinstance(data, dict):
                error_detail = data.get("message") or data.get("error")
        except ValueError:
            pass
        error_msg = f"Resend API error: {response.status_code}"
        if error_detail:
            error_msg = f"{error_msg} ({error_detail})"
        logger.error("%s sending %r", error_msg, subject)
        return SendResult(success=False, error=error_msg)
