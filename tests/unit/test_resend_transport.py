"""ResendMailTransport over an httpx.MockTransport."""

import json

import httpx
import pytest

from dealflow.application.dtos.notification import Recipient
from dealflow.infrastructure.external.email.resend_transport import ResendMailTransport

RECIPIENTS = [Recipient("ana@escrow.test", "Ana Ruiz"), Recipient("ops@escrow.test")]


def _transport(handler) -> ResendMailTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResendMailTransport(
        "re_test_key", "tc@dealflow.test", from_name="TC Team", http_client=client
    )


async def test_successful_send_posts_expected_payload():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    result = await _transport(handler).send(RECIPIENTS, "Escrow opened", "<p>Hi</p>", "Hi")

    assert result.success
    assert result.message_id == "email_123"
    assert captured["auth"] == "Bearer re_test_key"
    assert captured["url"] == "https://api.resend.com/emails"
    assert captured["body"] == {
        "from": "TC Team <tc@dealflow.test>",
        "to": ["Ana Ruiz <ana@escrow.test>", "ops@escrow.test"],
        "subject": "Escrow opened",
        "html": "<p>Hi</p>",
        "text": "Hi",
    }


async def test_invalid_addresses_are_dropped_before_sending():
    sent_to = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent_to.extend(json.loads(request.content)["to"])
        return httpx.Response(200, json={"id": "email_1"})

    result = await _transport(handler).send(
        [Recipient("not-an-email"), Recipient("ok@escrow.test")], "S", "<p>b</p>"
    )

    assert result.success
    assert sent_to == ["ok@escrow.test"]


async def test_api_error_includes_status_and_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    result = await _transport(handler).send(RECIPIENTS, "S", "<p>b</p>")

    assert not result.success
    assert result.error == "Resend API error: 422 (Invalid `to` field)"


async def test_timeout_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    result = await _transport(handler).send(RECIPIENTS, "S", "<p>b</p>")

    assert result.error == "Connection timeout"


async def test_connection_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    result = await _transport(handler).send(RECIPIENTS, "S", "<p>b</p>")

    assert result.error == "Connection error: ConnectError"


@pytest.mark.parametrize(
    ("recipients", "error"),
    [
        ([], "No recipients provided"),
        ([Recipient("")], "No valid email addresses provided"),
    ],
)
async def test_no_usable_recipients(recipients, error):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("transport must not be called")

    result = await _transport(handler).send(recipients, "S", "<p>b</p>")

    assert not result.success
    assert result.error == error
