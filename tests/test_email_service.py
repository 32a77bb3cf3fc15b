"""
Email Tests
===========

Resend client and EmailService over httpx.MockTransport, plus the
POST /api/v1/email/send endpoint.
"""

import json
from datetime import UTC, datetime

import httpx
import pytest

from api.dependencies import get_email_service
from clients.resend_client import ResendClient
from core.exceptions import ConfigurationError, EmailDeliveryError
from schemas.email import SendEmailRequest
from schemas.events import InvoiceDetails
from services.email_service import EmailService

SEND_URL = "/api/v1/email/send"


class RecordingTransport:
    """Collects outgoing requests and answers with a canned response."""

    def __init__(self, status_code: int = 200, body: dict | None = None, error: Exception | None = None):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body if body is not None else {"id": "email_123"}
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _service(transport: RecordingTransport, api_key: str = "re_test") -> EmailService:
    client = ResendClient(
        api_key=api_key,
        api_url="https://api.resend.test",
        transport=httpx.MockTransport(transport.handler),
    )
    return EmailService(client, default_from="onboarding@resend.dev")


class TestEmailService:

    @pytest.mark.asyncio
    async def test_sends_through_resend(self):
        transport = RecordingTransport()

        data = await _service(transport).send_email(
            SendEmailRequest(to="user@example.com", subject="Welcome", html="<h1>Hi</h1>")
        )

        assert data.id == "email_123"
        request = transport.requests[0]
        assert request.url == "https://api.resend.test/emails"
        assert request.headers["Authorization"] == "Bearer re_test"
        assert transport.payloads[0] == {
            "from": "onboarding@resend.dev",
            "to": ["user@example.com"],
            "subject": "Welcome",
            "html": "<h1>Hi</h1>",
        }

    @pytest.mark.asyncio
    async def test_optional_headers_are_forwarded(self):
        transport = RecordingTransport()

        await _service(transport).send_email(
            SendEmailRequest.model_validate(
                {
                    "to": ["a@example.com", "b@example.com"],
                    "subject": "Report",
                    "html": "<p>Report</p>",
                    "from": "reports@example.com",
                    "replyTo": "support@example.com",
                    "cc": ["c@example.com"],
                    "bcc": ["d@example.com"],
                }
            )
        )

        payload = transport.payloads[0]
        assert payload["from"] == "reports@example.com"
        assert payload["to"] == ["a@example.com", "b@example.com"]
        assert payload["reply_to"] == "support@example.com"
        assert payload["cc"] == ["c@example.com"]
        assert payload["bcc"] == ["d@example.com"]

    @pytest.mark.asyncio
    async def test_provider_rejection_raises_with_status(self):
        transport = RecordingTransport(422, {"name": "validation_error", "message": "Invalid `to`"})

        with pytest.raises(EmailDeliveryError) as exc_info:
            await _service(transport).send_email(
                SendEmailRequest(to="bad", subject="s", html="<p>x</p>")
            )

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["provider_response"]["name"] == "validation_error"

    @pytest.mark.asyncio
    async def test_timeout_raises_delivery_error(self):
        transport = RecordingTransport(error=httpx.ReadTimeout("timed out"))

        with pytest.raises(EmailDeliveryError) as exc_info:
            await _service(transport).send_email(
                SendEmailRequest(to="user@example.com", subject="s", html="<p>x</p>")
            )

        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        transport = RecordingTransport()

        with pytest.raises(ConfigurationError):
            await _service(transport, api_key="").send_email(
                SendEmailRequest(to="user@example.com", subject="s", html="<p>x</p>")
            )

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_payment_failed_notice(self):
        transport = RecordingTransport()
        invoice = InvoiceDetails(
            invoice_id="in_1",
            amount_due=1900,
            currency="eur",
            next_payment_attempt=datetime(2026, 2, 13, tzinfo=UTC),
            hosted_invoice_url="https://invoice.stripe.com/i/in_1",
        )

        await _service(transport).send_payment_failed_notice(
            "u1@example.com", invoice, full_name="Ada <Lovelace>"
        )

        payload = transport.payloads[0]
        assert payload["to"] == ["u1@example.com"]
        assert "payment failed" in payload["subject"].lower()
        assert "19.00 EUR" in payload["html"]
        assert "February 13, 2026" in payload["html"]
        assert "https://invoice.stripe.com/i/in_1" in payload["html"]
        assert "Ada &lt;Lovelace&gt;" in payload["html"]


class TestSendEmailEndpoint:

    @pytest.fixture
    def transport(self) -> RecordingTransport:
        return RecordingTransport()

    @pytest.fixture
    def wired_app(self, app, transport):
        app.dependency_overrides[get_email_service] = lambda: _service(transport)
        return app

    @pytest.mark.asyncio
    async def test_sends_email(self, wired_app, client, auth_headers, transport):
        response = await client.post(
            SEND_URL,
            json={"to": "user@example.com", "subject": "Hello", "html": "<p>Hi</p>"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == "email_123"
        assert body["message"]
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"subject": "Hello", "html": "<p>Hi</p>"},
            {"to": [], "subject": "Hello", "html": "<p>Hi</p>"},
            {"to": "user@example.com", "html": "<p>Hi</p>"},
            {"to": "user@example.com", "subject": "Hello"},
        ],
    )
    async def test_missing_fields(self, wired_app, client, auth_headers, transport, body):
        response = await client.post(SEND_URL, json=body, headers=auth_headers)

        assert response.status_code == 400
        assert "error" in response.json()
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_provider_status_is_passed_through(self, app, client, auth_headers):
        transport = RecordingTransport(403, {"name": "invalid_from_address", "message": "Domain not verified"})
        app.dependency_overrides[get_email_service] = lambda: _service(transport)

        response = await client.post(
            SEND_URL,
            json={"to": "user@example.com", "subject": "Hello", "html": "<p>Hi</p>"},
            headers=auth_headers,
        )

        assert response.status_code == 403
        assert response.json() == {
            "error": "Failed to send email",
            "details": {"name": "invalid_from_address", "message": "Domain not verified"},
        }

    @pytest.mark.asyncio
    async def test_requires_bearer_token(self, wired_app, client, transport):
        response = await client.post(
            SEND_URL, json={"to": "user@example.com", "subject": "Hello", "html": "<p>Hi</p>"}
        )

        assert response.status_code == 401
        assert transport.requests == []
