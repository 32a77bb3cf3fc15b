"""
Webhook Endpoint Tests
======================

POST /api/v1/billing/webhook with a signed raw body; the dispatcher is wired
to the in-memory gateway through dependency overrides.
"""

import pytest

from api.dependencies import get_dispatcher
from core.constants import SubscriptionStatus, SubscriptionTier
from core.exceptions import PersistenceError
from services.dispatcher import ReconciliationDispatcher
from tests.factories import (
    USER_ID,
    checkout_completed,
    encode,
    invoice_event,
    sign_payload,
    subscription_event,
)

WEBHOOK_URL = "/api/v1/billing/webhook"


@pytest.fixture
def wired_app(app, service):
    app.dependency_overrides[get_dispatcher] = lambda: ReconciliationDispatcher(service)
    return app


async def _post(client, payload: bytes, header: str | None):
    headers = {"Content-Type": "application/json"}
    if header is not None:
        headers["Stripe-Signature"] = header
    return await client.post(WEBHOOK_URL, content=payload, headers=headers)


class TestWebhookEndpoint:

    @pytest.mark.asyncio
    async def test_applies_signed_event(self, wired_app, client, gateway):
        payload = encode(checkout_completed())

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert gateway.subscriptions["sub_S1"].status == SubscriptionStatus.ACTIVE
        assert gateway.tier_of(USER_ID) == SubscriptionTier.PRO

    @pytest.mark.asyncio
    async def test_unknown_event_is_acknowledged(self, wired_app, client, gateway):
        payload = encode({"id": "evt_1", "type": "foo.bar", "data": {"object": {}}})

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_missing_metadata_is_acknowledged(self, wired_app, client, gateway):
        payload = encode(subscription_event(user_id=None))

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 200
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_missing_signature_is_rejected(self, wired_app, client, gateway):
        response = await _post(client, encode(checkout_completed()), None)

        assert response.status_code == 400
        assert "error" in response.json()
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_forged_signature_is_rejected(self, wired_app, client, gateway):
        payload = encode(checkout_completed())
        header = sign_payload(payload, secret="whsec_attacker")

        response = await _post(client, payload, header)

        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_signature"
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_tampered_body_is_rejected(self, wired_app, client, gateway):
        payload = encode(checkout_completed())
        header = sign_payload(payload)

        response = await _post(client, payload.replace(b"sub_S1", b"sub_S9"), header)

        assert response.status_code == 400
        assert gateway.writes == []

    @pytest.mark.asyncio
    async def test_signed_non_json_is_rejected(self, wired_app, client):
        payload = b"definitely not json"

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_payload"

    @pytest.mark.asyncio
    async def test_out_of_range_timestamps_are_acknowledged(self, wired_app, client, gateway):
        event = subscription_event(period_end=10**20)
        event["created"] = 10**20
        payload = encode(event)

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 200
        assert gateway.subscriptions["sub_S1"].current_period_end is None

    @pytest.mark.asyncio
    async def test_persistence_failure_returns_500(self, wired_app, client, gateway):
        gateway.fail_with = PersistenceError("Failed to upsert subscription")
        payload = encode(checkout_completed())

        response = await _post(client, payload, sign_payload(payload))

        assert response.status_code == 500
        assert response.json() == {
            "error": "Webhook processing failed",
            "reason": "persistence_error",
        }

    @pytest.mark.asyncio
    async def test_redelivery_after_failure_converges(self, wired_app, client, gateway):
        payload = encode(checkout_completed())
        header = sign_payload(payload)

        gateway.fail_with = PersistenceError("Failed to upsert subscription")
        assert (await _post(client, payload, header)).status_code == 500

        gateway.fail_with = None
        assert (await _post(client, payload, header)).status_code == 200

        assert len(gateway.subscriptions) == 1
        assert gateway.tier_of(USER_ID) == SubscriptionTier.PRO

    @pytest.mark.asyncio
    async def test_invoice_failure_sends_notice(self, wired_app, client, gateway, notifier):
        for event in (checkout_completed(), invoice_event("invoice.payment_failed")):
            payload = encode(event)
            response = await _post(client, payload, sign_payload(payload))
            assert response.status_code == 200

        assert gateway.subscriptions["sub_S1"].status == SubscriptionStatus.PAST_DUE
        assert len(notifier.sent) == 1
