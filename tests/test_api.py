"""
API Tests
=========

Health probes, bearer authentication and the subscription status route.
"""

import time
from unittest.mock import AsyncMock, patch

import pytest

from api.dependencies import get_gateway
from core.constants import SubscriptionTier
from services.webhook_decoder import decode_event
from tests.factories import USER_ID, encode, make_token, subscription_event

STATUS_URL = "/api/v1/billing/subscription"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/v1/health/live")

        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_readiness_reports_database_outage(self, client):
        unhealthy = {"status": "unhealthy", "message": "Database error"}
        with patch("api.routes.health.check_database_health", AsyncMock(return_value=unhealthy)):
            response = await client.get("/api/v1/health/ready")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_readiness_ok(self, client):
        healthy = {"status": "healthy", "message": "Database connection OK"}
        with patch("api.routes.health.check_database_health", AsyncMock(return_value=healthy)):
            response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestSubscriptionStatus:

    @pytest.fixture
    def wired_app(self, app, gateway):
        app.dependency_overrides[get_gateway] = lambda: gateway
        return app

    @pytest.mark.asyncio
    async def test_free_user_without_subscription(self, wired_app, client, auth_headers):
        response = await client.get(STATUS_URL, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"subscription_tier": "free", "subscription": None}

    @pytest.mark.asyncio
    async def test_reports_current_subscription(self, wired_app, client, auth_headers, service):
        await service.handle_subscription_updated(decode_event(encode(subscription_event())))

        response = await client.get(STATUS_URL, headers=auth_headers)

        data = response.json()
        assert data["subscription_tier"] == SubscriptionTier.PRO.value
        assert data["subscription"]["stripe_subscription_id"] == "sub_S1"
        assert data["subscription"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_expired_token(self, wired_app, client):
        token = make_token(exp=int(time.time()) - 60)

        response = await client.get(STATUS_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "token_expired"

    @pytest.mark.asyncio
    async def test_wrong_audience(self, wired_app, client):
        token = make_token(aud="anon")

        response = await client.get(STATUS_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self, wired_app, client):
        token = make_token(sub="service-account")

        response = await client.get(STATUS_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_identifies_user(self, wired_app, client, gateway):
        other = make_token(sub="00000000-0000-0000-0000-0000000000b2")

        response = await client.get(STATUS_URL, headers={"Authorization": f"Bearer {other}"})

        assert response.json()["subscription_tier"] == "free"
        assert gateway.tier_of(USER_ID) == SubscriptionTier.FREE
