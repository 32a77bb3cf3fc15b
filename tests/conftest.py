"""Shared test configuration and fixtures."""

import os

# Settings are read at import time; configure them before any app module loads
os.environ["SUPABASE_JWT_SECRET"] = "test-supabase-jwt-secret-with-enough-length"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_PRICE_ID_PRO"] = "price_pro_monthly"
os.environ["STRIPE_PRICE_ID_ENTERPRISE"] = "price_enterprise_monthly"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RESEND_API_KEY"] = "re_test_dummy"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from core.constants import SubscriptionTier  # noqa: E402
from schemas.subscription import Profile  # noqa: E402
from services.subscription_service import SubscriptionService  # noqa: E402
from services.tier_resolver import TierResolver  # noqa: E402
from tests.factories import (  # noqa: E402
    PRICE_TIERS,
    USER_EMAIL,
    USER_ID,
    FakeNotifier,
    InMemoryGateway,
    make_token,
)


@pytest.fixture
def tier_resolver() -> TierResolver:
    return TierResolver(PRICE_TIERS)


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway(
        profiles=[
            Profile(
                id=USER_ID,
                email=USER_EMAIL,
                full_name="Ada Lovelace",
                subscription_tier=SubscriptionTier.FREE,
            )
        ]
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def service(gateway, tier_resolver, notifier) -> SubscriptionService:
    return SubscriptionService(gateway, tier_resolver, notifier)  # type: ignore[arg-type]


@pytest.fixture
def app():
    from api.app import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}
