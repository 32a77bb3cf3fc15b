"""FastAPI dependency providers for the billing routes."""

from functools import lru_cache

import stripe
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clients.resend_client import create_resend_client
from clients.stripe_client import create_stripe_client
from core.config import settings
from core.signature import SignatureVerifier
from database.connection import get_db_session
from database.service import DatabaseService, SubscriptionGateway
from services.checkout_service import CheckoutService
from services.dispatcher import ReconciliationDispatcher
from services.email_service import EmailService
from services.subscription_service import SubscriptionService
from services.tier_resolver import TierResolver


@lru_cache
def get_signature_verifier() -> SignatureVerifier:
    return SignatureVerifier(settings.stripe_webhook_secret, settings.stripe_webhook_tolerance)


@lru_cache
def get_tier_resolver() -> TierResolver:
    return TierResolver.from_settings(settings)


@lru_cache
def get_stripe_client() -> stripe.StripeClient:
    return create_stripe_client()


def get_email_service() -> EmailService:
    return EmailService(create_resend_client(), settings.resend_from_email)


async def get_gateway(
    db_session: AsyncSession = Depends(get_db_session),  # noqa: B008
) -> SubscriptionGateway:
    return DatabaseService(db_session)


def get_dispatcher(
    gateway: SubscriptionGateway = Depends(get_gateway),  # noqa: B008
    tier_resolver: TierResolver = Depends(get_tier_resolver),  # noqa: B008
    email_service: EmailService = Depends(get_email_service),  # noqa: B008
) -> ReconciliationDispatcher:
    """Dispatcher wired to a per-request gateway."""
    return ReconciliationDispatcher(SubscriptionService(gateway, tier_resolver, email_service))


def get_checkout_service(
    stripe_client: stripe.StripeClient = Depends(get_stripe_client),  # noqa: B008
    tier_resolver: TierResolver = Depends(get_tier_resolver),  # noqa: B008
    gateway: SubscriptionGateway = Depends(get_gateway),  # noqa: B008
) -> CheckoutService:
    return CheckoutService(stripe_client, tier_resolver, gateway)
