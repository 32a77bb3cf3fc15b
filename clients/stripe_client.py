"""Stripe API client module."""

import stripe

from core.config import settings


def create_stripe_client(api_key: str | None = None) -> stripe.StripeClient:
    """Create a Stripe client bound to the configured secret key."""
    return stripe.StripeClient(api_key or settings.stripe_secret_key)
