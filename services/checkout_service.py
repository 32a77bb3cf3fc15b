"""Stripe checkout session creation."""

import logging
from uuid import UUID

import stripe

from core.exceptions import ConflictError, ExternalAPIError, ValidationError
from database.service import SubscriptionGateway
from schemas.subscription import CheckoutSessionResponse
from services.tier_resolver import TierResolver

logger = logging.getLogger(__name__)


class CheckoutService:
    """Creates subscription checkout sessions whose metadata the webhook handlers rely on."""

    def __init__(
        self,
        stripe_client: stripe.StripeClient,
        tier_resolver: TierResolver,
        gateway: SubscriptionGateway,
    ) -> None:
        self.stripe_client = stripe_client
        self.tier_resolver = tier_resolver
        self.gateway = gateway

    async def create_checkout_session(
        self, price_id: str, user_id: UUID, origin: str
    ) -> CheckoutSessionResponse:
        """
        Create a Stripe checkout session for a subscription.

        The user and price travel in the session and subscription metadata so
        that the resulting webhook events can be attributed to the profile.

        Args:
            price_id: Stripe price ID of a configured plan
            user_id: Profile ID of the purchaser
            origin: Front-end base URL for the success and cancel redirects

        Returns:
            Session ID and hosted checkout URL

        Raises:
            ValidationError: The price is not one of the configured plans
            ConflictError: The user already has a non-canceled subscription
            ExternalAPIError: Stripe rejected the request or was unreachable
        """
        if not self.tier_resolver.is_purchasable(price_id):
            raise ValidationError("Unknown price", {"priceId": price_id})

        current = await self.gateway.find_current_subscription(user_id)
        if current is not None:
            logger.warning(
                f"User {user_id} already has subscription {current.stripe_subscription_id} "
                f"({current.status.value}); checkout refused"
            )
            raise ConflictError(
                "An active subscription already exists",
                {
                    "stripe_subscription_id": current.stripe_subscription_id,
                    "status": current.status.value,
                },
            )

        base_url = origin.rstrip("/")
        metadata = {"userId": str(user_id), "priceId": price_id}

        logger.info(f"Creating checkout session for user {user_id}, price {price_id}")

        try:
            session = await self.stripe_client.checkout.sessions.create_async(
                params={
                    "mode": "subscription",
                    "line_items": [{"price": price_id, "quantity": 1}],
                    "success_url": f"{base_url}/dashboard/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
                    "cancel_url": f"{base_url}/pricing?canceled=true",
                    "metadata": metadata,
                    "client_reference_id": str(user_id),
                    "allow_promotion_codes": True,
                    "billing_address_collection": "auto",
                    "subscription_data": {"metadata": metadata},
                }
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe error creating checkout session: {type(e).__name__} "
                f"code={e.code} status={e.http_status}: {e.user_message or e}"
            )
            raise ExternalAPIError(
                "Stripe",
                e.user_message or "Failed to create checkout session",
                status_code=e.http_status,
                details={"stripe_code": e.code},
            ) from e

        logger.info(f"Checkout session created: {session.id} for user {user_id}")
        return CheckoutSessionResponse(session_id=session.id, url=session.url)
