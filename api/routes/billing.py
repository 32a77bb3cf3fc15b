"""Billing routes: Stripe webhook, checkout and subscription status."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from api.dependencies import (
    get_checkout_service,
    get_dispatcher,
    get_gateway,
    get_signature_verifier,
)
from core.auth import get_current_user
from core.config import settings
from core.constants import SubscriptionTier
from core.exceptions import AuthenticationError, AuthorizationError
from core.signature import SignatureVerifier
from database.service import SubscriptionGateway
from schemas.auth import AuthenticatedUser
from schemas.subscription import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    SubscriptionStatusResponse,
)
from schemas.webhook import WebhookAck, WebhookErrorResponse
from services.checkout_service import CheckoutService
from services.dispatcher import ReconciliationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


def _caller_id(current_user: AuthenticatedUser) -> UUID:
    try:
        return UUID(current_user.user_id)
    except ValueError as e:
        raise AuthenticationError("Token subject is not a user ID") from e


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={
        400: {"model": WebhookErrorResponse},
        500: {"model": WebhookErrorResponse},
    },
)
async def stripe_webhook(
    request: Request,
    verifier: SignatureVerifier = Depends(get_signature_verifier),  # noqa: B008
    dispatcher: ReconciliationDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> WebhookAck | JSONResponse:
    """
    Handle Stripe webhook events.

    Security: the signature is checked against the raw body before it is
    parsed. A 2xx tells Stripe the event is settled, including events that
    were skipped or ignored; a 500 makes Stripe redeliver it later.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    logger.info("Received Stripe webhook request")

    # InvalidSignatureError / InvalidPayloadError are answered with 400 by the app
    event = verifier.construct_event(payload, sig_header)

    result = await dispatcher.dispatch(event)
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=WebhookErrorResponse(
                error="Webhook processing failed", reason=result.reason
            ).model_dump(mode="json"),
        )

    return WebhookAck()


@router.post("/checkout", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    request: Request,
    checkout_request: CheckoutSessionRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),  # noqa: B008
    checkout_service: CheckoutService = Depends(get_checkout_service),  # noqa: B008
) -> CheckoutSessionResponse:
    """
    Create a Stripe checkout session for a subscription plan.

    Returns the session ID and the URL the front end should redirect to, or
    409 when the caller already has a non-canceled subscription.
    """
    if checkout_request.user_id != _caller_id(current_user):
        logger.warning(
            f"User {current_user.user_id} attempted checkout for {checkout_request.user_id}"
        )
        raise AuthorizationError("Cannot start a checkout for another user")

    origin = request.headers.get("origin") or settings.app_url

    return await checkout_service.create_checkout_session(
        price_id=checkout_request.price_id,
        user_id=checkout_request.user_id,
        origin=origin,
    )


@router.get("/subscription", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    current_user: AuthenticatedUser = Depends(get_current_user),  # noqa: B008
    gateway: SubscriptionGateway = Depends(get_gateway),  # noqa: B008
) -> SubscriptionStatusResponse:
    """
    Get the current user's subscription status.

    Returns the tier stored on the profile and the live subscription, if any.
    """
    user_id = _caller_id(current_user)

    profile = await gateway.get_profile(user_id)
    subscription = await gateway.find_current_subscription(user_id)

    return SubscriptionStatusResponse(
        subscription_tier=profile.subscription_tier if profile else SubscriptionTier.FREE,
        subscription=subscription,
    )
