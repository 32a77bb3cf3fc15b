"""Stripe webhook signature verification."""

import logging

import stripe

from core.exceptions import InvalidSignatureError
from schemas.events import WebhookEvent
from services.webhook_decoder import decode_event

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """
    Verifies that a webhook body was signed by Stripe with our endpoint secret.

    Verification runs over the untouched request bytes; the body is only
    parsed after the signature checks out.
    """

    def __init__(self, secret: str, tolerance: int = 300) -> None:
        self._secret = secret
        self._tolerance = tolerance

    def verify(self, payload: bytes, signature_header: str | None) -> None:
        """
        Check the ``Stripe-Signature`` header against the raw body.

        Raises:
            InvalidSignatureError: header absent, malformed, stale, or not matching
        """
        if not signature_header:
            raise InvalidSignatureError("Missing stripe-signature header")
        if not self._secret:
            # An empty secret would make every forged signature "verifiable"
            raise InvalidSignatureError("Webhook signing secret not configured")

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidSignatureError("Webhook body is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                body, signature_header, self._secret, self._tolerance
            )
        except stripe.SignatureVerificationError as e:
            raise InvalidSignatureError(f"Invalid signature: {e}") from e

    def construct_event(self, payload: bytes, signature_header: str | None) -> WebhookEvent:
        """Verify the signature, then decode the body into a typed event."""
        self.verify(payload, signature_header)
        event = decode_event(payload)
        logger.info(
            f"Webhook signature verified. Event type: {event.type}, Event ID: {event.id}"
        )
        return event
