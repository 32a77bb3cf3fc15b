"""Schemas package for request/response validation."""

from .email import EmailData, SendEmailRequest, SendEmailResponse
from .events import WebhookEvent
from .subscription import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    Profile,
    SubscriptionChanges,
    SubscriptionRecord,
    SubscriptionStatusResponse,
)
from .webhook import HandlerOutcome, HandlerResult, WebhookAck

__all__ = [
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "EmailData",
    "HandlerOutcome",
    "HandlerResult",
    "Profile",
    "SendEmailRequest",
    "SendEmailResponse",
    "SubscriptionChanges",
    "SubscriptionRecord",
    "SubscriptionStatusResponse",
    "WebhookAck",
    "WebhookEvent",
]
