"""Services package for business logic."""

from .checkout_service import CheckoutService
from .dispatcher import ReconciliationDispatcher
from .email_service import EmailService
from .subscription_service import SubscriptionService
from .tier_resolver import TierResolver
from .webhook_decoder import decode_event

__all__ = [
    "CheckoutService",
    "EmailService",
    "ReconciliationDispatcher",
    "SubscriptionService",
    "TierResolver",
    "decode_event",
]
