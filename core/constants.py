"""Application constants and enumerations."""

from enum import Enum


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SubscriptionTier(str, Enum):
    """Subscription tier stored on the user's profile."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Local mirror of the processor-side subscription status."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


# Stripe reports more statuses than we model locally
STRIPE_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "incomplete": SubscriptionStatus.PAST_DUE,
    "paused": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
}


class EventType(str, Enum):
    """Tags of the webhook events the reconciler understands."""

    CHECKOUT_COMPLETED = "checkout_completed"
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    INVOICE_PAYMENT_SUCCEEDED = "invoice_payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice_payment_failed"
    UNKNOWN = "unknown"


STRIPE_EVENT_TYPES: dict[str, EventType] = {
    "checkout.session.completed": EventType.CHECKOUT_COMPLETED,
    "customer.subscription.created": EventType.SUBSCRIPTION_CREATED,
    "customer.subscription.updated": EventType.SUBSCRIPTION_UPDATED,
    "customer.subscription.deleted": EventType.SUBSCRIPTION_DELETED,
    "invoice.payment_succeeded": EventType.INVOICE_PAYMENT_SUCCEEDED,
    "invoice.payment_failed": EventType.INVOICE_PAYMENT_FAILED,
}


class ReasonCode(str, Enum):
    """Reason codes attached to handler results and errors."""

    MISSING_USER_REFERENCE = "missing_user_reference"
    MISSING_SUBSCRIPTION_REFERENCE = "missing_subscription_reference"
    UNSUPPORTED_STATUS = "unsupported_status"
    SUBSCRIPTION_NOT_FOUND = "subscription_not_found"
    SUBSCRIPTION_CANCELED = "subscription_canceled"
    UNHANDLED_EVENT_TYPE = "unhandled_event_type"
    NOTIFICATION_FAILED = "notification_failed"
    NO_RECIPIENT = "no_recipient"
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_PAYLOAD = "invalid_payload"
    VALIDATION_ERROR = "validation_error"
    AUTHENTICATION_ERROR = "authentication_error"
    AUTHORIZATION_ERROR = "authorization_error"
    PERSISTENCE_ERROR = "persistence_error"
    EXTERNAL_API_ERROR = "external_api_error"
    CONFIGURATION_ERROR = "configuration_error"
    SUBSCRIPTION_EXISTS = "subscription_exists"
    INTERNAL_ERROR = "internal_error"
