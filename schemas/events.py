"""Decoded payment-processor webhook events."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from core.constants import EventType, SubscriptionStatus


class BaseEvent(BaseModel):
    """Envelope fields shared by every webhook event."""

    id: str = Field(..., description="Processor event ID (idempotency key)")
    type: str = Field(..., description="Raw processor event type")
    created_at: datetime = Field(..., description="When the processor created the event")


class SubscriptionSnapshot(BaseModel):
    """Authoritative subscription state carried by a subscription event."""

    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    user_id: UUID | None = None
    price_id: str | None = None
    status: SubscriptionStatus | None = None
    raw_status: str | None = Field(default=None, description="Status as reported by Stripe")
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None


class InvoiceDetails(BaseModel):
    """Invoice fields relevant to reconciliation and payment notices."""

    invoice_id: str | None = None
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    customer_email: str | None = None
    period_end: datetime | None = None
    amount_due: int | None = Field(default=None, description="Amount in the smallest currency unit")
    currency: str | None = None
    attempt_count: int | None = None
    next_payment_attempt: datetime | None = None
    hosted_invoice_url: str | None = None


class CheckoutCompleted(BaseEvent):
    """checkout.session.completed"""

    tag: Literal[EventType.CHECKOUT_COMPLETED] = EventType.CHECKOUT_COMPLETED
    session_id: str | None = None
    user_id: UUID | None = None
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    price_id: str | None = None
    customer_email: str | None = None


class SubscriptionCreated(BaseEvent):
    """customer.subscription.created"""

    tag: Literal[EventType.SUBSCRIPTION_CREATED] = EventType.SUBSCRIPTION_CREATED
    subscription: SubscriptionSnapshot


class SubscriptionUpdated(BaseEvent):
    """customer.subscription.updated"""

    tag: Literal[EventType.SUBSCRIPTION_UPDATED] = EventType.SUBSCRIPTION_UPDATED
    subscription: SubscriptionSnapshot


class SubscriptionDeleted(BaseEvent):
    """customer.subscription.deleted"""

    tag: Literal[EventType.SUBSCRIPTION_DELETED] = EventType.SUBSCRIPTION_DELETED
    subscription: SubscriptionSnapshot


class InvoicePaymentSucceeded(BaseEvent):
    """invoice.payment_succeeded"""

    tag: Literal[EventType.INVOICE_PAYMENT_SUCCEEDED] = EventType.INVOICE_PAYMENT_SUCCEEDED
    invoice: InvoiceDetails


class InvoicePaymentFailed(BaseEvent):
    """invoice.payment_failed"""

    tag: Literal[EventType.INVOICE_PAYMENT_FAILED] = EventType.INVOICE_PAYMENT_FAILED
    invoice: InvoiceDetails


class UnknownEvent(BaseEvent):
    """Any event type we do not act on."""

    tag: Literal[EventType.UNKNOWN] = EventType.UNKNOWN


WebhookEvent = Annotated[
    CheckoutCompleted
    | SubscriptionCreated
    | SubscriptionUpdated
    | SubscriptionDeleted
    | InvoicePaymentSucceeded
    | InvoicePaymentFailed
    | UnknownEvent,
    Field(discriminator="tag"),
]
