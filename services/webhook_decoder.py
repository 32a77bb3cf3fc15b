"""Decode verified Stripe webhook bodies into typed events."""

import json
import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from core.constants import STRIPE_EVENT_TYPES, STRIPE_STATUS_MAP, EventType
from core.exceptions import InvalidPayloadError
from schemas.events import (
    CheckoutCompleted,
    InvoiceDetails,
    InvoicePaymentFailed,
    InvoicePaymentSucceeded,
    SubscriptionCreated,
    SubscriptionDeleted,
    SubscriptionSnapshot,
    SubscriptionUpdated,
    UnknownEvent,
    WebhookEvent,
)

logger = logging.getLogger(__name__)


def _get(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def _str(value: Any) -> str | None:
    """Non-empty string or None; expanded objects collapse to their id."""
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, str) and value:
        return value
    return None


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _timestamp(value: Any) -> datetime | None:
    """Unix seconds to an aware UTC datetime."""
    seconds = _int(value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def _user_id(*candidates: Any) -> UUID | None:
    """First candidate that parses as a profile UUID."""
    for candidate in candidates:
        raw = _str(candidate)
        if raw is None:
            continue
        try:
            return UUID(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed user reference in webhook metadata: {raw!r}")
    return None


def _decode_checkout(envelope: dict[str, Any], session: dict[str, Any]) -> CheckoutCompleted:
    return CheckoutCompleted(
        **envelope,
        session_id=_str(session.get("id")),
        user_id=_user_id(_get(session, "metadata", "userId"), session.get("client_reference_id")),
        stripe_subscription_id=_str(session.get("subscription")),
        stripe_customer_id=_str(session.get("customer")),
        # Our checkout sessions carry the price in metadata; line_items only when expanded
        price_id=_str(_get(session, "metadata", "priceId"))
        or _str(_get(session, "line_items", "data", 0, "price")),
        customer_email=_str(_get(session, "customer_details", "email"))
        or _str(session.get("customer_email")),
    )


def _decode_subscription(subscription: dict[str, Any]) -> SubscriptionSnapshot:
    raw_status = _str(subscription.get("status"))
    status = STRIPE_STATUS_MAP.get(raw_status) if raw_status else None
    if raw_status and status is None:
        logger.warning(f"Unrecognized Stripe subscription status: {raw_status}")

    first_item = _get(subscription, "items", "data", 0)
    # Newer API versions report billing periods per subscription item
    period_start = subscription.get("current_period_start") or _get(first_item, "current_period_start")
    period_end = subscription.get("current_period_end") or _get(first_item, "current_period_end")

    return SubscriptionSnapshot(
        stripe_subscription_id=_str(subscription.get("id")),
        stripe_customer_id=_str(subscription.get("customer")),
        user_id=_user_id(_get(subscription, "metadata", "userId")),
        price_id=_str(_get(first_item, "price")),
        status=status,
        raw_status=raw_status,
        current_period_start=_timestamp(period_start),
        current_period_end=_timestamp(period_end),
        cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        canceled_at=_timestamp(subscription.get("canceled_at") or subscription.get("ended_at")),
    )


def _decode_invoice(invoice: dict[str, Any]) -> InvoiceDetails:
    subscription_id = _str(invoice.get("subscription")) or _str(
        _get(invoice, "parent", "subscription_details", "subscription")
    )
    # The first line item carries the subscription period being paid for;
    # the invoice's own period_end is the previous period on renewals
    period_end = _get(invoice, "lines", "data", 0, "period", "end") or invoice.get("period_end")

    return InvoiceDetails(
        invoice_id=_str(invoice.get("id")),
        stripe_subscription_id=subscription_id,
        stripe_customer_id=_str(invoice.get("customer")),
        customer_email=_str(invoice.get("customer_email")),
        period_end=_timestamp(period_end),
        amount_due=_int(invoice.get("amount_due")),
        currency=_str(invoice.get("currency")),
        attempt_count=_int(invoice.get("attempt_count")),
        next_payment_attempt=_timestamp(invoice.get("next_payment_attempt")),
        hosted_invoice_url=_str(invoice.get("hosted_invoice_url")),
    )


def decode_event(payload: bytes | str) -> WebhookEvent:
    """
    Parse a verified webhook body into a typed event.

    Event types we do not handle decode to ``UnknownEvent``; missing fields
    inside known events decode to ``None`` and are judged by the handlers.

    Raises:
        InvalidPayloadError: the body is not a JSON object with an event id and type
    """
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidPayloadError(f"Invalid webhook payload: {e}") from e

    if not isinstance(data, dict):
        raise InvalidPayloadError("Webhook payload is not a JSON object")

    event_id = _str(data.get("id"))
    event_type = _str(data.get("type"))
    if not event_id or not event_type:
        raise InvalidPayloadError("Webhook payload is missing the event id or type")

    envelope = {
        "id": event_id,
        "type": event_type,
        "created_at": _timestamp(data.get("created")) or datetime.now(UTC),
    }
    obj = _get(data, "data", "object")
    if not isinstance(obj, dict):
        obj = {}

    tag = STRIPE_EVENT_TYPES.get(event_type, EventType.UNKNOWN)

    if tag == EventType.CHECKOUT_COMPLETED:
        return _decode_checkout(envelope, obj)
    if tag == EventType.SUBSCRIPTION_CREATED:
        return SubscriptionCreated(**envelope, subscription=_decode_subscription(obj))
    if tag == EventType.SUBSCRIPTION_UPDATED:
        return SubscriptionUpdated(**envelope, subscription=_decode_subscription(obj))
    if tag == EventType.SUBSCRIPTION_DELETED:
        return SubscriptionDeleted(**envelope, subscription=_decode_subscription(obj))
    if tag == EventType.INVOICE_PAYMENT_SUCCEEDED:
        return InvoicePaymentSucceeded(**envelope, invoice=_decode_invoice(obj))
    if tag == EventType.INVOICE_PAYMENT_FAILED:
        return InvoicePaymentFailed(**envelope, invoice=_decode_invoice(obj))

    return UnknownEvent(**envelope)
