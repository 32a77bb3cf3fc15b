"""Subscription reconciliation: one handler per webhook event type."""

import logging
from typing import Any
from uuid import UUID

from core.constants import ReasonCode, SubscriptionStatus, SubscriptionTier
from core.exceptions import ConfigurationError, ExternalAPIError
from database.service import SubscriptionGateway
from schemas.events import (
    CheckoutCompleted,
    InvoicePaymentFailed,
    InvoicePaymentSucceeded,
    SubscriptionCreated,
    SubscriptionDeleted,
    SubscriptionSnapshot,
    SubscriptionUpdated,
)
from schemas.subscription import SubscriptionChanges
from schemas.webhook import HandlerResult
from services.email_service import EmailService
from services.tier_resolver import TierResolver

logger = logging.getLogger(__name__)


class SubscriptionService:
    """
    Applies Stripe webhook events to the local subscription mirror.

    Every handler writes the provider's current snapshot keyed by the Stripe
    subscription ID, so redelivered and out-of-order events converge on the
    same state. Events missing the references a handler needs are skipped
    (acknowledged) because a retry would carry the same data. Persistence
    errors propagate so the dispatcher can ask Stripe to redeliver.
    """

    def __init__(
        self,
        gateway: SubscriptionGateway,
        tier_resolver: TierResolver,
        notifier: EmailService | None = None,
    ) -> None:
        self.gateway = gateway
        self.tier_resolver = tier_resolver
        self.notifier = notifier

    async def handle_checkout_completed(self, event: CheckoutCompleted) -> HandlerResult:
        """
        Create the subscription row for a completed checkout and grant the tier.

        The tier comes from the purchased price, which our checkout sessions
        carry in their metadata.
        """
        if event.user_id is None:
            logger.warning(f"Checkout session {event.session_id} has no user reference; skipping")
            return HandlerResult.skipped(
                ReasonCode.MISSING_USER_REFERENCE, session_id=event.session_id
            )
        if not event.stripe_subscription_id:
            logger.warning(f"Checkout session {event.session_id} has no subscription; skipping")
            return HandlerResult.skipped(
                ReasonCode.MISSING_SUBSCRIPTION_REFERENCE, session_id=event.session_id
            )

        record = await self.gateway.upsert_subscription(
            SubscriptionChanges(
                stripe_subscription_id=event.stripe_subscription_id,
                user_id=event.user_id,
                stripe_customer_id=event.stripe_customer_id,
                price_id=event.price_id,
                status=SubscriptionStatus.ACTIVE,
            )
        )
        if record is None:
            return self._stale_for_canceled(event.stripe_subscription_id)

        tier = self.tier_resolver.resolve(event.price_id)
        await self.gateway.update_user_tier(event.user_id, tier)

        logger.info(
            f"Checkout completed for user {event.user_id}: "
            f"subscription {record.stripe_subscription_id} active, tier {tier.value}"
        )
        return HandlerResult.applied(
            stripe_subscription_id=record.stripe_subscription_id, tier=tier.value
        )

    async def handle_subscription_created(self, event: SubscriptionCreated) -> HandlerResult:
        return await self._apply_snapshot(event.subscription)

    async def handle_subscription_updated(self, event: SubscriptionUpdated) -> HandlerResult:
        """Reapply the latest snapshot; covers upgrades, downgrades and reactivation."""
        return await self._apply_snapshot(event.subscription)

    async def _apply_snapshot(self, snapshot: SubscriptionSnapshot) -> HandlerResult:
        skip = self._check_snapshot(snapshot)
        if skip is not None:
            return skip

        record = await self.gateway.upsert_subscription(
            SubscriptionChanges(
                stripe_subscription_id=snapshot.stripe_subscription_id,
                user_id=snapshot.user_id,
                stripe_customer_id=snapshot.stripe_customer_id,
                price_id=snapshot.price_id,
                status=snapshot.status,
                current_period_start=snapshot.current_period_start,
                current_period_end=snapshot.current_period_end,
                cancel_at_period_end=snapshot.cancel_at_period_end,
                canceled_at=snapshot.canceled_at,
            )
        )
        if record is None:
            return self._stale_for_canceled(snapshot.stripe_subscription_id)

        if record.status == SubscriptionStatus.CANCELED:
            tier = await self._tier_after_cancellation(record.user_id)
        else:
            tier = self.tier_resolver.resolve(snapshot.price_id)
        await self.gateway.update_user_tier(record.user_id, tier)

        logger.info(
            f"Subscription {record.stripe_subscription_id} synced for user {record.user_id}: "
            f"status {record.status.value}, tier {tier.value}"
        )
        return HandlerResult.applied(
            stripe_subscription_id=record.stripe_subscription_id,
            status=record.status.value,
            tier=tier.value,
        )

    def _check_snapshot(self, snapshot: SubscriptionSnapshot) -> HandlerResult | None:
        """Skip result for a snapshot we cannot apply, otherwise None."""
        if snapshot.user_id is None:
            logger.warning(
                f"Subscription {snapshot.stripe_subscription_id} has no userId metadata; skipping"
            )
            return HandlerResult.skipped(
                ReasonCode.MISSING_USER_REFERENCE,
                stripe_subscription_id=snapshot.stripe_subscription_id,
            )
        if not snapshot.stripe_subscription_id:
            logger.warning("Subscription event without a subscription ID; skipping")
            return HandlerResult.skipped(ReasonCode.MISSING_SUBSCRIPTION_REFERENCE)
        if snapshot.status is None:
            logger.warning(
                f"Subscription {snapshot.stripe_subscription_id} has unsupported status "
                f"{snapshot.raw_status!r}; skipping"
            )
            return HandlerResult.skipped(
                ReasonCode.UNSUPPORTED_STATUS,
                stripe_subscription_id=snapshot.stripe_subscription_id,
                status=snapshot.raw_status,
            )
        return None

    def _stale_for_canceled(self, stripe_subscription_id: str) -> HandlerResult:
        """Skip result for an event that would revive a canceled subscription."""
        logger.warning(
            f"Subscription {stripe_subscription_id} is already canceled; ignoring stale event"
        )
        return HandlerResult.skipped(
            ReasonCode.SUBSCRIPTION_CANCELED, stripe_subscription_id=stripe_subscription_id
        )

    async def _tier_after_cancellation(self, user_id: UUID) -> SubscriptionTier:
        """Tier of the user's remaining live subscription, or free."""
        current = await self.gateway.find_current_subscription(user_id)
        if current is None:
            return SubscriptionTier.FREE
        return self.tier_resolver.resolve(current.price_id)

    async def _unmatched_invoice(
        self, invoice_id: str | None, stripe_subscription_id: str
    ) -> HandlerResult:
        """Skip result for an invoice whose subscription is unknown or canceled."""
        existing = await self.gateway.find_subscription(stripe_subscription_id)
        if existing is not None:
            logger.warning(
                f"Invoice {invoice_id} is for canceled subscription {stripe_subscription_id}; skipping"
            )
            reason = ReasonCode.SUBSCRIPTION_CANCELED
        else:
            logger.warning(
                f"Invoice {invoice_id} is for unknown subscription {stripe_subscription_id}; skipping"
            )
            reason = ReasonCode.SUBSCRIPTION_NOT_FOUND
        return HandlerResult.skipped(reason, stripe_subscription_id=stripe_subscription_id)

    async def handle_subscription_deleted(self, event: SubscriptionDeleted) -> HandlerResult:
        """
        Mark the subscription canceled and move the user to the tier of any
        other live subscription, or free.

        ``canceled_at`` falls back to the event's creation time so replays
        stamp the same value.
        """
        snapshot = event.subscription
        if snapshot.user_id is None:
            logger.warning(
                f"Deleted subscription {snapshot.stripe_subscription_id} has no userId metadata; skipping"
            )
            return HandlerResult.skipped(
                ReasonCode.MISSING_USER_REFERENCE,
                stripe_subscription_id=snapshot.stripe_subscription_id,
            )
        if not snapshot.stripe_subscription_id:
            logger.warning("Subscription deletion without a subscription ID; skipping")
            return HandlerResult.skipped(ReasonCode.MISSING_SUBSCRIPTION_REFERENCE)

        # Upsert rather than update: a deletion that overtakes the creation
        # still leaves a canceled row behind
        await self.gateway.upsert_subscription(
            SubscriptionChanges(
                stripe_subscription_id=snapshot.stripe_subscription_id,
                user_id=snapshot.user_id,
                stripe_customer_id=snapshot.stripe_customer_id,
                price_id=snapshot.price_id,
                status=SubscriptionStatus.CANCELED,
                canceled_at=snapshot.canceled_at or event.created_at,
            )
        )
        tier = await self._tier_after_cancellation(snapshot.user_id)
        await self.gateway.update_user_tier(snapshot.user_id, tier)

        logger.info(
            f"Subscription {snapshot.stripe_subscription_id} canceled; "
            f"user {snapshot.user_id} now on tier {tier.value}"
        )
        return HandlerResult.applied(
            stripe_subscription_id=snapshot.stripe_subscription_id,
            status=SubscriptionStatus.CANCELED.value,
            tier=tier.value,
        )

    async def handle_invoice_payment_succeeded(
        self, event: InvoicePaymentSucceeded
    ) -> HandlerResult:
        invoice = event.invoice
        if not invoice.stripe_subscription_id:
            # One-off invoices are not tied to a subscription
            logger.info(f"Invoice {invoice.invoice_id} has no subscription; nothing to reconcile")
            return HandlerResult.skipped(
                ReasonCode.MISSING_SUBSCRIPTION_REFERENCE, invoice_id=invoice.invoice_id
            )

        record = await self.gateway.update_subscription(
            SubscriptionChanges(
                stripe_subscription_id=invoice.stripe_subscription_id,
                status=SubscriptionStatus.ACTIVE,
                current_period_end=invoice.period_end,
            )
        )
        if record is None:
            return await self._unmatched_invoice(invoice.invoice_id, invoice.stripe_subscription_id)

        logger.info(f"Payment succeeded for subscription {record.stripe_subscription_id}")
        return HandlerResult.applied(
            stripe_subscription_id=record.stripe_subscription_id,
            status=record.status.value,
        )

    async def handle_invoice_payment_failed(self, event: InvoicePaymentFailed) -> HandlerResult:
        """
        Mark the subscription past due and notify its owner.

        The tier is left unchanged; Stripe's dunning decides whether the
        subscription is eventually canceled. The notice is best effort and
        never fails the event once the state update has been stored.
        """
        invoice = event.invoice
        if not invoice.stripe_subscription_id:
            logger.info(f"Failed invoice {invoice.invoice_id} has no subscription; nothing to reconcile")
            return HandlerResult.skipped(
                ReasonCode.MISSING_SUBSCRIPTION_REFERENCE, invoice_id=invoice.invoice_id
            )

        record = await self.gateway.update_subscription(
            SubscriptionChanges(
                stripe_subscription_id=invoice.stripe_subscription_id,
                status=SubscriptionStatus.PAST_DUE,
            )
        )
        if record is None:
            return await self._unmatched_invoice(invoice.invoice_id, invoice.stripe_subscription_id)

        logger.info(f"Payment failed for subscription {record.stripe_subscription_id}; marked past_due")

        details: dict[str, Any] = {
            "stripe_subscription_id": record.stripe_subscription_id,
            "status": record.status.value,
        }
        details.update(await self._notify_payment_failed(record.user_id, event))
        return HandlerResult.applied(**details)

    async def _notify_payment_failed(
        self, user_id: UUID, event: InvoicePaymentFailed
    ) -> dict[str, Any]:
        """Send the payment-failed notice; returns result details instead of raising."""
        if self.notifier is None:
            return {"notified": False}

        profile = await self.gateway.get_profile(user_id)
        recipient = (profile.email if profile else None) or event.invoice.customer_email
        if not recipient:
            logger.warning(f"No email address for user {user_id}; payment-failed notice not sent")
            return {"notified": False, "notification_reason": ReasonCode.NO_RECIPIENT.value}

        try:
            email = await self.notifier.send_payment_failed_notice(
                to=recipient,
                invoice=event.invoice,
                full_name=profile.full_name if profile else None,
            )
        except (ConfigurationError, ExternalAPIError) as e:
            logger.error(f"Payment-failed notice for user {user_id} was not delivered: {e.message}")
            return {
                "notified": False,
                "notification_reason": ReasonCode.NOTIFICATION_FAILED.value,
            }

        logger.info(f"Payment-failed notice {email.id} sent for user {user_id}")
        return {"notified": True, "email_id": email.id}
