"""Routes decoded webhook events to their reconciliation handler."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from core.constants import EventType, ReasonCode
from core.exceptions import BillingError
from schemas.events import WebhookEvent
from schemas.webhook import HandlerResult
from services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[HandlerResult]]


class ReconciliationDispatcher:
    """
    Invokes the handler registered for an event's tag.

    Handler errors are converted into a failed result instead of being
    raised, so the webhook endpoint can answer with a non-2xx status and
    Stripe redelivers the event on its own retry schedule.
    """

    def __init__(self, service: SubscriptionService) -> None:
        self._handlers: dict[EventType, Handler] = {
            EventType.CHECKOUT_COMPLETED: service.handle_checkout_completed,
            EventType.SUBSCRIPTION_CREATED: service.handle_subscription_created,
            EventType.SUBSCRIPTION_UPDATED: service.handle_subscription_updated,
            EventType.SUBSCRIPTION_DELETED: service.handle_subscription_deleted,
            EventType.INVOICE_PAYMENT_SUCCEEDED: service.handle_invoice_payment_succeeded,
            EventType.INVOICE_PAYMENT_FAILED: service.handle_invoice_payment_failed,
        }

    async def dispatch(self, event: WebhookEvent) -> HandlerResult:
        handler = self._handlers.get(event.tag)

        if handler is None:
            logger.info(f"Unhandled webhook event type: {event.type}")
            result = HandlerResult.ignored()
        else:
            logger.info(f"Processing {event.type} (event {event.id})")
            try:
                result = await handler(event)
            except BillingError as e:
                logger.error(
                    f"Error processing webhook event {event.type} ({event.id}): {e.message}",
                    exc_info=True,
                )
                result = HandlerResult.failed(e.code, error=e.message)
            except Exception as e:
                logger.error(
                    f"Unexpected error processing webhook event {event.type} ({event.id}): {e}",
                    exc_info=True,
                )
                result = HandlerResult.failed(ReasonCode.INTERNAL_ERROR, error=str(e))

        result.event_id = event.id
        result.event_type = event.type

        if result.success:
            logger.info(
                f"Webhook event {event.id} {result.outcome.value}"
                + (f" ({result.reason.value})" if result.reason else "")
            )
        return result
