"""Subscription records and billing API schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from core.constants import SubscriptionStatus, SubscriptionTier


class SubscriptionRecord(BaseModel):
    """Local mirror of a Stripe subscription."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    stripe_customer_id: str | None = None
    stripe_subscription_id: str
    price_id: str | None = None
    status: SubscriptionStatus
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None
    updated_at: datetime | None = None


class SubscriptionChanges(BaseModel):
    """
    Field changes addressed to one subscription row.

    The row is identified by ``stripe_subscription_id``. Fields left as
    ``None`` are not written, so a partial snapshot (e.g. a checkout session,
    which carries no billing period) never erases what another event stored.
    """

    stripe_subscription_id: str
    user_id: UUID | None = None
    stripe_customer_id: str | None = None
    price_id: str | None = None
    status: SubscriptionStatus | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool | None = None
    canceled_at: datetime | None = None

    def values(self) -> dict[str, Any]:
        """Column values to write, excluding the key and unset fields."""
        data = self.model_dump(exclude_none=True, exclude={"stripe_subscription_id"})
        if "status" in data:
            data["status"] = self.status.value  # type: ignore[union-attr]
        return data


class Profile(BaseModel):
    """The slice of a user profile the billing backend reads."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None = None
    full_name: str | None = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE


class CheckoutSessionRequest(BaseModel):
    """Request to create a Stripe checkout session."""

    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(..., min_length=1, alias="priceId", description="Stripe price ID")
    user_id: UUID = Field(..., alias="userId", description="Profile ID of the purchaser")


class CheckoutSessionResponse(BaseModel):
    """Response containing the Stripe checkout session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., serialization_alias="sessionId", description="Stripe session ID")
    url: str | None = Field(None, description="Stripe checkout session URL")


class SubscriptionStatusResponse(BaseModel):
    """The caller's tier and current subscription."""

    subscription_tier: SubscriptionTier = Field(..., description="Current tier (free/pro/enterprise)")
    subscription: SubscriptionRecord | None = Field(
        None, description="Most recent non-canceled subscription, if any"
    )
