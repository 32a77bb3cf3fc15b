"""Persistence gateway for subscription reconciliation."""

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import desc, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import SubscriptionStatus, SubscriptionTier
from core.exceptions import PersistenceError, ValidationError
from database.models import Profile as ProfileRow
from database.models import Subscription
from schemas.subscription import Profile, SubscriptionChanges, SubscriptionRecord

logger = logging.getLogger(__name__)

_subscriptions = Subscription.__table__
_profiles = ProfileRow.__table__


class SubscriptionGateway(ABC):
    """
    Narrow data-store interface used by the webhook handlers.

    Every write is a single atomic statement keyed by the Stripe
    subscription ID (or profile ID), so concurrent deliveries for the same
    subscription resolve as last-write-wins on whole rows. A canceled row
    is terminal: only another cancellation may write to it.
    """

    @abstractmethod
    async def find_subscription(self, stripe_subscription_id: str) -> SubscriptionRecord | None:
        """Look up a subscription by its Stripe ID."""

    @abstractmethod
    async def upsert_subscription(self, changes: SubscriptionChanges) -> SubscriptionRecord | None:
        """
        Insert the subscription or apply the changes to the existing row.

        Returns None when the existing row is canceled and the changes are not.
        """

    @abstractmethod
    async def update_subscription(self, changes: SubscriptionChanges) -> SubscriptionRecord | None:
        """Apply changes to an existing live row; None when no such row exists."""

    @abstractmethod
    async def update_user_tier(self, user_id: UUID, tier: SubscriptionTier) -> None:
        """Set the tier on the user's profile."""

    @abstractmethod
    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Read the user's profile."""

    @abstractmethod
    async def find_current_subscription(self, user_id: UUID) -> SubscriptionRecord | None:
        """The user's most recently updated non-canceled subscription."""


class DatabaseService(SubscriptionGateway):
    """SQLAlchemy implementation of the persistence gateway."""

    def __init__(self, db_session: AsyncSession):
        """Initialize with database session."""
        self.db = db_session

    def _insert(self) -> Any:
        """Dialect-specific INSERT supporting ON CONFLICT."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(_subscriptions)
        if dialect == "sqlite":
            return sqlite_insert(_subscriptions)
        raise PersistenceError(f"Upsert is not supported on the {dialect} dialect")

    async def find_subscription(self, stripe_subscription_id: str) -> SubscriptionRecord | None:
        try:
            result = await self.db.execute(
                select(_subscriptions).where(
                    _subscriptions.c.stripe_subscription_id == stripe_subscription_id
                )
            )
            row = result.mappings().one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error loading subscription {stripe_subscription_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to load subscription") from e
        return SubscriptionRecord.model_validate(dict(row)) if row else None

    async def upsert_subscription(self, changes: SubscriptionChanges) -> SubscriptionRecord | None:
        values = changes.values()
        if "user_id" not in values or "status" not in values:
            # Both are NOT NULL; an insert without them could never succeed
            raise ValidationError(
                "Subscription upsert requires user_id and status",
                {"stripe_subscription_id": changes.stripe_subscription_id},
            )
        values["updated_at"] = datetime.now(UTC)

        stmt = self._insert().values(
            stripe_subscription_id=changes.stripe_subscription_id, **values
        )
        revives = values["status"] != SubscriptionStatus.CANCELED.value
        stmt = stmt.on_conflict_do_update(
            index_elements=[_subscriptions.c.stripe_subscription_id],
            set_={column: stmt.excluded[column] for column in values},
            where=(_subscriptions.c.status != SubscriptionStatus.CANCELED.value) if revives else None,
        ).returning(*_subscriptions.c)

        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one_or_none()
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Error upserting subscription {changes.stripe_subscription_id}: {e}"
            )
            await self.db.rollback()
            raise PersistenceError("Failed to upsert subscription") from e

        if row is None:
            logger.info(
                f"Subscription {changes.stripe_subscription_id} is canceled; "
                f"{values['status']} not applied"
            )
            return None
        return SubscriptionRecord.model_validate(dict(row))

    async def update_subscription(self, changes: SubscriptionChanges) -> SubscriptionRecord | None:
        values = changes.values()
        values["updated_at"] = datetime.now(UTC)

        stmt = (
            update(_subscriptions)
            .where(
                _subscriptions.c.stripe_subscription_id == changes.stripe_subscription_id,
                _subscriptions.c.status != SubscriptionStatus.CANCELED.value,
            )
            .values(**values)
            .returning(*_subscriptions.c)
        )

        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one_or_none()
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Error updating subscription {changes.stripe_subscription_id}: {e}"
            )
            await self.db.rollback()
            raise PersistenceError("Failed to update subscription") from e

        return SubscriptionRecord.model_validate(dict(row)) if row else None

    async def update_user_tier(self, user_id: UUID, tier: SubscriptionTier) -> None:
        stmt = (
            update(_profiles)
            .where(_profiles.c.id == user_id)
            .values(subscription_tier=tier.value, updated_at=datetime.now(UTC))
        )

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error updating tier for user {user_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to update user tier") from e

        if result.rowcount == 0:
            logger.warning(f"No profile found for user {user_id}; tier {tier.value} not stored")

    async def get_profile(self, user_id: UUID) -> Profile | None:
        try:
            result = await self.db.execute(select(_profiles).where(_profiles.c.id == user_id))
            row = result.mappings().one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error loading profile {user_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to load profile") from e
        return Profile.model_validate(dict(row)) if row else None

    async def find_current_subscription(self, user_id: UUID) -> SubscriptionRecord | None:
        try:
            result = await self.db.execute(
                select(_subscriptions)
                .where(
                    _subscriptions.c.user_id == user_id,
                    _subscriptions.c.status != SubscriptionStatus.CANCELED.value,
                )
                .order_by(desc(_subscriptions.c.updated_at))
                .limit(1)
            )
            row = result.mappings().one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error loading current subscription for user {user_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to load subscription") from e
        return SubscriptionRecord.model_validate(dict(row)) if row else None
