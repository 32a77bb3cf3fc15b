"""Price ID to subscription tier resolution."""

from collections.abc import Mapping

from core.config import Settings
from core.constants import SubscriptionTier


class TierResolver:
    """Maps Stripe price IDs to subscription tiers; anything unmatched is free."""

    def __init__(self, price_tiers: Mapping[str, SubscriptionTier]) -> None:
        self._price_tiers = {
            price_id: SubscriptionTier(tier)
            for price_id, tier in price_tiers.items()
            if price_id
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "TierResolver":
        return cls(settings.price_tiers)

    def resolve(self, price_id: str | None) -> SubscriptionTier:
        if not price_id:
            return SubscriptionTier.FREE
        return self._price_tiers.get(price_id, SubscriptionTier.FREE)

    def is_purchasable(self, price_id: str | None) -> bool:
        """Whether checkout should accept this price."""
        return self.resolve(price_id) != SubscriptionTier.FREE
