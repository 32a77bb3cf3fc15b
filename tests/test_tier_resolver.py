"""Tier Resolver Tests"""

import pytest

from core.config import Settings
from core.constants import SubscriptionTier
from services.tier_resolver import TierResolver
from tests.factories import PRICE_ENTERPRISE, PRICE_PRO, PRICE_TIERS


class TestResolve:

    @pytest.mark.parametrize(
        ("price_id", "tier"),
        [
            (PRICE_PRO, SubscriptionTier.PRO),
            (PRICE_ENTERPRISE, SubscriptionTier.ENTERPRISE),
            ("price_unknown", SubscriptionTier.FREE),
            ("", SubscriptionTier.FREE),
            (None, SubscriptionTier.FREE),
        ],
    )
    def test_maps_prices_to_tiers(self, price_id, tier):
        assert TierResolver(PRICE_TIERS).resolve(price_id) == tier

    def test_empty_mapping_resolves_everything_to_free(self):
        resolver = TierResolver({})

        assert resolver.resolve(PRICE_PRO) == SubscriptionTier.FREE

    def test_unconfigured_price_ids_are_ignored(self):
        resolver = TierResolver({"": SubscriptionTier.PRO})

        assert resolver.resolve("") == SubscriptionTier.FREE

    def test_is_purchasable(self):
        resolver = TierResolver(PRICE_TIERS)

        assert resolver.is_purchasable(PRICE_PRO)
        assert not resolver.is_purchasable("price_unknown")


class TestFromSettings:

    def test_reads_configured_price_ids(self):
        settings = Settings(
            STRIPE_PRICE_ID_PRO="price_a",
            STRIPE_PRICE_ID_ENTERPRISE="price_b",
        )
        resolver = TierResolver.from_settings(settings)

        assert resolver.resolve("price_a") == SubscriptionTier.PRO
        assert resolver.resolve("price_b") == SubscriptionTier.ENTERPRISE

    def test_missing_price_ids_leave_mapping_empty(self):
        settings = Settings(STRIPE_PRICE_ID_PRO="", STRIPE_PRICE_ID_ENTERPRISE="")

        assert settings.price_tiers == {}
