"""
Tests for BOGO ledger analytics.
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.promotions.analytics_service import BogoAnalyticsService
from apps.promotions.models import OfferStatus
from tests.factories.promotions_factories import create_offer, create_usage, create_user


class BogoAnalyticsTests(TestCase):
    """Tests for BogoAnalyticsService."""

    def setUp(self):
        self.now = timezone.now()
        self.alice = create_user("alice")
        self.bob = create_user("bob")
        self.popular = create_offer(name="Popular")
        self.quiet = create_offer(name="Quiet")

        create_usage(self.popular, self.alice, order_ref="ORD-1", used_at=self.now)
        create_usage(self.popular, self.bob, order_ref="ORD-2", used_at=self.now)
        create_usage(
            self.popular,
            self.alice,
            order_ref="ORD-3",
            get_product_id="C",
            buy_quantity=4,
            get_quantity=2,
            discount_amount=Decimal("10.00"),
            used_at=self.now - timedelta(days=2),
        )
        create_usage(self.quiet, self.bob, order_ref="ORD-4", discount_amount=Decimal("2.50"), used_at=self.now)

    def test_offer_analytics(self):
        stats = BogoAnalyticsService.offer_analytics(self.popular)

        self.assertEqual(stats.offer_id, str(self.popular.pk))
        self.assertEqual(stats.total_usage, 3)
        self.assertEqual(stats.total_discount, Decimal("40.00"))
        self.assertEqual(stats.unique_customers, 2)
        self.assertAlmostEqual(stats.average_buy_quantity, 8 / 3)
        self.assertEqual(stats.last_used_at, self.now)
        self.assertEqual(stats.top_get_products[0], {"product_id": "B", "times_used": 2, "quantity": 2})
        self.assertEqual(stats.top_buy_products, [{"product_id": "A", "times_used": 3, "quantity": 8}])

    def test_offer_analytics_ignores_counter(self):
        # The denormalized counter was never incremented by create_usage
        self.assertEqual(self.popular.usage_count, 0)
        self.assertEqual(BogoAnalyticsService.offer_analytics(self.popular.pk).total_usage, 3)

    def test_offer_without_usage(self):
        unused = create_offer(name="Unused")
        stats = BogoAnalyticsService.offer_analytics(unused)
        self.assertEqual(stats.total_usage, 0)
        self.assertEqual(stats.total_discount, Decimal("0.00"))
        self.assertIsNone(stats.first_used_at)
        self.assertEqual(stats.top_buy_products, [])

    def test_most_popular(self):
        ranking = BogoAnalyticsService.most_popular()
        self.assertEqual([row["name"] for row in ranking], ["Popular", "Quiet"])
        self.assertEqual(ranking[0]["usage_count"], 3)
        self.assertEqual(ranking[0]["discount_given"], Decimal("40.00"))

    def test_most_popular_since(self):
        ranking = BogoAnalyticsService.most_popular(since=self.now - timedelta(hours=1))
        self.assertEqual(ranking[0]["usage_count"], 2)
        self.assertEqual(len(BogoAnalyticsService.most_popular(limit=1)), 1)

    def test_dashboard_stats(self):
        create_offer(name="Off", status=OfferStatus.INACTIVE)
        stats = BogoAnalyticsService.dashboard_stats(now=self.now)

        self.assertEqual(stats["total_active_offers"], 2)
        self.assertEqual(stats["redemptions_today"], 3)
        self.assertEqual(stats["offers_used_today"], 2)
        self.assertEqual(stats["total_discount_given"], Decimal("42.50"))
        self.assertEqual(len(stats["most_popular_offers"]), 2)
