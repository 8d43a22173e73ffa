"""
Tests for BOGO eligibility matching.
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.promotions.discounts import DiscountMode
from apps.promotions.eligibility_service import EligibilityService
from apps.promotions.models import OfferStatus
from tests.factories.promotions_factories import ByCategory, ByProduct, create_offer, line


class FindEligibleTests(TestCase):
    """Tests for EligibilityService.find_eligible."""

    def setUp(self):
        self.cart = [
            line("A", 3, "10.00", "tops"),
            line("B", 1, "15.00", "bottoms"),
            line("B2", 1, "12.00", "bottoms"),
        ]

    def test_qualifying_offer_is_returned_with_quote(self):
        offer = create_offer(get_condition=ByCategory("bottoms"))
        eligible = EligibilityService.find_eligible(self.cart)
        self.assertEqual(len(eligible), 1)
        self.assertEqual(eligible[0].offer, offer)
        self.assertEqual([c.product_id for c in eligible[0].buy_lines], ["A"])
        self.assertEqual(eligible[0].quote.discount_amount, Decimal("15.00"))

    def test_accepts_checkout_dicts(self):
        create_offer()
        eligible = EligibilityService.find_eligible(
            [
                {"product_id": "A", "category_id": "tops", "quantity": 2, "price": 10},
                {"product_id": "B", "category_id": "bottoms", "quantity": 1, "price": "15.00"},
            ]
        )
        self.assertEqual(len(eligible), 1)

    def test_future_offer_excluded(self):
        create_offer(start_offset=timedelta(days=1), end_offset=timedelta(days=5))
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_future_offer_excluded_even_if_status_active(self):
        # Status says active but the window has not opened; the live check wins
        offer = create_offer(start_offset=timedelta(days=1), end_offset=timedelta(days=5))
        self.assertEqual(offer.status, OfferStatus.ACTIVE)
        self.assertEqual(EligibilityService.find_eligible(self.cart, offers=[offer]), [])

    def test_expired_and_inactive_offers_excluded(self):
        create_offer(start_offset=timedelta(days=-5), end_offset=timedelta(days=-1))
        create_offer(status=OfferStatus.INACTIVE)
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_exhausted_offer_excluded(self):
        create_offer(usage_limit=2, usage_count=2)
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_below_threshold_excluded(self):
        create_offer(buy_quantity=4)
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_missing_get_lines_excluded(self):
        create_offer(get_condition=ByProduct("Z"))
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_offer_needing_every_unit_for_buy_side_excluded(self):
        create_offer(buy_condition=ByProduct("A"), get_condition=ByProduct("A"), buy_quantity=3)
        self.assertEqual(EligibilityService.find_eligible(self.cart), [])

    def test_empty_cart(self):
        create_offer()
        self.assertEqual(EligibilityService.find_eligible([]), [])

    def test_results_ordered_by_discount(self):
        small = create_offer(
            name="10% off",
            discount_mode=DiscountMode.PERCENTAGE,
            discount_value=Decimal("10"),
        )
        big = create_offer(name="free B")
        eligible = EligibilityService.find_eligible(self.cart)
        self.assertEqual([e.offer for e in eligible], [big, small])

    def test_ties_broken_by_creation_time(self):
        first = create_offer(name="first")
        second = create_offer(name="second")
        second.created_at = first.created_at + timedelta(seconds=1)
        eligible = EligibilityService.find_eligible(self.cart, offers=[second, first])
        self.assertEqual([e.offer for e in eligible], [first, second])

    def test_cart_order_does_not_change_results(self):
        create_offer(get_condition=ByCategory("bottoms"))
        forward = EligibilityService.find_eligible(self.cart)
        backward = EligibilityService.find_eligible(list(reversed(self.cart)))
        self.assertEqual([e.quote for e in forward], [e.quote for e in backward])

    def test_evaluation_time_can_be_supplied(self):
        offer = create_offer(start_offset=timedelta(days=1), end_offset=timedelta(days=5))
        later = timezone.now() + timedelta(days=2)
        eligible = EligibilityService.find_eligible(self.cart, offers=[offer], now=later)
        self.assertEqual(len(eligible), 1)

    def test_as_dict(self):
        offer = create_offer()
        payload = EligibilityService.find_eligible(self.cart)[0].as_dict()
        self.assertEqual(payload["offer_id"], str(offer.pk))
        self.assertEqual(payload["discount_amount"], "15.00")


class OffersForProductTests(TestCase):
    """Tests for product/category badge lookups."""

    def test_offers_for_product_direct_and_via_category(self):
        direct = create_offer(name="direct", buy_condition=ByProduct("A"))
        via_category = create_offer(name="category", buy_condition=ByCategory("tops"), get_condition=ByProduct("X"))
        create_offer(name="unrelated", buy_condition=ByProduct("Q"), get_condition=ByProduct("R"))
        offers = EligibilityService.offers_for_product("A", category_id="tops")
        self.assertEqual(set(offers), {direct, via_category})

    def test_offers_for_category_skips_inactive(self):
        active = create_offer(buy_condition=ByCategory("tops"))
        create_offer(buy_condition=ByCategory("tops"), status=OfferStatus.INACTIVE)
        self.assertEqual(EligibilityService.offers_for_category("tops"), [active])
