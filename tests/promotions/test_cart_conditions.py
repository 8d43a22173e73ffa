"""
Tests for cart snapshot lines and buy/get conditions.
"""

from decimal import Decimal

from django.test import SimpleTestCase

from apps.common.types import ValidationError
from apps.promotions.cart import CartLine, build_cart, total_quantity
from apps.promotions.conditions import ByCategory, ByProduct, TargetType, condition_from_target, matching_lines
from tests.factories.promotions_factories import line


class CartLineTests(SimpleTestCase):
    """Tests for CartLine."""

    def test_from_dict_accepts_price_key(self):
        cart_line = CartLine.from_dict({"product_id": 7, "category_id": 3, "quantity": 2, "price": 9.99})
        self.assertEqual(cart_line.product_id, "7")
        self.assertEqual(cart_line.category_id, "3")
        self.assertEqual(cart_line.unit_price, Decimal("9.99"))
        self.assertEqual(cart_line.line_total, Decimal("19.98"))

    def test_from_dict_accepts_unit_price_key(self):
        cart_line = CartLine.from_dict({"product_id": "A", "quantity": 1, "unit_price": "4.50"})
        self.assertIsNone(cart_line.category_id)
        self.assertEqual(cart_line.unit_price, Decimal("4.50"))

    def test_from_dict_requires_price(self):
        with self.assertRaises(ValidationError) as ctx:
            CartLine.from_dict({"product_id": "A", "quantity": 1})
        self.assertEqual(ctx.exception.field, "unit_price")

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValidationError):
            line("A", 0, "1.00")

    def test_price_cannot_be_negative(self):
        with self.assertRaises(ValidationError):
            line("A", 1, "-1.00")

    def test_build_cart_mixes_lines_and_dicts(self):
        cart = build_cart([line("A", 2, "1.00"), {"product_id": "B", "quantity": 3, "price": "2.00"}])
        self.assertEqual([c.product_id for c in cart], ["A", "B"])
        self.assertEqual(total_quantity(cart), 5)


class ConditionTests(SimpleTestCase):
    """Tests for ByProduct / ByCategory conditions."""

    def test_product_condition_matches_product_only(self):
        condition = ByProduct("A")
        self.assertTrue(condition.matches(line("A", 1, "1.00", "x")))
        self.assertFalse(condition.matches(line("B", 1, "1.00", "A")))

    def test_category_condition_ignores_lines_without_category(self):
        condition = ByCategory("shoes")
        self.assertTrue(condition.matches(line("A", 1, "1.00", "shoes")))
        self.assertFalse(condition.matches(line("A", 1, "1.00")))

    def test_round_trip_through_target_pair(self):
        for condition in (ByProduct("42"), ByCategory("7")):
            rebuilt = condition_from_target(condition.target_type, condition.target_id)
            self.assertEqual(rebuilt, condition)

    def test_target_types(self):
        self.assertEqual(ByProduct("1").target_type, TargetType.PRODUCT)
        self.assertEqual(ByCategory("1").target_type, TargetType.CATEGORY)

    def test_unknown_target_type_rejected(self):
        with self.assertRaises(ValueError):
            condition_from_target("brand", "1")

    def test_matching_lines_keeps_cart_order(self):
        cart = [line("B", 1, "1.00", "c"), line("A", 1, "1.00", "c"), line("C", 1, "1.00", "d")]
        self.assertEqual([c.product_id for c in matching_lines(ByCategory("c"), cart)], ["B", "A"])
