"""
Tests for the shared Result types, money helpers and checkout logging context.
"""

import logging
from decimal import Decimal

from django.test import SimpleTestCase

from apps.common.logging import (
    CheckoutContextFilter,
    checkout_context,
    get_checkout_context,
    get_logger,
    set_checkout_context,
)
from apps.common.types import Err, Ok, quantize_money, to_decimal


class ResultTypeTests(SimpleTestCase):
    def test_ok_unwrap(self):
        result = Ok(5)
        self.assertTrue(result.is_ok())
        self.assertEqual(result.unwrap(), 5)
        self.assertEqual(result.map(lambda v: v * 2).unwrap(), 10)

    def test_err_unwrap_raises(self):
        result = Err("boom")
        self.assertTrue(result.is_err())
        self.assertEqual(result.unwrap_or(1), 1)
        with self.assertRaises(ValueError):
            result.unwrap()
        self.assertIs(result.map(lambda v: v * 2), result)
        self.assertEqual(result.unwrap_err(), "boom")

    def test_only_used_helpers_are_exported(self):
        from apps.common import types
        from apps.promotions import discounts

        for name in ("ProductRef", "CategoryRef", "OrderRef", "ServiceResult"):
            self.assertFalse(hasattr(types, name), name)
        self.assertFalse(hasattr(Ok, "and_then"))
        self.assertFalse(hasattr(discounts, "EMPTY_QUOTE"))


class MoneyHelperTests(SimpleTestCase):
    def test_to_decimal_avoids_float_artifacts(self):
        self.assertEqual(to_decimal(0.1), Decimal("0.1"))

    def test_to_decimal_rejects_garbage(self):
        with self.assertRaises(ValueError):
            to_decimal("ten")

    def test_quantize_half_up(self):
        self.assertEqual(quantize_money(Decimal("2.675")), Decimal("2.68"))
        self.assertEqual(quantize_money(Decimal("2.665")), Decimal("2.67"))


class CheckoutContextTests(SimpleTestCase):
    def test_context_manager_restores_previous_values(self):
        set_checkout_context(correlation_id="outer")
        with checkout_context(correlation_id="inner", order_ref="ORD-9"):
            self.assertEqual(get_checkout_context()["correlation_id"], "inner")
            self.assertEqual(get_checkout_context()["order_ref"], "ORD-9")
        self.assertEqual(get_checkout_context()["correlation_id"], "outer")
        self.assertIsNone(get_checkout_context().get("order_ref"))

    def test_filter_injects_context(self):
        record = logging.LogRecord("apps.test", logging.INFO, __file__, 1, "msg", None, None)
        with checkout_context(correlation_id="chk-1", user_id=3):
            CheckoutContextFilter().filter(record)
        self.assertEqual(record.correlation_id, "chk-1")
        self.assertEqual(record.user_id, 3)

    def test_structured_adapter_moves_kwargs_to_extra(self):
        logger = get_logger("apps.test", component="bogo")
        msg, kwargs = logger.process("hello", {"offer_id": "x"})
        self.assertEqual(msg, "hello")
        self.assertEqual(kwargs["extra"], {"component": "bogo", "offer_id": "x"})
