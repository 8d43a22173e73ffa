"""
Tests for the pure BOGO discount calculator.
"""

from decimal import Decimal

from django.test import SimpleTestCase

from apps.promotions.conditions import ByCategory, ByProduct
from apps.promotions.discounts import DiscountMode, OfferTerms, _best_applications, compute_discount
from tests.factories.promotions_factories import line


def terms(**overrides):
    values = {
        "buy_condition": ByProduct("A"),
        "get_condition": ByProduct("B"),
        "buy_quantity": 2,
        "get_quantity": 1,
        "discount_mode": DiscountMode.FREE,
        "discount_value": Decimal("0"),
    }
    values.update(overrides)
    return OfferTerms(**values)


class FreeModeTests(SimpleTestCase):
    """Tests for the free discount mode."""

    def test_highest_priced_get_unit_is_free(self):
        """3xA at $10 with B at $15 and $12: one application, the $15 unit is free."""
        quote = compute_discount(
            terms(),
            [line("A", 3, "10.00")],
            [line("B", 1, "15.00"), line("B", 1, "12.00")],
        )
        self.assertEqual(quote.applications, 1)
        self.assertEqual(quote.get_quantity, 1)
        self.assertEqual(quote.discount_amount, Decimal("15.00"))
        self.assertEqual(len(quote.line_adjustments), 1)
        self.assertEqual(quote.line_adjustments[0].unit_price, Decimal("15.00"))

    def test_applications_floor_of_buy_quantity(self):
        quote = compute_discount(terms(), [line("A", 5, "10.00")], [line("B", 5, "4.00")])
        self.assertEqual(quote.applications, 2)
        self.assertEqual(quote.get_quantity, 2)
        self.assertEqual(quote.discount_amount, Decimal("8.00"))

    def test_below_threshold_yields_no_discount(self):
        quote = compute_discount(terms(), [line("A", 1, "10.00")], [line("B", 3, "4.00")])
        self.assertEqual(quote.applications, 0)
        self.assertEqual(quote.get_quantity, 0)
        self.assertEqual(quote.discount_amount, Decimal("0"))
        self.assertFalse(quote.has_discount)

    def test_get_quantity_capped_by_available_units(self):
        quote = compute_discount(terms(get_quantity=3), [line("A", 4, "10.00")], [line("B", 2, "5.00")])
        self.assertEqual(quote.applications, 2)
        self.assertEqual(quote.get_quantity, 2)
        self.assertEqual(quote.discount_amount, Decimal("10.00"))

    def test_no_get_lines(self):
        quote = compute_discount(terms(), [line("A", 4, "10.00")], [])
        self.assertEqual(quote.applications, 2)
        self.assertEqual(quote.get_quantity, 0)
        self.assertFalse(quote.has_discount)

    def test_units_accumulate_across_lines_by_price(self):
        quote = compute_discount(
            terms(buy_condition=ByCategory("shoes"), get_condition=ByCategory("socks"), get_quantity=2),
            [line("S1", 2, "50.00", "shoes")],
            [line("K1", 1, "3.00", "socks"), line("K2", 1, "8.00", "socks"), line("K3", 5, "6.00", "socks")],
        )
        self.assertEqual(quote.get_quantity, 2)
        self.assertEqual(quote.discount_amount, Decimal("14.00"))
        self.assertEqual([adj.product_id for adj in quote.line_adjustments], ["K2", "K3"])


class PercentageModeTests(SimpleTestCase):
    """Tests for the percentage discount mode."""

    def test_half_off_two_units(self):
        """50% on two get units worth $40 in total gives $20."""
        quote = compute_discount(
            terms(discount_mode=DiscountMode.PERCENTAGE, discount_value=Decimal("50"), get_quantity=2),
            [line("A", 2, "10.00")],
            [line("B", 2, "20.00")],
        )
        self.assertEqual(quote.get_quantity, 2)
        self.assertEqual(quote.discount_amount, Decimal("20.00"))

    def test_rounds_half_up_once(self):
        # 3 units at 0.35, 50% -> 0.525 total, rounded once to 0.53
        quote = compute_discount(
            terms(
                buy_quantity=1,
                get_quantity=3,
                discount_mode=DiscountMode.PERCENTAGE,
                discount_value=Decimal("50"),
            ),
            [line("A", 1, "1.00")],
            [line("B", 1, "0.35"), line("C", 2, "0.35")],
        )
        self.assertEqual(quote.discount_amount, Decimal("0.53"))
        self.assertEqual(sum(adj.discount_amount for adj in quote.line_adjustments), Decimal("0.53"))

    def test_line_adjustments_add_up_to_rounded_total(self):
        # Two half-cent line amounts round to one cent in total, not two
        quote = compute_discount(
            terms(get_quantity=2, discount_mode=DiscountMode.PERCENTAGE, discount_value=Decimal("50")),
            [line("A", 2, "10.00")],
            [line("B", 1, "0.01"), line("C", 1, "0.01")],
        )
        self.assertEqual(quote.discount_amount, Decimal("0.01"))
        self.assertEqual([adj.discount_amount for adj in quote.line_adjustments], [Decimal("0.01"), Decimal("0.00")])

    def test_leftover_cents_go_to_largest_remainders(self):
        # 33.33% of 0.40, 0.30, 0.10 -> 0.13332, 0.09999, 0.03333; total 0.26664 -> 0.27
        quote = compute_discount(
            terms(
                buy_quantity=1,
                get_quantity=3,
                discount_mode=DiscountMode.PERCENTAGE,
                discount_value=Decimal("33.33"),
            ),
            [line("A", 1, "1.00")],
            [line("B", 1, "0.30"), line("C", 1, "0.40"), line("D", 1, "0.10")],
        )
        self.assertEqual(quote.discount_amount, Decimal("0.27"))
        self.assertEqual(
            [(adj.product_id, adj.discount_amount) for adj in quote.line_adjustments],
            [("C", Decimal("0.13")), ("B", Decimal("0.10")), ("D", Decimal("0.04"))],
        )

    def test_percentage_uses_selected_units_only(self):
        quote = compute_discount(
            terms(discount_mode=DiscountMode.PERCENTAGE, discount_value=Decimal("10")),
            [line("A", 2, "10.00")],
            [line("B", 1, "30.00"), line("B2", 1, "100.00")],
        )
        # Only the single selected unit (highest price) is discounted
        self.assertEqual(quote.discount_amount, Decimal("10.00"))


class FixedAmountModeTests(SimpleTestCase):
    """Tests for the fixed amount discount mode."""

    def test_fixed_amount_per_application(self):
        quote = compute_discount(
            terms(discount_mode=DiscountMode.FIXED_AMOUNT, discount_value=Decimal("5.00")),
            [line("A", 4, "10.00")],
            [line("B", 3, "20.00")],
        )
        self.assertEqual(quote.applications, 2)
        self.assertEqual(quote.discount_amount, Decimal("10.00"))

    def test_fixed_amount_capped_at_unit_price(self):
        quote = compute_discount(
            terms(discount_mode=DiscountMode.FIXED_AMOUNT, discount_value=Decimal("25.00")),
            [line("A", 2, "10.00")],
            [line("B", 1, "8.00")],
        )
        self.assertEqual(quote.discount_amount, Decimal("8.00"))

    def test_fixed_amount_never_exceeds_available_units(self):
        quote = compute_discount(
            terms(buy_quantity=1, discount_mode=DiscountMode.FIXED_AMOUNT, discount_value=Decimal("5.00")),
            [line("A", 3, "10.00")],
            [line("B", 1, "20.00")],
        )
        self.assertEqual(quote.applications, 3)
        self.assertEqual(quote.get_quantity, 1)
        self.assertEqual(quote.discount_amount, Decimal("5.00"))


class OverlapPolicyTests(SimpleTestCase):
    """A unit counts toward the buy side or the get side, never both."""

    def test_buy_one_get_one_same_product(self):
        quote = compute_discount(
            terms(buy_condition=ByProduct("A"), get_condition=ByProduct("A"), buy_quantity=1),
            [line("A", 2, "10.00")],
            [line("A", 2, "10.00")],
        )
        self.assertEqual(quote.applications, 1)
        self.assertEqual(quote.get_quantity, 1)
        self.assertEqual(quote.discount_amount, Decimal("10.00"))

    def test_single_unit_cannot_be_its_own_reward(self):
        quote = compute_discount(
            terms(buy_condition=ByProduct("A"), get_condition=ByProduct("A"), buy_quantity=1),
            [line("A", 1, "10.00")],
            [line("A", 1, "10.00")],
        )
        self.assertEqual(quote.get_quantity, 0)
        self.assertFalse(quote.has_discount)

    def test_buy_two_get_one_same_category(self):
        # 3 shirts: the two cheapest satisfy the buy side, the priciest is free
        cart = [line("T1", 1, "20.00", "shirts"), line("T2", 1, "25.00", "shirts"), line("T3", 1, "30.00", "shirts")]
        quote = compute_discount(
            terms(buy_condition=ByCategory("shirts"), get_condition=ByCategory("shirts")),
            cart,
            cart,
        )
        self.assertEqual(quote.applications, 1)
        self.assertEqual(quote.buy_units_reserved, 2)
        self.assertEqual(quote.discount_amount, Decimal("30.00"))

    def test_buy_only_lines_reserved_before_shared_lines(self):
        # T1 and T2 only satisfy the buy side, so T3 stays free for the get side
        cart = [line("T1", 1, "20.00", "shirts"), line("T2", 1, "25.00", "shirts"), line("T3", 1, "30.00", "shirts")]
        quote = compute_discount(
            terms(buy_condition=ByCategory("shirts"), get_condition=ByProduct("T3")),
            cart,
            [cart[2]],
        )
        self.assertEqual(quote.applications, 1)
        self.assertEqual(quote.discount_amount, Decimal("30.00"))

    def test_applications_chosen_to_maximise_discounted_units(self):
        # 4 units of A under buy 1 get 1 of A: two applications, two free units
        quote = compute_discount(
            terms(buy_condition=ByProduct("A"), get_condition=ByProduct("A"), buy_quantity=1),
            [line("A", 4, "10.00")],
            [line("A", 4, "10.00")],
        )
        self.assertEqual(quote.applications, 2)
        self.assertEqual(quote.get_quantity, 2)
        self.assertEqual(quote.discount_amount, Decimal("20.00"))

    def test_large_shared_cart_resolves_without_scanning_units(self):
        # 20 lines of 20,000 units in one category, buy 1 get 1 within it
        cart = [line(f"X{index:02d}", 20_000, "1.00", "X") for index in range(20)]
        quote = compute_discount(
            terms(buy_condition=ByCategory("X"), get_condition=ByCategory("X"), buy_quantity=1),
            cart,
            cart,
        )
        self.assertEqual(quote.applications, 200_000)
        self.assertEqual(quote.get_quantity, 200_000)
        self.assertEqual(quote.discount_amount, Decimal("200000.00"))

    def test_best_applications_matches_exhaustive_search(self):
        def exhaustive(buy_only, shared, get_only, buy_qty, get_qty, max_apps):
            def discounted(count):
                return min(count * get_qty, get_only + shared - max(0, count * buy_qty - buy_only))

            best = max(range(1, max_apps + 1), key=lambda count: (discounted(count), count))
            return best, discounted(best)

        for buy_only in range(5):
            for shared in range(1, 9):
                for get_only in range(4):
                    for buy_qty in range(1, 4):
                        for get_qty in range(1, 4):
                            max_apps = (buy_only + shared) // buy_qty
                            if max_apps == 0:
                                continue
                            expected = exhaustive(buy_only, shared, get_only, buy_qty, get_qty, max_apps)
                            actual = _best_applications(
                                buy_only_units=buy_only,
                                shared_units=shared,
                                get_only_units=get_only,
                                buy_quantity=buy_qty,
                                get_quantity=get_qty,
                                max_applications=max_apps,
                            )
                            self.assertEqual(actual, expected, (buy_only, shared, get_only, buy_qty, get_qty))


class DeterminismTests(SimpleTestCase):
    """The calculator is a pure function of its inputs."""

    def test_line_order_does_not_change_result(self):
        offer = terms(get_quantity=2)
        buy = [line("A", 4, "10.00")]
        get_lines = [line("B", 1, "12.00"), line("C", 1, "15.00"), line("D", 1, "12.00")]
        first = compute_discount(offer, buy, get_lines)
        second = compute_discount(offer, buy, list(reversed(get_lines)))
        self.assertEqual(first, second)

    def test_repeated_calls_are_identical(self):
        offer = terms(discount_mode=DiscountMode.PERCENTAGE, discount_value=Decimal("33.33"))
        buy = [line("A", 3, "10.00")]
        get_lines = [line("B", 2, "9.99")]
        self.assertEqual(compute_discount(offer, buy, get_lines), compute_discount(offer, buy, get_lines))

    def test_as_dict_serialises_amounts_as_strings(self):
        quote = compute_discount(terms(), [line("A", 2, "10.00")], [line("B", 1, "15.00")])
        payload = quote.as_dict()
        self.assertEqual(payload["discount_amount"], "15.00")
        self.assertEqual(payload["line_adjustments"][0]["product_id"], "B")
