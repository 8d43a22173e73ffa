"""
BOGO discount calculation.

Pure functions only: no database access and no clock, so previews are safe to
call concurrently and repeatedly. Validation against offer state (window,
status, usage budget) lives in `discount_service`.

Unit allocation rules:
- A physical unit counts toward the buy side or the get side, never both.
  Buy units are reserved first: buy-only lines, then lines that satisfy both
  conditions starting from their cheapest units. Whatever is left is
  get-eligible.
- Get units are taken highest unit price first (ties by product id), which
  gives the customer the largest discount and makes the result independent
  of cart line order.
- Amounts stay unrounded until the final total, which is rounded half-up to
  two decimal places. Line adjustments are a split of that rounded total, so
  they always add up to it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal
from typing import Protocol, assert_never

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.types import CENT, quantize_money

from .cart import CartLine, total_quantity
from .conditions import Condition

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class DiscountMode(models.TextChoices):
    FREE = "free", _("Free")
    PERCENTAGE = "percentage", _("Percentage Off")
    FIXED_AMOUNT = "fixed_amount", _("Fixed Amount Off")


class DiscountTerms(Protocol):
    """The offer attributes the calculator needs (BogoOffer satisfies this)."""

    @property
    def buy_condition(self) -> Condition: ...

    @property
    def get_condition(self) -> Condition: ...

    buy_quantity: int
    get_quantity: int
    discount_mode: str
    discount_value: Decimal


@dataclass(frozen=True)
class OfferTerms:
    """Detached offer terms, handy for previews that never touch the database."""

    buy_condition: Condition
    get_condition: Condition
    buy_quantity: int = 1
    get_quantity: int = 1
    discount_mode: str = DiscountMode.FREE
    discount_value: Decimal = ZERO


@dataclass(frozen=True)
class LineAdjustment:
    """Discount granted on `quantity` units of one cart line."""

    product_id: str
    category_id: str | None
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal


@dataclass(frozen=True)
class DiscountQuote:
    applications: int = 0
    get_quantity: int = 0
    discount_amount: Decimal = ZERO
    line_adjustments: tuple[LineAdjustment, ...] = field(default_factory=tuple)
    buy_units_reserved: int = 0

    @property
    def has_discount(self) -> bool:
        return self.applications > 0 and self.get_quantity > 0

    def as_dict(self) -> dict[str, object]:
        return {
            "applications": self.applications,
            "get_quantity": self.get_quantity,
            "discount_amount": str(self.discount_amount),
            "line_adjustments": [
                {
                    "product_id": adj.product_id,
                    "quantity": adj.quantity,
                    "unit_price": str(adj.unit_price),
                    "discount_amount": str(adj.discount_amount),
                }
                for adj in self.line_adjustments
            ],
        }


# ===============================================================================
# Unit allocation
# ===============================================================================


def _by_price_desc(line: CartLine) -> tuple[Decimal, str]:
    return (-line.unit_price, line.product_id)


def _by_price_asc(line: CartLine) -> tuple[Decimal, str]:
    return (line.unit_price, line.product_id)


def _reserve_buy_units(
    buy_only_units: int, shared: Sequence[CartLine], units_needed: int
) -> list[tuple[CartLine, int]]:
    """Take buy units from buy-only lines first, then the cheapest shared units.

    Returns the shared lines with the units still free for the get side.
    """
    still_needed = max(0, units_needed - buy_only_units)
    remaining: list[tuple[CartLine, int]] = []
    for line in sorted(shared, key=_by_price_asc):
        taken = min(line.quantity, still_needed)
        still_needed -= taken
        if line.quantity - taken:
            remaining.append((line, line.quantity - taken))
    return remaining


def _allocate(
    terms: DiscountTerms, buy_lines: Sequence[CartLine], get_lines: Sequence[CartLine]
) -> tuple[int, int, list[tuple[CartLine, int]]]:
    """Pick the number of applications and the get-eligible unit pool.

    Returns (applications, discounted get units, pool).
    """
    buy_condition = terms.buy_condition
    get_condition = terms.get_condition

    shared = [line for line in buy_lines if get_condition.matches(line)]
    buy_only_units = total_quantity(line for line in buy_lines if not get_condition.matches(line))
    get_only = [(line, line.quantity) for line in get_lines if not buy_condition.matches(line)]

    max_applications = total_quantity(buy_lines) // terms.buy_quantity
    if max_applications == 0:
        return 0, 0, []

    if not shared:
        available = sum(qty for _, qty in get_only)
        return max_applications, min(max_applications * terms.get_quantity, available), get_only

    # Overlapping conditions: more applications reserve more units and can
    # starve the get side, so keep the count that discounts the most units.
    applications, discounted = _best_applications(
        buy_only_units=buy_only_units,
        shared_units=total_quantity(shared),
        get_only_units=sum(qty for _, qty in get_only),
        buy_quantity=terms.buy_quantity,
        get_quantity=terms.get_quantity,
        max_applications=max_applications,
    )
    if discounted == 0:
        return max_applications, 0, []
    pool = get_only + _reserve_buy_units(buy_only_units, shared, applications * terms.buy_quantity)
    return applications, discounted, pool


def _best_applications(  # noqa: PLR0913
    *,
    buy_only_units: int,
    shared_units: int,
    get_only_units: int,
    buy_quantity: int,
    get_quantity: int,
    max_applications: int,
) -> tuple[int, int]:
    """Applications count discounting the most get units (ties: more applications).

    For `a` applications the get side can use every unit not reserved for the
    buy side, so the discounted units are
    `min(a * get_quantity, get_only + shared - max(0, a * buy_quantity - buy_only))`.
    That is an increasing term capped by a non-increasing one, so the best
    count sits where they cross. Only the few counts around each crossing
    are evaluated.
    """

    def discounted(applications: int) -> int:
        reserved_shared = max(0, applications * buy_quantity - buy_only_units)
        return min(applications * get_quantity, get_only_units + shared_units - reserved_shared)

    total_units = buy_only_units + shared_units + get_only_units
    pivots = (
        total_units // (buy_quantity + get_quantity),
        (get_only_units + shared_units) // get_quantity,
        buy_only_units // buy_quantity,
    )
    candidates = {1, max_applications}
    for pivot in pivots:
        candidates.update(pivot + offset for offset in (-1, 0, 1, 2))
    applications = max(
        (count for count in candidates if 1 <= count <= max_applications),
        key=lambda count: (discounted(count), count),
    )
    return applications, discounted(applications)


def _select_units(pool: Sequence[tuple[CartLine, int]], units: int) -> list[tuple[CartLine, int]]:
    """Highest-priced `units` units from the pool, accumulated line by line."""
    selected: list[tuple[CartLine, int]] = []
    for line, available in sorted(pool, key=lambda entry: _by_price_desc(entry[0])):
        if units <= 0:
            break
        taken = min(available, units)
        selected.append((line, taken))
        units -= taken
    return selected


# ===============================================================================
# One function per discount mode
# ===============================================================================


def _free_adjustments(selected: Sequence[tuple[CartLine, int]]) -> list[tuple[CartLine, int, Decimal]]:
    return [(line, qty, line.unit_price * qty) for line, qty in selected]


def _percentage_adjustments(
    selected: Sequence[tuple[CartLine, int]], percent: Decimal
) -> list[tuple[CartLine, int, Decimal]]:
    return [(line, qty, line.unit_price * qty * percent / HUNDRED) for line, qty in selected]


def _fixed_amount_adjustments(
    selected: Sequence[tuple[CartLine, int]], amount: Decimal, applications: int
) -> list[tuple[CartLine, int, Decimal]]:
    # One fixed discount per application, each capped at the unit's own price.
    adjustments = []
    remaining = applications
    for line, qty in selected:
        if remaining <= 0:
            break
        units = min(qty, remaining)
        adjustments.append((line, units, min(amount, line.unit_price) * units))
        remaining -= units
    return adjustments


def _split_total(total: Decimal, amounts: Sequence[Decimal]) -> list[Decimal]:
    """Round line amounts so they sum exactly to the rounded total.

    Each line is rounded down to the cent, then the leftover cents go to the
    lines with the largest remainders (earlier lines win ties).
    """
    floors = [amount.quantize(CENT, rounding=ROUND_DOWN) for amount in amounts]
    leftover = int((total - sum(floors, ZERO)) / CENT)
    by_remainder = sorted(range(len(amounts)), key=lambda i: (-(amounts[i] - floors[i]), i))
    for index in by_remainder[:leftover]:
        floors[index] += CENT
    return floors


def compute_discount(
    terms: DiscountTerms, buy_lines: Sequence[CartLine], get_lines: Sequence[CartLine]
) -> DiscountQuote:
    """
    Compute the discount an offer grants on the given cart lines.

    Args:
        terms: Offer (or OfferTerms) describing conditions, quantities and mode.
        buy_lines: Cart lines matching the buy condition.
        get_lines: Cart lines matching the get condition.

    Returns:
        DiscountQuote; `applications == 0` (no discount) when the buy
        threshold is not met.
    """
    applications, get_units, pool = _allocate(terms, buy_lines, get_lines)
    if applications == 0 or get_units == 0:
        return DiscountQuote(applications=applications, buy_units_reserved=applications * terms.buy_quantity)

    selected = _select_units(pool, get_units)
    value = Decimal(terms.discount_value or 0)

    match DiscountMode(terms.discount_mode):
        case DiscountMode.FREE:
            raw = _free_adjustments(selected)
        case DiscountMode.PERCENTAGE:
            raw = _percentage_adjustments(selected, value)
        case DiscountMode.FIXED_AMOUNT:
            raw = _fixed_amount_adjustments(selected, value, applications)
        case unreachable:
            assert_never(unreachable)

    total = quantize_money(sum((amount for _, _, amount in raw), ZERO))
    line_amounts = _split_total(total, [amount for _, _, amount in raw])
    adjustments = tuple(
        LineAdjustment(
            product_id=line.product_id,
            category_id=line.category_id,
            quantity=qty,
            unit_price=line.unit_price,
            discount_amount=line_amount,
        )
        for (line, qty, _raw_amount), line_amount in zip(raw, line_amounts, strict=True)
    )
    return DiscountQuote(
        applications=applications,
        get_quantity=get_units,
        discount_amount=total,
        line_adjustments=adjustments,
        buy_units_reserved=applications * terms.buy_quantity,
    )
