"""
Cart snapshot types consumed by the BOGO engine.
The cart itself belongs to the checkout flow; these are read-only copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from apps.common.types import ValidationError, to_decimal


@dataclass(frozen=True)
class CartLine:
    """One cart line as supplied by the checkout flow."""

    product_id: str
    category_id: str | None
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValidationError("quantity", "Cart line quantity must be at least 1")
        if self.unit_price < 0:
            raise ValidationError("unit_price", "Cart line price cannot be negative")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CartLine:
        """Build a line from the checkout payload (accepts `price` or `unit_price`)."""
        price = data.get("unit_price", data.get("price"))
        if price is None:
            raise ValidationError("unit_price", "Cart line price is required")
        if not data.get("product_id"):
            raise ValidationError("product_id", "Cart line product is required")
        category_id = data.get("category_id")
        return cls(
            product_id=str(data["product_id"]),
            category_id=str(category_id) if category_id else None,
            quantity=int(data.get("quantity", 1)),
            unit_price=to_decimal(price),
        )


def build_cart(items: Iterable[CartLine | Mapping[str, Any]]) -> list[CartLine]:
    """Normalize a mixed iterable of lines/dicts into CartLine objects."""
    return [item if isinstance(item, CartLine) else CartLine.from_dict(item) for item in items]


def total_quantity(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)
