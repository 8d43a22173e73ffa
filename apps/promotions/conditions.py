"""
Buy/get conditions for BOGO offers.

A condition targets either one product or one category, never both:

    BuyCondition = ByProduct(product_id) | ByCategory(category_id)

Offers persist a condition as a (target_type, target_id) pair, so a
dual-set state cannot be stored.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

from django.db import models
from django.utils.translation import gettext_lazy as _

if TYPE_CHECKING:
    from .cart import CartLine


class TargetType(models.TextChoices):
    PRODUCT = "product", _("Specific Product")
    CATEGORY = "category", _("Product Category")


@dataclass(frozen=True)
class ByProduct:
    product_id: str

    @property
    def target_type(self) -> TargetType:
        return TargetType.PRODUCT

    @property
    def target_id(self) -> str:
        return self.product_id

    def matches(self, line: CartLine) -> bool:
        return line.product_id == self.product_id

    def __str__(self) -> str:
        return f"product {self.product_id}"


@dataclass(frozen=True)
class ByCategory:
    category_id: str

    @property
    def target_type(self) -> TargetType:
        return TargetType.CATEGORY

    @property
    def target_id(self) -> str:
        return self.category_id

    def matches(self, line: CartLine) -> bool:
        return line.category_id is not None and line.category_id == self.category_id

    def __str__(self) -> str:
        return f"category {self.category_id}"


Condition = ByProduct | ByCategory


def condition_from_target(target_type: str, target_id: str) -> Condition:
    """Rebuild a condition from its stored (target_type, target_id) pair."""
    match TargetType(target_type):
        case TargetType.PRODUCT:
            return ByProduct(str(target_id))
        case TargetType.CATEGORY:
            return ByCategory(str(target_id))
        case unreachable:
            assert_never(unreachable)


def matching_lines(condition: Condition, lines: Iterable[CartLine]) -> list[CartLine]:
    """Cart lines satisfying a condition, in cart order."""
    return [line for line in lines if condition.matches(line)]
