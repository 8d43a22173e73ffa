"""
Eligibility matching for BOGO offers.
Scans a cart snapshot against the redeemable offers and reports which ones
qualify, together with a discount preview for each.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.utils import timezone

from .cart import CartLine, build_cart, total_quantity
from .conditions import ByCategory, ByProduct, matching_lines
from .discounts import DiscountQuote, compute_discount
from .models import BogoOffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibleOffer:
    """
    An offer the cart currently qualifies for.

    Attributes:
        offer: The matching BogoOffer.
        buy_lines: Cart lines satisfying the buy condition.
        get_lines: Cart lines satisfying the get condition.
        quote: Discount preview computed from those lines.
    """

    offer: BogoOffer
    buy_lines: tuple[CartLine, ...]
    get_lines: tuple[CartLine, ...]
    quote: DiscountQuote

    def as_dict(self) -> dict[str, Any]:
        return {
            "offer_id": str(self.offer.pk),
            "name": self.offer.name,
            "discount_mode": self.offer.discount_mode,
            **self.quote.as_dict(),
        }


def _ranking_key(eligible: EligibleOffer) -> tuple[Any, ...]:
    created_at = eligible.offer.created_at
    return (
        -eligible.quote.discount_amount,
        created_at is None,
        created_at or datetime.min,
        str(eligible.offer.pk),
    )


class EligibilityService:
    """
    Service for matching carts against active BOGO offers.
    Read-only: never writes and never raises for an offer that does not match.
    """

    @classmethod
    def find_eligible(
        cls,
        cart_lines: Iterable[CartLine | Mapping[str, Any]],
        offers: Iterable[BogoOffer] | None = None,
        now: datetime | None = None,
    ) -> list[EligibleOffer]:
        """
        Find the offers the cart qualifies for.

        Args:
            cart_lines: Cart snapshot (CartLine objects or checkout dicts).
            offers: Candidate offers; defaults to the redeemable offers in the store.
            now: Evaluation time; defaults to the current time.

        Returns:
            Eligible offers, best discount first (ties: oldest offer first).
        """
        now = now or timezone.now()
        lines = build_cart(cart_lines)
        if not lines:
            return []

        if offers is None:
            offers = BogoOffer.objects.redeemable(now)

        eligible = []
        for offer in offers:
            matched = cls.match_offer(offer, lines, now)
            if matched is not None:
                eligible.append(matched)

        eligible.sort(key=_ranking_key)
        logger.debug(
            "🎁 [BogoEligibility] %d eligible offer(s) for %d cart line(s)",
            len(eligible),
            len(lines),
            extra={"eligible_offer_ids": [str(e.offer.pk) for e in eligible]},
        )
        return eligible

    @staticmethod
    def match_offer(offer: BogoOffer, lines: list[CartLine], now: datetime | None = None) -> EligibleOffer | None:
        """Match one offer against the cart, or None if it does not qualify."""
        if not offer.is_redeemable(now):
            return None

        buy_lines = matching_lines(offer.buy_condition, lines)
        if total_quantity(buy_lines) < offer.buy_quantity:
            return None

        get_lines = matching_lines(offer.get_condition, lines)
        if not get_lines:
            return None

        quote = compute_discount(offer, buy_lines, get_lines)
        if not quote.has_discount:
            # Every get unit was needed to satisfy the buy side
            return None

        return EligibleOffer(offer=offer, buy_lines=tuple(buy_lines), get_lines=tuple(get_lines), quote=quote)

    @staticmethod
    def offers_for_product(
        product_id: str, category_id: str | None = None, now: datetime | None = None
    ) -> list[BogoOffer]:
        """Redeemable offers involving a product, directly or through its category."""
        queryset = BogoOffer.objects.redeemable(now).targeting(ByProduct(str(product_id)))
        if category_id:
            queryset = queryset | BogoOffer.objects.redeemable(now).targeting(ByCategory(str(category_id)))
        return list(queryset.distinct().order_by("created_at", "id"))

    @staticmethod
    def offers_for_category(category_id: str, now: datetime | None = None) -> list[BogoOffer]:
        """Redeemable offers whose buy or get side targets a category."""
        return list(
            BogoOffer.objects.redeemable(now).targeting(ByCategory(str(category_id))).order_by("created_at", "id")
        )
