"""
Validating entry points for BOGO discount calculation.
Wraps the pure calculator in `discounts.py` with offer-state checks.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from .cart import CartLine, build_cart, total_quantity
from .catalog import CatalogLookup, CatalogProduct, get_catalog, require_available
from .conditions import matching_lines
from .discounts import DiscountQuote, compute_discount
from .exceptions import BelowMinimumBuyQuantity, OfferNotFound, ProductUnavailable
from .models import BogoOffer

logger = logging.getLogger(__name__)


def load_offer(offer_or_id: BogoOffer | UUID | str) -> BogoOffer:
    """Resolve an offer instance or primary key, raising OfferNotFound."""
    if isinstance(offer_or_id, BogoOffer):
        return offer_or_id
    try:
        return BogoOffer.objects.get(pk=offer_or_id)
    except (BogoOffer.DoesNotExist, DjangoValidationError, ValueError) as e:
        raise OfferNotFound(offer_id=offer_or_id) from e


class DiscountService:
    """
    Service for BOGO discount previews.
    Raises PromotionError subclasses when the offer cannot be applied.
    """

    @classmethod
    def calculate_discount(
        cls,
        offer_or_id: BogoOffer | UUID | str,
        buy_lines: Iterable[CartLine | Mapping[str, Any]],
        get_lines: Iterable[CartLine | Mapping[str, Any]],
        now: datetime | None = None,
    ) -> DiscountQuote:
        """
        Calculate the discount an offer grants for the given lines.

        Raises:
            OfferNotFound: Unknown offer id.
            OfferInactive: Offer deactivated or outside its window.
            UsageLimitReached: Usage budget exhausted.
            BelowMinimumBuyQuantity: Not enough buy units.
        """
        offer = load_offer(offer_or_id)
        offer.check_redeemable(now or timezone.now())

        buy = build_cart(buy_lines)
        get = build_cart(get_lines)
        if total_quantity(buy) < offer.buy_quantity:
            raise BelowMinimumBuyQuantity(required=offer.buy_quantity, offer_id=offer.pk)

        quote = compute_discount(offer, buy, get)
        logger.debug(
            "🎁 [BogoDiscount] Offer %s: %d application(s), %d free/discounted unit(s), discount %s",
            offer.pk,
            quote.applications,
            quote.get_quantity,
            quote.discount_amount,
            extra={"offer_id": str(offer.pk), "discount_amount": str(quote.discount_amount)},
        )
        return quote

    @classmethod
    def quote_for_products(  # noqa: PLR0913
        cls,
        offer_id: BogoOffer | UUID | str,
        buy_product_id: str,
        buy_quantity: int,
        get_product_id: str | None = None,
        catalog: CatalogLookup | None = None,
        now: datetime | None = None,
    ) -> DiscountQuote:
        """
        Calculate a discount from product ids, pricing them through the catalog.

        When `get_product_id` is omitted the offer's own get product is used,
        falling back to the buy product for category-targeted offers.
        """
        offer = load_offer(offer_id)
        catalog = catalog or get_catalog()

        buy_product = require_available(catalog, buy_product_id)
        if get_product_id is None:
            get_product_id = offer.get_product_id or buy_product.product_id
        get_product = require_available(catalog, get_product_id)

        # The get side is priced as extra units: one set per possible application
        max_get_units = (buy_quantity // offer.buy_quantity) * offer.get_quantity
        if get_product.product_id == buy_product.product_id:
            cart = [_line_for(buy_product, buy_quantity + max_get_units)]
        else:
            cart = [_line_for(buy_product, buy_quantity)]
            if max_get_units > 0:
                cart.append(_line_for(get_product, max_get_units))

        buy_lines = matching_lines(offer.buy_condition, cart)
        if not buy_lines:
            raise ProductUnavailable(
                f"Product {buy_product_id} does not satisfy the offer's buy condition",
                product_id=buy_product_id,
            )
        get_lines = matching_lines(offer.get_condition, cart)
        return cls.calculate_discount(offer, buy_lines, get_lines, now=now)


def _line_for(product: CatalogProduct, quantity: int) -> CartLine:
    return CartLine(
        product_id=product.product_id,
        category_id=product.category_id,
        quantity=quantity,
        unit_price=product.unit_price,
    )
