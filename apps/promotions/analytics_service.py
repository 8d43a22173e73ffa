"""
Read-only BOGO reporting built on the usage ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.db.models import Avg, Count, DecimalField, Max, Min, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.common.types import quantize_money

from .models import BogoOffer, BogoUsage

ZERO_MONEY = Value(Decimal("0.00"), output_field=DecimalField(max_digits=12, decimal_places=2))


@dataclass
class OfferAnalytics:
    offer_id: str
    total_usage: int = 0
    total_discount: Decimal = Decimal("0.00")
    unique_customers: int = 0
    average_buy_quantity: float = 0.0
    average_get_quantity: float = 0.0
    first_used_at: datetime | None = None
    last_used_at: datetime | None = None
    top_buy_products: list[dict[str, Any]] = field(default_factory=list)
    top_get_products: list[dict[str, Any]] = field(default_factory=list)


class BogoAnalyticsService:
    """Aggregates over BogoUsage rows; never reads the denormalized counter."""

    @staticmethod
    def _top_products(offer_id: UUID | str, column: str, limit: int) -> list[dict[str, Any]]:
        rows = (
            BogoUsage.objects.filter(offer_id=offer_id)
            .values(column)
            .annotate(times_used=Count("id"), quantity=Sum(column.replace("_product_id", "_quantity")))
            .order_by("-times_used", column)[:limit]
        )
        return [{"product_id": row[column], "times_used": row["times_used"], "quantity": row["quantity"]} for row in rows]

    @classmethod
    def offer_analytics(cls, offer: BogoOffer | UUID | str, top: int = 5) -> OfferAnalytics:
        offer_id = offer.pk if isinstance(offer, BogoOffer) else offer
        totals = BogoUsage.objects.filter(offer_id=offer_id).aggregate(
            total_usage=Count("id"),
            total_discount=Coalesce(Sum("discount_amount"), ZERO_MONEY),
            unique_customers=Count("user", distinct=True),
            average_buy_quantity=Avg("buy_quantity"),
            average_get_quantity=Avg("get_quantity"),
            first_used_at=Min("used_at"),
            last_used_at=Max("used_at"),
        )
        return OfferAnalytics(
            offer_id=str(offer_id),
            total_usage=totals["total_usage"],
            total_discount=quantize_money(Decimal(totals["total_discount"])),
            unique_customers=totals["unique_customers"],
            average_buy_quantity=float(totals["average_buy_quantity"] or 0),
            average_get_quantity=float(totals["average_get_quantity"] or 0),
            first_used_at=totals["first_used_at"],
            last_used_at=totals["last_used_at"],
            top_buy_products=cls._top_products(offer_id, "buy_product_id", top),
            top_get_products=cls._top_products(offer_id, "get_product_id", top),
        )

    @staticmethod
    def most_popular(limit: int = 5, since: datetime | None = None) -> list[dict[str, Any]]:
        """Offers ranked by ledger redemptions (optionally since a date)."""
        usages = BogoUsage.objects.all()
        if since is not None:
            usages = usages.filter(used_at__gte=since)
        rows = (
            usages.values("offer_id", "offer__name")
            .annotate(usage_count=Count("id"), discount_given=Coalesce(Sum("discount_amount"), ZERO_MONEY))
            .order_by("-usage_count", "-discount_given", "offer_id")[:limit]
        )
        return [
            {
                "id": str(row["offer_id"]),
                "name": row["offer__name"],
                "usage_count": row["usage_count"],
                "discount_given": quantize_money(Decimal(row["discount_given"])),
            }
            for row in rows
        ]

    @classmethod
    def dashboard_stats(cls, now: datetime | None = None) -> dict[str, Any]:
        """Headline numbers for the promotions dashboard."""
        now = now or timezone.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today = BogoUsage.objects.filter(used_at__gte=start_of_day, used_at__lt=start_of_day + timedelta(days=1))
        total_discount = BogoUsage.objects.aggregate(total=Coalesce(Sum("discount_amount"), ZERO_MONEY))["total"]
        return {
            "total_active_offers": BogoOffer.objects.redeemable(now).count(),
            "offers_used_today": today.order_by().values("offer_id").distinct().count(),
            "redemptions_today": today.count(),
            "total_discount_given": quantize_money(Decimal(total_discount)),
            "most_popular_offers": cls.most_popular(limit=5),
        }
