"""
BOGO offer store services.
Create, update, deactivate, search and status reconciliation for offers.
Mutations return Result types; nothing here ever deletes an offer.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, DecimalField, Q, QuerySet, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.common.types import Err, Ok, Result

from .conditions import ByCategory, ByProduct, Condition
from .config import get_setting
from .models import BogoOffer, OfferStatus

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = logging.getLogger(__name__)

# ===============================================================================
# Constants
# ===============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

CREATE_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "buy_quantity",
    "get_quantity",
    "discount_mode",
    "discount_value",
    "start_date",
    "end_date",
    "usage_limit",
    "campaign_id",
)

UPDATABLE_FIELDS: tuple[str, ...] = (
    *CREATE_FIELDS,
    "status",
)

# Conditions may be supplied as a variant or as the checkout/admin id pair
CONDITION_SIDES: tuple[str, ...] = ("buy", "get")


@dataclass
class OfferSearchParams:
    """
    Filters for offer search.

    Attributes:
        search: Case-insensitive text matched against name and description.
        sort_by: One of BogoOfferService.SORTABLE_FIELDS; unknown values fall back to created_at.
        sort_order: "asc" or "desc".
    """

    search: str = ""
    status: str | None = None
    start_date_from: datetime | None = None
    start_date_to: datetime | None = None
    end_date_from: datetime | None = None
    end_date_to: datetime | None = None
    created_by_id: int | None = None
    campaign_id: UUID | str | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


@dataclass
class OfferPage:
    offers: list[BogoOffer] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.offers) < self.total


def _condition_from_data(data: Mapping[str, Any], side: str) -> Condition | None | str:
    """
    Read one side's condition from input data.

    Returns the condition, None when the side is absent, or an error string
    when both a product and a category are given.
    """
    condition = data.get(f"{side}_condition")
    if isinstance(condition, ByProduct | ByCategory):
        return condition

    product_id = data.get(f"{side}_product_id")
    category_id = data.get(f"{side}_category_id")
    if product_id and category_id:
        return f"Specify either {side}_product_id or {side}_category_id, not both"
    if product_id:
        return ByProduct(str(product_id))
    if category_id:
        return ByCategory(str(category_id))
    return None


def _format_errors(error: DjangoValidationError) -> str:
    if hasattr(error, "message_dict"):
        return "; ".join(f"{name}: {', '.join(messages)}" for name, messages in sorted(error.message_dict.items()))
    return "; ".join(error.messages)


class BogoOfferService:
    """
    Service for the offer store.
    Offers are soft-deactivated, never physically deleted.
    """

    SORTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"created_at", "updated_at", "name", "start_date", "end_date", "status", "usage_count"}
    )

    @staticmethod
    def get_offer(offer_id: UUID | str) -> BogoOffer | None:
        try:
            return BogoOffer.objects.select_related("campaign", "created_by").get(pk=offer_id)
        except (BogoOffer.DoesNotExist, DjangoValidationError, ValueError):
            return None

    @classmethod
    @transaction.atomic
    def create_offer(
        cls, data: Mapping[str, Any], created_by: AbstractBaseUser | None = None, now: datetime | None = None
    ) -> Result[BogoOffer, str]:
        """
        Create a BOGO offer.

        `data` holds the CREATE_FIELDS plus, for each side, either a
        `<side>_condition` variant or one of `<side>_product_id` /
        `<side>_category_id`. The initial status comes from the window.
        """
        values = {key: data[key] for key in CREATE_FIELDS if key in data}
        offer = BogoOffer(**values, created_by=created_by)

        for side in CONDITION_SIDES:
            condition = _condition_from_data(data, side)
            if isinstance(condition, str):
                return Err(condition)
            if condition is None:
                return Err(f"A {side} product or category is required")
            setattr(offer, f"{side}_condition", condition)

        if offer.start_date and offer.end_date:
            offer.status = BogoOffer.initial_status(offer.start_date, offer.end_date, now)

        try:
            offer.full_clean()
        except DjangoValidationError as e:
            return Err(_format_errors(e))

        offer.save()
        logger.info(
            "🎁 [BogoOffer] Created offer %s (%s), status %s",
            offer.pk,
            offer.name,
            offer.status,
            extra={"offer_id": str(offer.pk), "created_by": getattr(created_by, "pk", None)},
        )
        return Ok(offer)

    @classmethod
    @transaction.atomic
    def update_offer(cls, offer_id: UUID | str, data: Mapping[str, Any]) -> Result[BogoOffer, str]:
        """
        Update whitelisted fields of an offer.
        Unknown keys are ignored; usage_count can never be set here.
        """
        try:
            offer = BogoOffer.objects.select_for_update().get(pk=offer_id)
        except (BogoOffer.DoesNotExist, DjangoValidationError, ValueError):
            return Err("BOGO offer not found")

        changed = [key for key in UPDATABLE_FIELDS if key in data]
        for key in changed:
            setattr(offer, key, data[key])

        for side in CONDITION_SIDES:
            condition = _condition_from_data(data, side)
            if isinstance(condition, str):
                return Err(condition)
            if condition is not None:
                setattr(offer, f"{side}_condition", condition)
                changed.append(f"{side}_condition")

        if not changed:
            return Err("No valid fields to update")

        if "status" in data:
            if data["status"] not in OfferStatus.values:
                return Err(f"Invalid status: {data['status']}")
            # Manual switches override the scheduled sweep until reactivated
            offer.deactivated_at = timezone.now() if data["status"] == OfferStatus.INACTIVE else None

        try:
            offer.full_clean()
        except DjangoValidationError as e:
            return Err(_format_errors(e))

        offer.save()
        logger.info(
            "🎁 [BogoOffer] Updated offer %s: %s",
            offer.pk,
            ", ".join(changed),
            extra={"offer_id": str(offer.pk), "fields": changed},
        )
        return Ok(offer)

    @classmethod
    def set_status(cls, offer_id: UUID | str, status: str) -> Result[BogoOffer, str]:
        if status not in OfferStatus.values:
            return Err(f"Invalid status: {status}")
        return cls.update_offer(offer_id, {"status": status})

    @classmethod
    def deactivate_offer(cls, offer_id: UUID | str) -> Result[BogoOffer, str]:
        """Soft delete: flip the status, keep the row for the usage ledger."""
        return cls.set_status(offer_id, OfferStatus.INACTIVE)

    @classmethod
    def search_offers(cls, params: OfferSearchParams) -> OfferPage:
        """Filter, sort and paginate offers, annotated with ledger totals."""
        queryset = BogoOffer.objects.select_related("campaign", "created_by")

        if params.search:
            queryset = queryset.filter(Q(name__icontains=params.search) | Q(description__icontains=params.search))
        if params.status:
            queryset = queryset.filter(status=params.status)
        if params.start_date_from:
            queryset = queryset.filter(start_date__gte=params.start_date_from)
        if params.start_date_to:
            queryset = queryset.filter(start_date__lte=params.start_date_to)
        if params.end_date_from:
            queryset = queryset.filter(end_date__gte=params.end_date_from)
        if params.end_date_to:
            queryset = queryset.filter(end_date__lte=params.end_date_to)
        if params.created_by_id is not None:
            queryset = queryset.filter(created_by_id=params.created_by_id)
        if params.campaign_id:
            queryset = queryset.filter(campaign_id=params.campaign_id)

        total = queryset.count()

        sort_by = params.sort_by if params.sort_by in cls.SORTABLE_FIELDS else "created_at"
        prefix = "" if params.sort_order == "asc" else "-"
        limit = max(1, min(params.limit, MAX_PAGE_SIZE))
        offset = max(0, params.offset)

        offers = list(
            cls._with_ledger_totals(queryset).order_by(f"{prefix}{sort_by}", "id")[offset : offset + limit]
        )
        return OfferPage(offers=offers, total=total, limit=limit, offset=offset)

    @staticmethod
    def _with_ledger_totals(queryset: QuerySet[BogoOffer]) -> QuerySet[BogoOffer]:
        return queryset.annotate(
            ledger_usage_count=Count("usages"),
            total_discount_given=Coalesce(
                Sum("usages__discount_amount"),
                Value(0),
                output_field=DecimalField(max_digits=12, decimal_places=2),
            ),
        )

    @staticmethod
    def active_offers(limit: int = 10, now: datetime | None = None) -> list[BogoOffer]:
        """Redeemable offers, newest first."""
        return list(BogoOffer.objects.redeemable(now).order_by("-created_at")[:limit])

    @staticmethod
    def expiring_offers(days: int | None = None, now: datetime | None = None) -> list[BogoOffer]:
        """Active offers whose window closes within `days`."""
        now = now or timezone.now()
        days = days if days is not None else int(get_setting("EXPIRING_SOON_DAYS"))
        return list(
            BogoOffer.objects.filter(
                status=OfferStatus.ACTIVE,
                end_date__gte=now,
                end_date__lte=now + timedelta(days=days),
            ).order_by("end_date")
        )

    @staticmethod
    def reconcile_statuses(now: datetime | None = None) -> dict[str, int]:
        """
        Align stored statuses with validity windows.

        Activates inactive offers whose window is open and deactivates active
        offers whose window has ended. Running it twice changes nothing the
        second time. Reads never depend on it: the window is re-checked live.
        """
        now = now or timezone.now()
        with transaction.atomic():
            activated = BogoOffer.objects.filter(
                status=OfferStatus.INACTIVE,
                deactivated_at__isnull=True,
                start_date__lte=now,
                end_date__gte=now,
            ).update(status=OfferStatus.ACTIVE, updated_at=now)
            deactivated = BogoOffer.objects.filter(status=OfferStatus.ACTIVE, end_date__lt=now).update(
                status=OfferStatus.INACTIVE, updated_at=now
            )

        if activated or deactivated:
            logger.info(
                "🔄 [BogoOffer] Status sweep: %d activated, %d deactivated",
                activated,
                deactivated,
                extra={"activated": activated, "deactivated": deactivated},
            )
        return {"activated": activated, "deactivated": deactivated}
