"""
Promotions models for the BOGO engine.

Supports:
- Buy-X-Get-Y offers on a product or a category, on either side
- Discount modes: free, percentage, fixed amount
- Validity windows with scheduled and live status checks
- Total usage limits backed by an append-only usage ledger
- Optional grouping of offers under a promotion campaign
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .conditions import ByCategory, ByProduct, Condition, TargetType, condition_from_target
from .discounts import DiscountMode
from .exceptions import ImmutableLedgerError, OfferInactive, UsageLimitReached

# ===============================================================================
# Constants
# ===============================================================================

MAX_DISCOUNT_PERCENT = Decimal("100.00")
EXTERNAL_REF_LENGTH = 64


class OfferStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    INACTIVE = "inactive", _("Inactive")


class RedemptionState(models.TextChoices):
    ACTIVE_UNLIMITED = "active_unlimited", _("Active (unlimited)")
    ACTIVE_WITH_BUDGET = "active_with_budget", _("Active (remaining budget)")
    EXHAUSTED = "exhausted", _("Exhausted")
    INACTIVE = "inactive", _("Inactive")


# ===============================================================================
# Promotion Campaign Model
# ===============================================================================


class PromotionCampaign(models.Model):
    """
    Marketing campaign that groups related BOGO offers.
    Used for organisation and reporting only; it does not gate redemption.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, help_text=_("Internal campaign name"))
    slug = models.SlugField(max_length=100, unique=True, help_text=_("URL-friendly identifier"))
    description = models.TextField(blank=True)

    start_date = models.DateTimeField(help_text=_("When campaign becomes active"))
    end_date = models.DateTimeField(null=True, blank=True, help_text=_("When campaign ends (null = no end)"))

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("draft", "Draft"),
        ("active", "Active"),
        ("paused", "Paused"),
        ("completed", "Completed"),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="draft")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_promotion_campaigns",
    )

    class Meta:
        db_table = "promotion_campaigns"
        verbose_name = _("Promotion Campaign")
        verbose_name_plural = _("Promotion Campaigns")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["status"], name="promotion_c_status_2d4f1b_idx"),
            models.Index(fields=["start_date", "end_date"], name="promotion_c_start_d_8a1c3e_idx"),
        )

    def __str__(self) -> str:
        return self.name


# ===============================================================================
# BOGO Offer Model
# ===============================================================================


class BogoOfferQuerySet(models.QuerySet["BogoOffer"]):
    def within_window(self, now: datetime | None = None) -> BogoOfferQuerySet:
        now = now or timezone.now()
        return self.filter(start_date__lte=now, end_date__gte=now)

    def with_budget(self) -> BogoOfferQuerySet:
        return self.filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F("usage_limit")))

    def redeemable(self, now: datetime | None = None) -> BogoOfferQuerySet:
        """Active status, open window and remaining usage budget."""
        return self.filter(status=OfferStatus.ACTIVE).within_window(now).with_budget()

    def targeting(self, condition: Condition) -> BogoOfferQuerySet:
        """Offers whose buy or get side targets the given product/category."""
        return self.filter(
            Q(buy_target_type=condition.target_type, buy_target_id=condition.target_id)
            | Q(get_target_type=condition.target_type, get_target_id=condition.target_id)
        )


class BogoOffer(models.Model):
    """
    Buy-X-Get-Y offer.

    Each side targets exactly one product or one category, stored as a
    (target_type, target_id) pair and exposed as a ByProduct/ByCategory variant.
    `usage_count` only ever moves by relative delta inside the ledger
    transaction; the BogoUsage rows remain the source of truth.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    campaign = models.ForeignKey(
        PromotionCampaign,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bogo_offers",
        help_text=_("Associated marketing campaign"),
    )

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    # Buy requirements
    buy_target_type = models.CharField(max_length=10, choices=TargetType.choices)
    buy_target_id = models.CharField(max_length=EXTERNAL_REF_LENGTH, help_text=_("External product/category id"))
    buy_quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    # Get benefits
    get_target_type = models.CharField(max_length=10, choices=TargetType.choices)
    get_target_id = models.CharField(max_length=EXTERNAL_REF_LENGTH, help_text=_("External product/category id"))
    get_quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    discount_mode = models.CharField(max_length=20, choices=DiscountMode.choices, default=DiscountMode.FREE)
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0)],
        help_text=_("Percentage (0-100) or fixed amount; ignored for free"),
    )

    # Validity window
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    # Status and limits
    status = models.CharField(max_length=10, choices=OfferStatus.choices, default=OfferStatus.INACTIVE)
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text=_("Maximum total redemptions (null = unlimited)"),
    )
    usage_count = models.PositiveIntegerField(default=0, editable=False)
    deactivated_at = models.DateTimeField(
        null=True, blank=True, editable=False, help_text=_("Set when an admin switches the offer off")
    )

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_bogo_offers",
    )

    objects = BogoOfferQuerySet.as_manager()

    class Meta:
        db_table = "promotion_bogo_offers"
        verbose_name = _("BOGO Offer")
        verbose_name_plural = _("BOGO Offers")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["status"], name="promotion_b_status_5e9a7c_idx"),
            models.Index(fields=["start_date", "end_date"], name="promotion_b_start_d_3f6b2d_idx"),
            models.Index(fields=["status", "start_date", "end_date"], name="idx_bogo_offer_active"),
            models.Index(fields=["buy_target_type", "buy_target_id"], name="idx_bogo_offer_buy_target"),
            models.Index(fields=["get_target_type", "get_target_id"], name="idx_bogo_offer_get_target"),
            models.Index(fields=["created_by"], name="promotion_b_created_7c2e4a_idx"),
        )
        constraints: ClassVar[tuple[models.BaseConstraint, ...]] = (
            models.CheckConstraint(condition=Q(end_date__gt=F("start_date")), name="bogo_offer_valid_dates"),
            models.CheckConstraint(condition=Q(buy_quantity__gte=1), name="bogo_offer_buy_quantity_min"),
            models.CheckConstraint(condition=Q(get_quantity__gte=1), name="bogo_offer_get_quantity_min"),
            models.CheckConstraint(condition=Q(discount_value__gte=0), name="bogo_offer_discount_non_negative"),
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(usage_count__lte=F("usage_limit")),
                name="bogo_offer_usage_within_limit",
            ),
        )

    def __str__(self) -> str:
        return self.name

    # --- conditions -------------------------------------------------------

    @property
    def buy_condition(self) -> Condition:
        return condition_from_target(self.buy_target_type, self.buy_target_id)

    @buy_condition.setter
    def buy_condition(self, condition: Condition) -> None:
        self.buy_target_type = condition.target_type
        self.buy_target_id = condition.target_id

    @property
    def get_condition(self) -> Condition:
        return condition_from_target(self.get_target_type, self.get_target_id)

    @get_condition.setter
    def get_condition(self, condition: Condition) -> None:
        self.get_target_type = condition.target_type
        self.get_target_id = condition.target_id

    @property
    def buy_product_id(self) -> str | None:
        condition = self.buy_condition
        return condition.product_id if isinstance(condition, ByProduct) else None

    @property
    def get_product_id(self) -> str | None:
        condition = self.get_condition
        return condition.product_id if isinstance(condition, ByProduct) else None

    @property
    def get_category_id(self) -> str | None:
        condition = self.get_condition
        return condition.category_id if isinstance(condition, ByCategory) else None

    # --- validation -------------------------------------------------------

    def clean(self) -> None:
        """Validate offer configuration."""
        super().clean()
        errors: dict[str, str] = {}
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            errors["end_date"] = "end_date must be after start_date"
        if self.discount_mode == DiscountMode.PERCENTAGE and self.discount_value is not None:
            if self.discount_value > MAX_DISCOUNT_PERCENT:
                errors["discount_value"] = "Percentage must be between 0 and 100"
        if self.discount_mode == DiscountMode.FIXED_AMOUNT and not self.discount_value:
            errors["discount_value"] = "Fixed amount discount requires a positive discount_value"
        if errors:
            raise ValidationError(errors)

    # --- state ------------------------------------------------------------

    def is_within_window(self, now: datetime | None = None) -> bool:
        now = now or timezone.now()
        return self.start_date <= now <= self.end_date

    @property
    def has_budget(self) -> bool:
        return self.usage_limit is None or self.usage_count < self.usage_limit

    @property
    def remaining_uses(self) -> int | None:
        """Remaining redemptions, or None if unlimited."""
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.usage_count)

    def is_redeemable(self, now: datetime | None = None) -> bool:
        return self.status == OfferStatus.ACTIVE and self.is_within_window(now) and self.has_budget

    def redemption_state(self, now: datetime | None = None) -> RedemptionState:
        if self.status != OfferStatus.ACTIVE or not self.is_within_window(now):
            return RedemptionState.INACTIVE
        if self.usage_limit is None:
            return RedemptionState.ACTIVE_UNLIMITED
        if self.usage_count >= self.usage_limit:
            return RedemptionState.EXHAUSTED
        return RedemptionState.ACTIVE_WITH_BUDGET

    def check_redeemable(self, now: datetime | None = None) -> None:
        """Raise OfferInactive / UsageLimitReached if the offer cannot be redeemed now."""
        now = now or timezone.now()
        if self.status != OfferStatus.ACTIVE:
            raise OfferInactive("BOGO offer is not active", offer_id=self.pk)
        if not self.is_within_window(now):
            raise OfferInactive("BOGO offer is not currently active", offer_id=self.pk)
        if not self.has_budget:
            raise UsageLimitReached(offer_id=self.pk)

    @staticmethod
    def initial_status(start_date: datetime, end_date: datetime, now: datetime | None = None) -> str:
        """Status for a new offer: active only when its window is already open."""
        now = now or timezone.now()
        return OfferStatus.ACTIVE if start_date <= now <= end_date else OfferStatus.INACTIVE


# ===============================================================================
# BOGO Usage Ledger Model
# ===============================================================================


class BogoUsageQuerySet(models.QuerySet["BogoUsage"]):
    def update(self, **kwargs: Any) -> int:
        raise ImmutableLedgerError()

    def delete(self) -> tuple[int, dict[str, int]]:
        raise ImmutableLedgerError()


class BogoUsage(models.Model):
    """
    One successful BOGO redemption.
    Append-only: rows are created by the usage ledger commit and never changed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    offer = models.ForeignKey(BogoOffer, on_delete=models.PROTECT, related_name="usages")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="bogo_usages")
    order_ref = models.CharField(max_length=EXTERNAL_REF_LENGTH, help_text=_("Order reference from the order subsystem"))

    buy_product_id = models.CharField(max_length=EXTERNAL_REF_LENGTH)
    get_product_id = models.CharField(max_length=EXTERNAL_REF_LENGTH)
    buy_quantity = models.PositiveIntegerField()
    get_quantity = models.PositiveIntegerField()
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    used_at = models.DateTimeField(default=timezone.now, editable=False)

    objects = BogoUsageQuerySet.as_manager()

    class Meta:
        db_table = "promotion_bogo_usage"
        verbose_name = _("BOGO Usage")
        verbose_name_plural = _("BOGO Usage")
        ordering: ClassVar[tuple[str, ...]] = ("-used_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["offer", "-used_at"], name="promotion_b_offer_i_9d1e6f_idx"),
            models.Index(fields=["user"], name="promotion_b_user_id_4b8c0e_idx"),
            models.Index(fields=["order_ref"], name="promotion_b_order_r_6a3d9b_idx"),
        )
        constraints: ClassVar[tuple[models.BaseConstraint, ...]] = (
            models.UniqueConstraint(fields=["offer", "order_ref"], name="unique_bogo_offer_per_order"),
            models.CheckConstraint(condition=Q(discount_amount__gte=0), name="bogo_usage_discount_non_negative"),
        )

    def __str__(self) -> str:
        return f"{self.offer_id} on {self.order_ref}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ImmutableLedgerError()
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> tuple[int, dict[str, int]]:
        raise ImmutableLedgerError()
