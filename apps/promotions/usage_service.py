"""
BOGO usage ledger.

The commit is the only mutating, concurrency-sensitive operation of the
engine. The offer row is locked, the usage budget is re-checked against the
current count, and the counter moves by a guarded relative increment in the
same transaction that appends the ledger row. The catalog is consulted before
the transaction opens, so a slow catalog never holds the row lock.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, connection, transaction
from django.db.models import Count, F, QuerySet
from django.utils import timezone

from apps.common.logging import checkout_context, get_logger
from apps.common.types import IntegrationError, ValidationError, quantize_money, to_decimal

from .catalog import CatalogLookup, get_catalog, require_available
from .config import get_commit_timeout_ms
from .exceptions import (
    BelowMinimumBuyQuantity,
    CommitAborted,
    OfferInactive,
    OfferNotFound,
    UsageLimitReached,
)
from .models import BogoOffer, BogoUsage, OfferStatus

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = get_logger(__name__, component="bogo_ledger")


class UsageLedgerService:
    """
    Service for committing BOGO redemptions and reading the usage ledger.
    Commit-path errors propagate to the order-placement caller.
    """

    @classmethod
    def apply_discount(  # noqa: PLR0913
        cls,
        offer_id: UUID | str,
        user: AbstractBaseUser,
        order_ref: str,
        buy_product_id: str,
        buy_quantity: int,
        get_product_id: str,
        get_quantity: int,
        discount_amount: Decimal | str,
        catalog: CatalogLookup | None = None,
        now: datetime | None = None,
    ) -> BogoUsage:
        """
        Record a redemption and increment the offer's usage counter atomically.

        Args:
            offer_id: Offer being redeemed.
            user: Redeeming user.
            order_ref: Order reference from the order subsystem.
            buy_product_id: Buy-side product actually used.
            buy_quantity: Buy units actually applied.
            get_product_id: Get-side product actually discounted.
            get_quantity: Get units actually discounted.
            discount_amount: Discount granted (as previewed by the calculator).
            catalog: Catalog backend; defaults to the configured one.
            now: Commit time; defaults to the current time.

        Returns:
            The new BogoUsage ledger row.

        Raises:
            OfferNotFound, OfferInactive, BelowMinimumBuyQuantity,
            ProductUnavailable, UsageLimitReached: nothing was written.
            CommitAborted: transactional or catalog failure; nothing was written, retryable.
        """
        amount = quantize_money(to_decimal(discount_amount))
        if amount < 0:
            raise ValidationError("discount_amount", "Discount amount cannot be negative")
        if get_quantity < 0:
            raise ValidationError("get_quantity", "Get quantity cannot be negative")

        catalog = catalog or get_catalog()
        with checkout_context(user_id=user.pk, order_ref=order_ref):
            try:
                # Catalog round trip happens before the offer row is locked
                require_available(catalog, str(get_product_id))
                with transaction.atomic():
                    cls._apply_commit_timeouts()
                    return cls._commit(
                        offer_id=offer_id,
                        user=user,
                        order_ref=order_ref,
                        buy_product_id=str(buy_product_id),
                        buy_quantity=buy_quantity,
                        get_product_id=str(get_product_id),
                        get_quantity=get_quantity,
                        discount_amount=amount,
                        now=now or timezone.now(),
                    )
            except (DatabaseError, IntegrationError) as e:
                logger.warning(
                    f"🔥 [BogoLedger] Commit aborted for offer {offer_id}: {e}",
                    offer_id=str(offer_id),
                )
                raise CommitAborted(offer_id=offer_id, order_ref=order_ref) from e

    @classmethod
    def _commit(  # noqa: PLR0913
        cls,
        *,
        offer_id: UUID | str,
        user: AbstractBaseUser,
        order_ref: str,
        buy_product_id: str,
        buy_quantity: int,
        get_product_id: str,
        get_quantity: int,
        discount_amount: Decimal,
        now: datetime,
    ) -> BogoUsage:
        try:
            offer = BogoOffer.objects.select_for_update().get(pk=offer_id)
        except (BogoOffer.DoesNotExist, DjangoValidationError, ValueError) as e:
            raise OfferNotFound(offer_id=offer_id) from e

        # Re-validate against the current time, not the preview's
        if offer.status != OfferStatus.ACTIVE or not offer.is_within_window(now):
            raise OfferInactive(offer_id=offer.pk)
        if buy_quantity < offer.buy_quantity:
            raise BelowMinimumBuyQuantity(required=offer.buy_quantity, offer_id=offer.pk)

        counter = BogoOffer.objects.filter(pk=offer.pk)
        if offer.usage_limit is not None:
            counter = counter.filter(usage_count__lt=offer.usage_limit)
        if not counter.update(usage_count=F("usage_count") + 1, updated_at=now):
            logger.info(
                f"🚫 [BogoLedger] Usage limit reached for offer {offer.pk}",
                offer_id=str(offer.pk),
            )
            raise UsageLimitReached(offer_id=offer.pk)

        usage = BogoUsage.objects.create(
            offer=offer,
            user=user,
            order_ref=order_ref,
            buy_product_id=buy_product_id,
            get_product_id=get_product_id,
            buy_quantity=buy_quantity,
            get_quantity=get_quantity,
            discount_amount=discount_amount,
            used_at=now,
        )

        offer.refresh_from_db(fields=["usage_count"])
        logger.info(
            f"✅ [BogoLedger] Offer {offer.pk} redeemed on {order_ref} for {discount_amount}",
            offer_id=str(offer.pk),
            usage_id=str(usage.pk),
            usage_count=offer.usage_count,
        )
        if offer.usage_limit is not None and offer.usage_count >= offer.usage_limit:
            logger.info(
                f"📉 [BogoLedger] Offer {offer.pk} exhausted after {offer.usage_count} use(s)",
                offer_id=str(offer.pk),
            )
        return usage

    @staticmethod
    def _apply_commit_timeouts() -> None:
        """Bound lock waits and statement time for the current transaction (PostgreSQL only)."""
        if connection.vendor != "postgresql":
            return
        timeout = f"{get_commit_timeout_ms()}ms"
        with connection.cursor() as cursor:
            cursor.execute("SELECT set_config('lock_timeout', %s, true)", [timeout])
            cursor.execute("SELECT set_config('statement_timeout', %s, true)", [timeout])

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------

    @staticmethod
    def usage_history(offer: BogoOffer | UUID | str, limit: int = 50, offset: int = 0) -> list[BogoUsage]:
        """Most recent redemptions of an offer."""
        offer_id = offer.pk if isinstance(offer, BogoOffer) else offer
        queryset = BogoUsage.objects.filter(offer_id=offer_id).select_related("user").order_by("-used_at", "id")
        return list(queryset[offset : offset + limit])

    @staticmethod
    def usage_for_order(order_ref: str) -> QuerySet[BogoUsage]:
        return BogoUsage.objects.filter(order_ref=order_ref).select_related("offer")

    @staticmethod
    def ledger_count(offer: BogoOffer | UUID | str) -> int:
        """Authoritative usage count, aggregated from the ledger."""
        offer_id = offer.pk if isinstance(offer, BogoOffer) else offer
        return BogoUsage.objects.filter(offer_id=offer_id).count()

    @classmethod
    def reconcile_usage_counts(cls) -> dict[str, Any]:
        """
        Re-derive every offer's usage_count from the ledger.
        Only offers whose counter drifted are written.
        """
        drifted = (
            BogoOffer.objects.annotate(ledger_total=Count("usages"))
            .exclude(usage_count=F("ledger_total"))
            .values_list("pk", flat=True)
        )
        repaired = []
        for offer_id in list(drifted):
            with transaction.atomic():
                offer = BogoOffer.objects.select_for_update().get(pk=offer_id)
                actual = cls.ledger_count(offer)
                if offer.usage_count != actual:
                    logger.warning(
                        f"⚠️ [BogoLedger] Offer {offer.pk} usage_count {offer.usage_count} != ledger {actual}",
                        offer_id=str(offer.pk),
                    )
                    BogoOffer.objects.filter(pk=offer.pk).update(usage_count=actual)
                    repaired.append(str(offer.pk))
        return {"repaired": len(repaired), "offer_ids": repaired}
