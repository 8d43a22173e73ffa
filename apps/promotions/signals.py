"""
Signal handlers for the Promotions app.
Structured audit logging for offer changes and ledger appends.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import BogoOffer, BogoUsage, PromotionCampaign

logger = logging.getLogger(__name__)

OFFER_TRACKED_FIELDS = ["status", "usage_limit", "discount_mode", "discount_value", "start_date", "end_date"]
CAMPAIGN_TRACKED_FIELDS = ["status", "end_date"]


# ===============================================================================
# Helper Functions
# ===============================================================================


def _serialize_value(value: Any) -> Any:
    """Serialize a value for structured log fields."""
    if value is None:
        return None
    if isinstance(value, date | datetime):
        return value.isoformat()
    if isinstance(value, Decimal | UUID):
        return str(value)
    if hasattr(value, "pk"):
        return str(value.pk)
    return value


def _store_old_values(model: type, instance: Any, fields: list[str]) -> None:
    if instance._state.adding:
        return
    old_instance = model.objects.filter(pk=instance.pk).only(*fields).first()
    if old_instance is not None:
        for field in fields:
            setattr(instance, f"_old_{field}", getattr(old_instance, field))


def get_model_changes(instance: Any, fields: list[str]) -> tuple[dict, dict]:
    """Get old and new values for specified fields."""
    old_values = {}
    new_values = {}

    for field in fields:
        if not hasattr(instance, f"_old_{field}"):
            continue
        old_value = getattr(instance, f"_old_{field}")
        new_value = getattr(instance, field, None)

        if old_value != new_value:
            old_values[field] = _serialize_value(old_value)
            new_values[field] = _serialize_value(new_value)

    return old_values, new_values


# ===============================================================================
# Campaign Signals
# ===============================================================================


@receiver(pre_save, sender=PromotionCampaign)
def campaign_pre_save(sender: type, instance: PromotionCampaign, **kwargs: Any) -> None:
    """Store old values before campaign save."""
    _store_old_values(PromotionCampaign, instance, CAMPAIGN_TRACKED_FIELDS)


@receiver(post_save, sender=PromotionCampaign)
def campaign_post_save(sender: type, instance: PromotionCampaign, created: bool, **kwargs: Any) -> None:
    """Log campaign creation and updates."""
    if created:
        logger.info(f"Campaign created: {instance.name}")
        return
    old_values, new_values = get_model_changes(instance, CAMPAIGN_TRACKED_FIELDS)
    if old_values:
        logger.info(
            f"Campaign updated: {instance.name}",
            extra={"campaign_id": str(instance.pk), "old_values": old_values, "new_values": new_values},
        )


# ===============================================================================
# BOGO Offer Signals
# ===============================================================================


@receiver(pre_save, sender=BogoOffer)
def bogo_offer_pre_save(sender: type, instance: BogoOffer, **kwargs: Any) -> None:
    """Store old values before offer save."""
    _store_old_values(BogoOffer, instance, OFFER_TRACKED_FIELDS)


@receiver(post_save, sender=BogoOffer)
def bogo_offer_post_save(sender: type, instance: BogoOffer, created: bool, **kwargs: Any) -> None:
    """Log offer creation, status transitions and term changes."""
    if created:
        logger.info(
            "🎁 [BogoAudit] Offer created: %s (%s)",
            instance.name,
            instance.pk,
            extra={
                "offer_id": str(instance.pk),
                "buy_condition": str(instance.buy_condition),
                "get_condition": str(instance.get_condition),
                "discount_mode": instance.discount_mode,
                "status": instance.status,
            },
        )
        return

    old_values, new_values = get_model_changes(instance, OFFER_TRACKED_FIELDS)
    if not old_values:
        return

    if "status" in new_values:
        logger.info(
            "🔀 [BogoAudit] Offer %s status %s -> %s",
            instance.pk,
            old_values["status"],
            new_values["status"],
            extra={"offer_id": str(instance.pk)},
        )
    else:
        logger.info(
            "🎁 [BogoAudit] Offer %s updated",
            instance.pk,
            extra={"offer_id": str(instance.pk), "old_values": old_values, "new_values": new_values},
        )


# ===============================================================================
# Usage Ledger Signals
# ===============================================================================


@receiver(post_save, sender=BogoUsage)
def bogo_usage_post_save(sender: type, instance: BogoUsage, created: bool, **kwargs: Any) -> None:
    """Log every ledger append."""
    if created:
        logger.info(
            "📒 [BogoAudit] Usage recorded for offer %s on %s",
            instance.offer_id,
            instance.order_ref,
            extra={
                "usage_id": str(instance.pk),
                "offer_id": str(instance.offer_id),
                "user_id": instance.user_id,
                "order_ref": instance.order_ref,
                "discount_amount": str(instance.discount_amount),
            },
        )
