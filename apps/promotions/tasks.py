"""
BOGO promotions background tasks.

Django-Q2 tasks for the offer status sweep and usage counter reconciliation.
Both are idempotent; skipping them is safe because offer windows are
re-checked live and the ledger is the source of truth for usage.
"""

from __future__ import annotations

import logging
from typing import Any

from django.core.cache import cache
from django_q.models import Schedule
from django_q.tasks import async_task, schedule

from .config import get_setting
from .offer_service import BogoOfferService
from .usage_service import UsageLedgerService

logger = logging.getLogger(__name__)

Q_CLUSTER_NAME = "bogo-cluster"
TASK_TIME_LIMIT = 300  # 5 minutes

STATUS_SWEEP_LOCK = "bogo_status_sweep_lock"
USAGE_RECONCILE_LOCK = "bogo_usage_reconcile_lock"

SCHEDULE_STATUS_SWEEP = "bogo-status-sweep"
SCHEDULE_USAGE_RECONCILE = "bogo-usage-reconcile"


def reconcile_offer_statuses() -> dict[str, Any]:
    """
    Activate offers whose window has opened and deactivate expired ones.

    Returns:
        Dictionary with sweep results
    """
    # Prevent overlapping sweeps across workers
    if not cache.add(STATUS_SWEEP_LOCK, True, TASK_TIME_LIMIT):
        logger.info("⏭️ [BogoTasks] Status sweep already running, skipping")
        return {"success": True, "skipped": True}

    try:
        counts = BogoOfferService.reconcile_statuses()
        logger.info(f"✅ [BogoTasks] Status sweep completed: {counts}")
        return {"success": True, **counts}
    except Exception as e:
        logger.exception(f"💥 [BogoTasks] Status sweep failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        cache.delete(STATUS_SWEEP_LOCK)


def reconcile_usage_counts() -> dict[str, Any]:
    """
    Re-derive denormalized usage counters from the usage ledger.

    Returns:
        Dictionary with reconciliation results
    """
    if not cache.add(USAGE_RECONCILE_LOCK, True, TASK_TIME_LIMIT):
        logger.info("⏭️ [BogoTasks] Usage reconciliation already running, skipping")
        return {"success": True, "skipped": True}

    try:
        results = UsageLedgerService.reconcile_usage_counts()
        if results["repaired"]:
            logger.warning(f"⚠️ [BogoTasks] Repaired usage counters for {results['repaired']} offer(s)")
        else:
            logger.info("✅ [BogoTasks] Usage counters match the ledger")
        return {"success": True, **results}
    except Exception as e:
        logger.exception(f"💥 [BogoTasks] Usage reconciliation failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        cache.delete(USAGE_RECONCILE_LOCK)


# ===============================================================================
# TASK QUEUE WRAPPER FUNCTIONS
# ===============================================================================


def reconcile_offer_statuses_async() -> str:
    """Queue the offer status sweep."""
    return async_task("apps.promotions.tasks.reconcile_offer_statuses", timeout=TASK_TIME_LIMIT)


def reconcile_usage_counts_async() -> str:
    """Queue usage counter reconciliation."""
    return async_task("apps.promotions.tasks.reconcile_usage_counts", timeout=TASK_TIME_LIMIT)


# ===============================================================================
# SCHEDULED TASKS SETUP
# ===============================================================================


def setup_promotion_scheduled_tasks() -> dict[str, str]:
    """Set up the BOGO scheduled tasks (safe to call repeatedly)."""
    tasks_created = {}

    existing_tasks = set(
        Schedule.objects.filter(name__in=[SCHEDULE_STATUS_SWEEP, SCHEDULE_USAGE_RECONCILE]).values_list(
            "name", flat=True
        )
    )

    # Status sweep every few minutes
    if SCHEDULE_STATUS_SWEEP not in existing_tasks:
        schedule(
            "apps.promotions.tasks.reconcile_offer_statuses",
            schedule_type=Schedule.MINUTES,
            minutes=int(get_setting("STATUS_SWEEP_MINUTES")),
            name=SCHEDULE_STATUS_SWEEP,
            cluster=Q_CLUSTER_NAME,
        )
        tasks_created["status_sweep"] = "created"
    else:
        tasks_created["status_sweep"] = "already_exists"

    # Ledger reconciliation daily at 3 AM
    if SCHEDULE_USAGE_RECONCILE not in existing_tasks:
        schedule(
            "apps.promotions.tasks.reconcile_usage_counts",
            schedule_type=Schedule.CRON,
            cron="0 3 * * *",
            name=SCHEDULE_USAGE_RECONCILE,
            cluster=Q_CLUSTER_NAME,
        )
        tasks_created["usage_reconcile"] = "created"
    else:
        tasks_created["usage_reconcile"] = "already_exists"

    logger.info(f"✅ [BogoTasks] Scheduled tasks setup: {tasks_created}")
    return tasks_created
