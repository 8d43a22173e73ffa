"""
Runtime configuration for the promotions app.
Reads the PROMOTIONS settings dict with defaults for every key.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "CATALOG_BACKEND": "apps.promotions.catalog.InMemoryCatalog",
    "CATALOG_API_URL": "",
    "CATALOG_API_TOKEN": "",
    "CATALOG_TIMEOUT": 10,
    "CATALOG_MAX_RETRIES": 3,
    "COMMIT_TIMEOUT_MS": 5000,
    "STATUS_SWEEP_MINUTES": 5,
    "EXPIRING_SOON_DAYS": 7,
    "CURRENCY": "USD",
}


def get_setting(key: str) -> Any:
    """Get a PROMOTIONS setting, falling back to the built-in default."""
    configured = getattr(settings, "PROMOTIONS", {}) or {}
    return configured.get(key, DEFAULTS[key])


def get_commit_timeout_ms() -> int:
    return int(get_setting("COMMIT_TIMEOUT_MS"))


def get_catalog_timeouts() -> dict[str, int]:
    return {
        "REQUEST_TIMEOUT": int(get_setting("CATALOG_TIMEOUT")),
        "MAX_RETRIES": max(1, int(get_setting("CATALOG_MAX_RETRIES"))),
    }
