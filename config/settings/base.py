"""
Django settings for the BOGO promotions engine - Base Configuration
"""

import os
from pathlib import Path
from typing import Any

# ===============================================================================
# CORE DJANGO SETTINGS
# ===============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
DJANGO_APPS: list[str] = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
]

THIRD_PARTY_APPS: list[str] = [
    "django_q",  # 🚀 Django-Q2 task queue for the status sweep
]

LOCAL_APPS: list[str] = [
    "apps.promotions",
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ===============================================================================
# DATABASE CONFIGURATION
# ===============================================================================

DATABASES: dict[str, dict[str, Any]] = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "bogo_promotions"),
        "USER": os.environ.get("DB_USER", "bogo"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "development_password"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "CONN_MAX_AGE": 60,  # Database connection pooling
        "OPTIONS": {
            "application_name": "bogo_promotions",
        },
    }
}

# ===============================================================================
# INTERNATIONALIZATION & TIME
# ===============================================================================

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ===============================================================================
# CACHE CONFIGURATION
# ===============================================================================

# Redis URL for caching (if available, otherwise falls back to local memory)
REDIS_URL = os.environ.get("REDIS_URL")

if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": REDIS_URL,
            "KEY_PREFIX": "bogo",
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "bogo-cache",
        }
    }

# ===============================================================================
# BOGO PROMOTIONS CONFIGURATION 🎁
# ===============================================================================

PROMOTIONS: dict[str, Any] = {
    # Catalog collaborator (dotted path to a CatalogLookup implementation)
    "CATALOG_BACKEND": os.environ.get("BOGO_CATALOG_BACKEND", "apps.promotions.catalog.HttpCatalog"),
    "CATALOG_API_URL": os.environ.get("BOGO_CATALOG_API_URL", "http://localhost:8001/api"),
    "CATALOG_API_TOKEN": os.environ.get("BOGO_CATALOG_API_TOKEN", ""),
    "CATALOG_TIMEOUT": int(os.environ.get("BOGO_CATALOG_TIMEOUT", "10")),
    "CATALOG_MAX_RETRIES": int(os.environ.get("BOGO_CATALOG_MAX_RETRIES", "3")),
    # Ledger commit: lock wait and statement limit (PostgreSQL)
    "COMMIT_TIMEOUT_MS": int(os.environ.get("BOGO_COMMIT_TIMEOUT_MS", "5000")),
    # Status sweep interval
    "STATUS_SWEEP_MINUTES": int(os.environ.get("BOGO_STATUS_SWEEP_MINUTES", "5")),
    "EXPIRING_SOON_DAYS": 7,
    "CURRENCY": os.environ.get("BOGO_CURRENCY", "USD"),
}

# ===============================================================================
# DJANGO-Q2 TASK QUEUE CONFIGURATION 🚀
# ===============================================================================

# Base queue cluster configuration
Q_CLUSTER_BASE = {
    "name": "bogo-cluster",
    "timeout": 300,  # 5 minutes
    "retry": 600,  # 10 minutes retry delay
    "save_limit": 1000,  # Keep last 1000 task results
    "catch_up": False,  # Don't run missed scheduled tasks
    "orm": "default",  # Use the database as broker
    "bulk": 10,
    "queue_limit": 100,
}

# Default production configuration (overridden in environment-specific settings)
Q_CLUSTER = {
    **Q_CLUSTER_BASE,
    "workers": 2,
    "recycle": 500,  # Restart workers after 500 tasks
    "sync": False,
}

# ===============================================================================
# LOGGING
# ===============================================================================

LOGGING: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname:<8} {name} {message} [{correlation_id}]",
            "style": "{",
        },
    },
    "filters": {
        "checkout_context": {
            "()": "apps.common.logging.CheckoutContextFilter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
            "filters": ["checkout_context"],
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# ===============================================================================
# DEFAULT AUTO FIELD
# ===============================================================================

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ===============================================================================
# SECURITY SETTINGS (Base - override in prod.py)
# ===============================================================================

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    # Development fallback - never use this in production
    import warnings

    warnings.warn(
        "🚨 SECURITY WARNING: Using default SECRET_KEY. "
        "Set DJANGO_SECRET_KEY environment variable for production!",
        UserWarning,
        stacklevel=2,
    )
    SECRET_KEY = "django-insecure-dev-key-only-change-in-production-or-tests"  # noqa: S105


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith("django-insecure-"):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key with django.core.management.utils.get_random_secret_key()"
        )
