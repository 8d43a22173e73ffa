"""
Test settings for the BOGO promotions engine
Fast, isolated testing environment.
"""

import os

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# ===============================================================================
# TEST DATABASE (In-memory for speed, PostgreSQL for concurrency tests)
# ===============================================================================

if os.environ.get("USE_POSTGRES") != "true":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
            "OPTIONS": {
                "timeout": 20,
            },
        }
    }

# ===============================================================================
# TEST CACHE
# ===============================================================================

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "test-cache",
    }
}

# ===============================================================================
# PROMOTIONS (in-memory catalog, no network)
# ===============================================================================

PROMOTIONS = {
    **PROMOTIONS,  # noqa: F405
    "CATALOG_BACKEND": "apps.promotions.catalog.InMemoryCatalog",
    "CATALOG_API_URL": "http://catalog.test/api",
    "CATALOG_MAX_RETRIES": 2,
    "COMMIT_TIMEOUT_MS": 2000,
}

# ===============================================================================
# DJANGO-Q2 (synchronous execution in tests)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    "workers": 1,
    "sync": True,
}

# ===============================================================================
# DISABLE MIGRATIONS FOR FASTER TESTS
# ===============================================================================


class DisableMigrations:
    def __contains__(self, item: str) -> bool:
        return True

    def __getitem__(self, item: str) -> None:
        return None


MIGRATION_MODULES = DisableMigrations()

# ===============================================================================
# PASSWORD HASHER (Fast for tests)
# ===============================================================================

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",  # Fast but insecure (test only)
]

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "checkout_context": {
            "()": "apps.common.logging.CheckoutContextFilter",
        },
    },
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
            "filters": ["checkout_context"],
        },
    },
    "root": {
        "handlers": ["null"],
        "level": "CRITICAL",
    },
}
