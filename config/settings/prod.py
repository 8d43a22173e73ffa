"""
Production settings for the BOGO promotions engine
"""

import os

from .base import *  # noqa: F403

# ===============================================================================
# PRODUCTION SECURITY VALIDATION
# ===============================================================================

# Validate SECRET_KEY meets production security requirements
validate_production_secret_key()  # noqa: F405

# ===============================================================================
# PRODUCTION FLAGS
# ===============================================================================

DEBUG = False

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# ===============================================================================
# DATABASE (PostgreSQL required for row locks and commit timeouts)
# ===============================================================================

DATABASES["default"]["CONN_MAX_AGE"] = int(os.environ.get("DB_CONN_MAX_AGE", "300"))  # noqa: F405
DATABASES["default"]["OPTIONS"]["sslmode"] = os.environ.get("DB_SSLMODE", "require")  # noqa: F405

# ===============================================================================
# DJANGO-Q2 (production workers)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    "workers": int(os.environ.get("Q_WORKERS", "4")),
    "recycle": 500,
    "sync": False,
}

# ===============================================================================
# LOGGING (structured, no colours)
# ===============================================================================

LOGGING["root"]["level"] = os.environ.get("LOG_LEVEL", "INFO")  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = os.environ.get("APPS_LOG_LEVEL", "INFO")  # noqa: F405
