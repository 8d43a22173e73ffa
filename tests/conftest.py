# ===============================================================================
# PYTEST CONFIGURATION FOR THE BOGO PROMOTIONS ENGINE
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- tests/factories/ holds plain-function model factories

Test Discovery:
- Run promotions tests: pytest tests/promotions/
- Run all tests: pytest tests/
- PostgreSQL-only concurrency tests: USE_POSTGRES=true pytest -m postgres
"""

import os

import django


def pytest_configure():
    """Configure Django settings for pytest"""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.test")

    # Configure Django
    django.setup()


# ===============================================================================
# PYTEST FIXTURES
# ===============================================================================

import pytest  # noqa: E402

from apps.common.logging import clear_checkout_context  # noqa: E402
from apps.promotions.catalog import get_catalog  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_promotions_state():
    """Isolate the cached catalog backend and the thread-local checkout context."""
    get_catalog.cache_clear()
    clear_checkout_context()
    yield
    get_catalog.cache_clear()
    clear_checkout_context()
