"""
Catalog lookup collaborator.

Product persistence lives in the catalog service; the BOGO engine only needs
the current unit price and availability of a product. The backend is picked
with PROMOTIONS["CATALOG_BACKEND"].
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any, Protocol

import requests
from django.utils.module_loading import import_string
from requests import Response

from apps.common.types import IntegrationError, to_decimal

from .config import get_catalog_timeouts, get_setting
from .exceptions import ProductUnavailable

logger = logging.getLogger(__name__)

# HTTP status codes below this are considered successful
HTTP_SUCCESS_THRESHOLD = 400
HTTP_NOT_FOUND = 404


@dataclass(frozen=True)
class CatalogProduct:
    product_id: str
    category_id: str | None
    price: Decimal
    sale_price: Decimal | None = None
    is_active: bool = True

    @property
    def unit_price(self) -> Decimal:
        """Sale price if present, else list price"""
        return self.sale_price if self.sale_price is not None else self.price

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CatalogProduct:
        sale_price = payload.get("sale_price")
        category_id = payload.get("category_id")
        return cls(
            product_id=str(payload.get("id") or payload["product_id"]),
            category_id=str(category_id) if category_id else None,
            price=to_decimal(payload["price"]),
            sale_price=to_decimal(sale_price) if sale_price not in (None, "") else None,
            is_active=bool(payload.get("is_active", True)),
        )


class CatalogLookup(Protocol):
    def get_product(self, product_id: str) -> CatalogProduct | None: ...


def require_available(catalog: CatalogLookup, product_id: str) -> CatalogProduct:
    """Return the product, or raise ProductUnavailable if missing or inactive."""
    product = catalog.get_product(str(product_id))
    if product is None:
        raise ProductUnavailable(f"Product {product_id} not found", product_id=product_id)
    if not product.is_active:
        raise ProductUnavailable(f"Product {product_id} is inactive", product_id=product_id)
    return product


# ===============================================================================
# Backends
# ===============================================================================


class InMemoryCatalog:
    """Dictionary-backed catalog for development and tests."""

    def __init__(self, products: Iterable[CatalogProduct] = ()) -> None:
        self._products: dict[str, CatalogProduct] = {}
        for product in products:
            self.add(product)

    def add(self, product: CatalogProduct) -> None:
        self._products[product.product_id] = product

    def get_product(self, product_id: str) -> CatalogProduct | None:
        return self._products.get(str(product_id))


class HttpCatalog:
    """🛒 HTTP client for the catalog service with timeout and retry logic"""

    def __init__(self, base_url: str | None = None, api_token: str | None = None) -> None:
        self.base_url = (base_url if base_url is not None else get_setting("CATALOG_API_URL")).rstrip("/")
        self.api_token = api_token if api_token is not None else get_setting("CATALOG_API_TOKEN")
        self.session = requests.Session()

    def get_product(self, product_id: str) -> CatalogProduct | None:
        timeouts = get_catalog_timeouts()
        max_retries = timeouts["MAX_RETRIES"]
        url = f"{self.base_url}/products/{product_id}"

        for attempt in range(max_retries):
            try:
                response = self._request(url, timeouts["REQUEST_TIMEOUT"])
                if response.status_code == HTTP_NOT_FOUND:
                    return None
                if response.status_code < HTTP_SUCCESS_THRESHOLD:
                    return self._parse_product(response)
                logger.warning(f"⚠️ [Catalog] HTTP {response.status_code} for product {product_id}")
            except requests.exceptions.Timeout:
                logger.warning(f"⏱️ [Catalog] Timeout for product {product_id} (attempt {attempt + 1})")
            except requests.exceptions.ConnectionError as e:
                logger.warning(f"🔌 [Catalog] Connection error for product {product_id}: {e}")

            if attempt < max_retries - 1:
                self._backoff(attempt)

        raise IntegrationError(f"Catalog lookup failed for product {product_id} after {max_retries} attempts")

    def _request(self, url: str, timeout: int) -> Response:
        headers = {"User-Agent": "BOGO-Promotions/1.0", "Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return self.session.get(url, headers=headers, timeout=timeout)

    @staticmethod
    def _parse_product(response: Response) -> CatalogProduct:
        try:
            payload = response.json()
            return CatalogProduct.from_payload(payload.get("data", payload))
        except (ValueError, KeyError, AttributeError) as e:
            raise IntegrationError(f"Malformed catalog response: {e}") from e

    @staticmethod
    def _backoff(attempt: int) -> None:
        """⏳ Exponential backoff with jitter"""
        jitter = secrets.randbelow(1000) / 1000
        time.sleep((2**attempt) + jitter)


@lru_cache(maxsize=1)
def get_catalog() -> CatalogLookup:
    """Instantiate the configured catalog backend (cached per process)."""
    backend = import_string(get_setting("CATALOG_BACKEND"))
    logger.info(f"🛒 [Catalog] Using backend {backend.__name__}")
    return backend()
