"""
Promotion error taxonomy.

Preview-path code (matcher, calculator previews) never lets these escape to
the checkout flow; commit-path code raises them to the order-placement caller.
"""

from __future__ import annotations

from typing import Any

from apps.common.types import BusinessError


class PromotionError(BusinessError):
    """Base class for BOGO offer errors"""

    code = "PROMOTION_ERROR"
    retryable = False

    def __init__(self, message: str = "", **context: Any) -> None:
        self.context = context
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self) -> str:
        return "Promotion could not be applied"

    def as_dict(self) -> dict[str, Any]:
        """Machine-readable form for callers that report outcomes"""
        return {
            "error_code": self.code,
            "error_message": self.message,
            "retryable": self.retryable,
            **{key: str(value) for key, value in self.context.items()},
        }


class OfferNotFound(PromotionError):
    code = "OFFER_NOT_FOUND"

    def default_message(self) -> str:
        return "BOGO offer not found"


class OfferInactive(PromotionError):
    """Outside the validity window or manually deactivated"""

    code = "OFFER_INACTIVE"

    def default_message(self) -> str:
        return "BOGO offer is not currently active"


class BelowMinimumBuyQuantity(PromotionError):
    code = "MIN_BUY_QUANTITY_NOT_MET"

    def default_message(self) -> str:
        required = self.context.get("required")
        if required is not None:
            return f"Minimum buy quantity of {required} required"
        return "Minimum buy quantity not met"


class UsageLimitReached(PromotionError):
    code = "USAGE_LIMIT_REACHED"

    def default_message(self) -> str:
        return "BOGO offer usage limit reached"


class ProductUnavailable(PromotionError):
    """Product missing from the catalog or inactive"""

    code = "PRODUCT_UNAVAILABLE"

    def default_message(self) -> str:
        return "Product not found or inactive"


class CommitAborted(PromotionError):
    """Transactional failure; nothing was written and the caller may retry"""

    code = "COMMIT_ABORTED"
    retryable = True

    def default_message(self) -> str:
        return "Redemption could not be committed"


class ImmutableLedgerError(PromotionError):
    code = "LEDGER_IMMUTABLE"

    def default_message(self) -> str:
        return "Usage records are append-only"
