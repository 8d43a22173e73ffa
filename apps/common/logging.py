"""
Logging infrastructure for the promotions platform.

- CheckoutContextFilter: injects the checkout correlation context into log records
- StructuredLogAdapter: structured context logging
- get_logger: shortcut returning a StructuredLogAdapter

Usage:
    from apps.common.logging import checkout_context, get_logger

    logger = get_logger(__name__, component="bogo")
    with checkout_context(correlation_id="chk-123", user_id=42, order_ref="ORD-1"):
        logger.info("Offer redeemed", offer_id=offer.pk)
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Generator
from typing import Any

# Thread-local storage for checkout context
_checkout_context = threading.local()

CONTEXT_FIELDS = ("correlation_id", "user_id", "order_ref")


# =============================================================================
# CHECKOUT CONTEXT FUNCTIONS
# =============================================================================


def set_checkout_context(**kwargs: Any) -> None:
    """Set checkout context for the current thread"""
    for key, value in kwargs.items():
        setattr(_checkout_context, key, value)


def get_checkout_context() -> dict[str, Any]:
    """Get checkout context for the current thread"""
    return {
        "correlation_id": getattr(_checkout_context, "correlation_id", "-"),
        "user_id": getattr(_checkout_context, "user_id", None),
        "order_ref": getattr(_checkout_context, "order_ref", None),
    }


def clear_checkout_context() -> None:
    """Clear checkout context for the current thread"""
    for attr in CONTEXT_FIELDS:
        if hasattr(_checkout_context, attr):
            delattr(_checkout_context, attr)


@contextlib.contextmanager
def checkout_context(**kwargs: Any) -> Generator[dict[str, Any], None, None]:
    """Scope checkout context to a block, restoring the previous values afterwards."""
    previous = {attr: getattr(_checkout_context, attr) for attr in CONTEXT_FIELDS if hasattr(_checkout_context, attr)}
    set_checkout_context(**kwargs)
    try:
        yield get_checkout_context()
    finally:
        clear_checkout_context()
        set_checkout_context(**previous)


# =============================================================================
# CHECKOUT CONTEXT FILTER - Structured Logging with Correlation
# =============================================================================


class CheckoutContextFilter(logging.Filter):
    """
    Add checkout correlation context to log records.

    This filter injects the correlation id, user and order reference from
    thread-local storage into every log record, so a preview and the commit
    that follows it can be traced across logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context attributes to log record"""
        if not hasattr(record, "correlation_id"):
            record.correlation_id = getattr(_checkout_context, "correlation_id", "-")  # type: ignore[attr-defined]
        if not hasattr(record, "user_id"):
            record.user_id = getattr(_checkout_context, "user_id", None)  # type: ignore[attr-defined]
        if not hasattr(record, "order_ref"):
            record.order_ref = getattr(_checkout_context, "order_ref", None)  # type: ignore[attr-defined]

        return True


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Log adapter that adds structured context to all log messages.

    Usage:
        logger = StructuredLogAdapter(
            logging.getLogger(__name__),
            {"component": "bogo"}
        )
        logger.info("Offer redeemed", offer_id=123)
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Process log message and add structured context"""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)

        # Add any keyword arguments as extra fields
        for key, value in list(kwargs.items()):
            if key not in ("exc_info", "stack_info", "stacklevel", "extra"):
                extra[key] = value
                del kwargs[key]

        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, **context: Any) -> StructuredLogAdapter:
    """
    Get a structured logger with context.

    Args:
        name: Logger name (usually __name__)
        **context: Additional context to include in all log messages

    Returns:
        StructuredLogAdapter with context
    """
    return StructuredLogAdapter(logging.getLogger(name), context)


__all__ = [
    "CheckoutContextFilter",
    "StructuredLogAdapter",
    "checkout_context",
    "clear_checkout_context",
    "get_checkout_context",
    "get_logger",
    "set_checkout_context",
]
