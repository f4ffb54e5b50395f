"""
GlitchTip Error Monitoring Utilities

Helper functions for error tracking and context management.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from shopify_exact.core.logger import setup_logger

logger = setup_logger(__name__)


def init_monitoring(dsn: Optional[str], environment: str) -> bool:
    """
    Initialize GlitchTip (Sentry-compatible) error monitoring.

    Returns:
        True if monitoring was initialized
    """
    if not dsn:
        logger.info("GlitchTip monitoring disabled (no GLITCHTIP_DSN set)")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(
                    level=None,  # Capture all log levels as breadcrumbs
                    event_level=logging.ERROR,
                ),
            ],
            traces_sample_rate=0.1,
            profiles_sample_rate=0.0,
            send_default_pii=False,  # Orders carry customer addresses
        )
        logger.info("GlitchTip error monitoring initialized")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize GlitchTip: {e}")
        return False


def set_order_context(order_id: int, order_number: Optional[int] = None, **extra_tags) -> None:
    """
    Set order-specific context for error tracking.

    Args:
        order_id: Shopify order id
        order_number: Shopify order number
        **extra_tags: Additional tags to add
    """
    try:
        sentry_sdk.set_tag("order.id", order_id)
        if order_number:
            sentry_sdk.set_tag("order.number", order_number)

        for key, value in extra_tags.items():
            sentry_sdk.set_tag(key, value)

        context_data = {"order_id": order_id, "order_number": order_number}
        context_data.update(extra_tags)
        sentry_sdk.set_context("order", context_data)
    except Exception as e:
        logger.warning(f"Failed to set order context: {e}")


def capture_exception(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: str = "error",
) -> None:
    """
    Capture an exception and send to GlitchTip.

    Args:
        error: The exception to capture
        context: Additional context data
        level: Error level (error, warning, info)
    """
    try:
        if context:
            with sentry_sdk.push_scope() as scope:
                scope.set_context("custom", context)
                scope.level = level
                sentry_sdk.capture_exception(error)
        else:
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning(f"Failed to capture exception in GlitchTip: {e}")
