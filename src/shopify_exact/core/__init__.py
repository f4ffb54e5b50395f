"""Core module - Logging, signature verification, failure log and monitoring."""

from shopify_exact.core.failure_log import FailureLog
from shopify_exact.core.logger import setup_logger
from shopify_exact.core.signature import validate_webhook_request, verify_shopify_hmac

__all__ = ["FailureLog", "setup_logger", "validate_webhook_request", "verify_shopify_hmac"]
