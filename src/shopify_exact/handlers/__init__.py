"""Webhook handlers."""

from shopify_exact.handlers.order_created import (
    IngestionOutcome,
    IngestionResult,
    OrderIngestionHandler,
)

__all__ = ["IngestionOutcome", "IngestionResult", "OrderIngestionHandler"]
