"""Error taxonomy of the order-ingestion pipeline.

Duplicate deliveries and store conflicts are not errors: the reservation gate
reports them as ``ReservationDecision.ALREADY_HANDLED``.
"""

from typing import Optional


class IngestionError(Exception):
    """Base class for failures after an order has been reserved."""

    def __init__(self, message: str, order_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.order_id = order_id


class CounterpartyResolutionError(IngestionError):
    """Customer or item could not be resolved or created in ExactOnline."""


class NoLinesComposedError(IngestionError):
    """No sales order lines could be built; empty orders are never submitted."""


class ErpSubmissionError(IngestionError):
    """ExactOnline rejected the sales order or did not answer in time."""


class AddressReconciliationError(IngestionError):
    """Address lookup/create/update failed. Logged as a warning only."""
