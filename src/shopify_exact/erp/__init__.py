"""ERP collaborators - contracts and the ExactOnline implementation."""

from shopify_exact.erp.base import AddressService, CounterpartyResolver, SubmissionResult
from shopify_exact.erp.exact_client import ExactApiError, ExactOnlineClient

__all__ = [
    "AddressService",
    "CounterpartyResolver",
    "ExactApiError",
    "ExactOnlineClient",
    "SubmissionResult",
]
