"""Collaborator contracts for the ERP side of the pipeline.

The pipeline only depends on these interfaces, so ExactOnline can be swapped
for a fake in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from shopify_exact.models.exact import ExactAddress, ExactItem, ExactOrder
from shopify_exact.models.shopify import ShopifyCustomer


@dataclass
class SubmissionResult:
    """Outcome of a sales order submission."""

    success: bool
    exact_order_id: Optional[str] = None
    exact_order_number: Optional[str] = None
    error: Optional[str] = None


class CounterpartyResolver(ABC):
    """Resolves storefront references to ERP records and submits orders."""

    @abstractmethod
    async def resolve_or_create_customer(self, customer: ShopifyCustomer) -> Optional[str]:
        """Return the ERP account id for a customer, creating the account if needed.

        Returns:
            Account id, or None if it could not be resolved or created
        """
        pass

    @abstractmethod
    async def resolve_or_create_item(self, sku: str) -> Optional[ExactItem]:
        """Return the ERP item for a SKU with its VAT rate filled in.

        Returns:
            ExactItem, or None if it could not be resolved or created
        """
        pass

    @abstractmethod
    async def submit_sales_order(self, order: ExactOrder) -> SubmissionResult:
        """Create the sales order in the ERP. Never raises for ERP-side failures."""
        pass


class AddressService(ABC):
    """Account address records in the ERP."""

    @abstractmethod
    async def list_addresses(self, customer_id: str, address_type: int) -> List[ExactAddress]:
        pass

    @abstractmethod
    async def create_address(self, address: ExactAddress) -> Optional[ExactAddress]:
        pass

    @abstractmethod
    async def update_address(self, address_id: str, address: ExactAddress) -> bool:
        pass
