"""Keeps the Exact account addresses in line with the Shopify order."""

from typing import Optional

from shopify_exact.config.constants import ADDRESS_TYPE_BILLING, ADDRESS_TYPE_DELIVERY
from shopify_exact.core.exceptions import AddressReconciliationError
from shopify_exact.core.logger import setup_logger
from shopify_exact.erp.base import AddressService
from shopify_exact.models.exact import ExactAddress
from shopify_exact.models.shopify import ShopifyAddress, ShopifyOrder

logger = setup_logger(__name__)

COMPARED_FIELDS = ["address1", "address2", "city", "zip", "country", "first_name", "last_name"]


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def addresses_differ(billing: Optional[ShopifyAddress], shipping: Optional[ShopifyAddress]) -> bool:
    """Field-by-field comparison, trimmed and case-insensitive. A missing side counts as equal."""
    if billing is None or shipping is None:
        return False
    return any(
        _normalize(getattr(billing, name)) != _normalize(getattr(shipping, name))
        for name in COMPARED_FIELDS
    )


def shopify_full_address(address: ShopifyAddress) -> str:
    """Same shape as ExactAddress.full_address: lines, postcode, city."""
    parts = [address.address1, address.address2, address.zip, address.city]
    return ", ".join(p.strip() for p in parts if p and p.strip())


class AddressReconciler:
    """Finds or creates the main billing/delivery address of an Exact account."""

    def __init__(
        self,
        address_service: AddressService,
        division: int = 0,
        unflag_previous_main: bool = False,
    ):
        self.address_service = address_service
        self.division = division
        self.unflag_previous_main = unflag_previous_main

    def _to_exact(self, customer_id: str, address: ShopifyAddress, address_type: int) -> ExactAddress:
        name = " ".join(p for p in [address.first_name, address.last_name] if p).strip()
        return ExactAddress(
            account=customer_id,
            account_name=name or None,
            type=address_type,
            address_line1=address.address1,
            address_line2=address.address2,
            city=address.city,
            postcode=address.zip,
            country=address.country_code,
            main=True,
            division=self.division,
        )

    async def ensure_address(self, customer_id: str, address: ShopifyAddress, address_type: int) -> ExactAddress:
        """
        Flag a matching Exact address as main, or create a new main address.

        Raises:
            AddressReconciliationError: the update or create call failed
        """
        existing = await self.address_service.list_addresses(customer_id, address_type)
        target = _normalize(shopify_full_address(address))
        match = next((a for a in existing if _normalize(a.full_address) == target), None)

        if self.unflag_previous_main:
            for other in existing:
                if other is match or not other.main or not other.id:
                    continue
                other.main = False
                if not await self.address_service.update_address(other.id, other):
                    logger.warning(f"Could not unflag main address {other.id} of account {customer_id}")

        if match is not None:
            match.main = True
            if not match.id or not await self.address_service.update_address(match.id, match):
                raise AddressReconciliationError(
                    f"Failed to flag address {match.id} (type {address_type}) as main"
                )
            logger.info(f"Existing address {match.id} (type {address_type}) flagged as main")
            return match

        created = await self.address_service.create_address(
            self._to_exact(customer_id, address, address_type)
        )
        if created is None:
            raise AddressReconciliationError(
                f"Failed to create address (type {address_type}) for account {customer_id}"
            )
        logger.info(f"Created main address (type {address_type}) for account {customer_id}")
        return created

    async def reconcile(self, customer_id: str, order: ShopifyOrder) -> bool:
        """
        Resolve billing and delivery addresses for an order.

        Never raises: address problems do not block the sales order.

        Returns:
            True if everything needed was reconciled
        """
        shipping = order.shipping_address
        if shipping is None:
            logger.info(f"Order {order.id} has no shipping address, skipping address reconciliation")
            return True

        passes = []
        if addresses_differ(order.billing_address, shipping):
            passes.append((order.billing_address, ADDRESS_TYPE_BILLING))
        passes.append((shipping, ADDRESS_TYPE_DELIVERY))

        reconciled = True
        for address, address_type in passes:
            try:
                await self.ensure_address(customer_id, address, address_type)
            except Exception as e:
                logger.warning(
                    f"Address reconciliation (type {address_type}) failed for order {order.id}: {e}",
                    extra={"order_id": order.id},
                )
                reconciled = False
        return reconciled
