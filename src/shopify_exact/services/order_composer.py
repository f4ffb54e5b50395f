"""Builds the ExactOnline sales order for a Shopify order."""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from shopify_exact.config.constants import (
    CARRIER_FEE_MARKERS,
    DEFAULT_DELIVERY_DAYS,
    DEFAULT_UNIT_CODE,
    DEFAULT_VAT_RATE,
    DELIVERY_TYPE_ATTRIBUTE,
    PICKUP_DATE_ATTRIBUTE,
    PICKUP_MARKER,
    REFERENCE_NUMBER_ATTRIBUTE,
)
from shopify_exact.config.settings import Settings
from shopify_exact.core.exceptions import CounterpartyResolutionError, NoLinesComposedError
from shopify_exact.core.logger import NL_TZ, setup_logger
from shopify_exact.erp.base import CounterpartyResolver
from shopify_exact.models.exact import ExactItem, ExactOrder, ExactOrderLine
from shopify_exact.models.shopify import ShopifyOrder
from shopify_exact.services.discounts import DiscountAllocationResult

logger = setup_logger(__name__)

# Day-first formats used by the storefront's pickup date picker
PICKUP_DATE_FORMATS = ["%d-%m-%Y", "%d/%m/%Y", "%d.%m.%Y"]


def parse_pickup_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO or day-first date. None when blank or unparseable."""
    if not value or not value.strip():
        return None

    value = value.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in PICKUP_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _parse_price(value: Optional[str]) -> Optional[float]:
    if value is None or not str(value).strip():
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _vat_rate(item: ExactItem) -> float:
    return item.vat_rate if item.vat_rate > 0 else DEFAULT_VAT_RATE


def _unit_code(item: ExactItem) -> str:
    return item.unit.strip() if item.unit and item.unit.strip() else DEFAULT_UNIT_CODE


class OrderComposer:
    """Turns a Shopify order plus resolved counterparties into an ExactOrder."""

    def __init__(self, resolver: CounterpartyResolver, settings: Settings):
        self.resolver = resolver
        self.settings = settings

    @staticmethod
    def is_pickup_order(order: ShopifyOrder) -> bool:
        delivery_type = order.note_attribute(DELIVERY_TYPE_ATTRIBUTE)
        return bool(delivery_type) and PICKUP_MARKER in delivery_type.lower()

    @staticmethod
    def resolve_delivery_date(order: ShopifyOrder, today: Optional[date] = None) -> datetime:
        """Pickup date from the note attributes, otherwise a week from today."""
        pickup_date = parse_pickup_date(order.note_attribute(PICKUP_DATE_ATTRIBUTE))
        if pickup_date is None:
            today = today or datetime.now(NL_TZ).date()
            pickup_date = today + timedelta(days=DEFAULT_DELIVERY_DAYS)
        return datetime.combine(pickup_date, time.min)

    @staticmethod
    def extract_reference_number(order: ShopifyOrder) -> Optional[str]:
        reference = order.note_attribute(REFERENCE_NUMBER_ATTRIBUTE)
        if reference is None or not reference.strip():
            return None
        return reference

    def select_shipping_method(self, order: ShopifyOrder) -> str:
        """Carrier only for a paid/free shipping rate with a shipping address."""
        shipping_line = order.first_shipping_line
        title = (shipping_line.title or "") if shipping_line else ""
        has_carrier_fee = any(marker in title for marker in CARRIER_FEE_MARKERS)

        if has_carrier_fee and order.shipping_address is not None:
            return self.settings.carrier_shipping_method_id
        return self.settings.store_pickup_shipping_method_id

    async def compose_lines(
        self,
        order: ShopifyOrder,
        allocation: DiscountAllocationResult,
        delivery_date: datetime,
    ) -> List[ExactOrderLine]:
        """
        Build one Exact line per Shopify line item.

        Raises:
            CounterpartyResolutionError: a SKU has no Exact item
            NoLinesComposedError: the order has no line items
        """
        lines: List[ExactOrderLine] = []

        for line_item, pricing in zip(order.line_items, allocation.lines):
            if not line_item.sku:
                raise CounterpartyResolutionError(
                    f"Line item '{line_item.title}' has no SKU", order_id=order.id
                )

            item = await self.resolver.resolve_or_create_item(line_item.sku)
            if item is None:
                raise CounterpartyResolutionError(
                    f"Item not found in Exact for SKU {line_item.sku}", order_id=order.id
                )

            lines.append(
                ExactOrderLine(
                    item=item.id,
                    description=line_item.title,
                    quantity=line_item.quantity,
                    unit_price=pricing.unit_price,
                    net_price=pricing.net_price,
                    discount=pricing.discount_percentage,
                    vat_percentage=_vat_rate(item),
                    unit_code=_unit_code(item),
                    delivery_date=delivery_date,
                    division=self.settings.exact_division_code,
                )
            )
            logger.debug(
                f"Line {line_item.sku}: unit={pricing.unit_price:.2f} net={pricing.net_price:.2f} "
                f"discount={pricing.discount_percentage:.2f}% pickup/unit={pricing.pickup_discount_per_unit:.2f}"
            )

        if not lines:
            raise NoLinesComposedError("No sales order lines could be composed", order_id=order.id)

        return lines

    async def build_shipping_line(
        self,
        order: ShopifyOrder,
        delivery_date: datetime,
    ) -> Optional[ExactOrderLine]:
        """Synthetic shipping-fee line for non-pickup orders. None when skipped or failed."""
        if self.is_pickup_order(order):
            logger.info(f"Pickup order {order.id}, no shipping line added")
            return None

        sku = self.settings.shipping_product_sku
        try:
            item = await self.resolver.resolve_or_create_item(sku)
            if item is None:
                logger.warning(f"Shipping product {sku} not found, order {order.id} continues without it")
                return None

            shipping_line = order.first_shipping_line
            price = _parse_price(shipping_line.price) if shipping_line else None
            if price is None:
                if item.standard_sales_price and item.standard_sales_price > 0:
                    price = item.standard_sales_price
                else:
                    price = self.settings.default_shipping_price

            return ExactOrderLine(
                item=item.id,
                description=item.description or "Verzendkosten",
                quantity=1,
                unit_price=price,
                net_price=price,
                discount=0.0,
                vat_percentage=_vat_rate(item),
                unit_code=_unit_code(item),
                delivery_date=delivery_date,
                division=self.settings.exact_division_code,
            )

        except Exception as e:
            logger.warning(f"Could not add shipping line to order {order.id}: {e}", exc_info=True)
            return None

    def compose(
        self,
        order: ShopifyOrder,
        customer_id: str,
        lines: List[ExactOrderLine],
        allocation: DiscountAllocationResult,
        delivery_date: datetime,
        order_date: Optional[datetime] = None,
    ) -> ExactOrder:
        """Assemble the sales order header around the composed lines."""
        amount_excl_vat = order.current_subtotal - order.current_tax

        return ExactOrder(
            ordered_by=customer_id,
            deliver_to=customer_id,
            invoice_to=customer_id,
            order_date=order_date or datetime.now(NL_TZ).replace(tzinfo=None),
            delivery_date=delivery_date,
            description=f"Shopify Order #{order.order_number}",
            currency=self.settings.exact_default_currency,
            status=self.settings.exact_order_status,
            division=self.settings.exact_division_code,
            warehouse_id=self.settings.exact_default_warehouse,
            salesperson=self.settings.exact_default_salesperson,
            shipping_method=self.select_shipping_method(order),
            your_ref=self.extract_reference_number(order),
            amount_dc=amount_excl_vat,
            amount_fc=amount_excl_vat,
            amount_fc_excl_vat=amount_excl_vat,
            amount_discount=allocation.pickup_amount_incl_vat if allocation.has_pickup_discount else 0.0,
            amount_discount_excl_vat=allocation.pickup_amount_excl_vat if allocation.has_pickup_discount else 0.0,
            discount=allocation.pickup_percentage,
            sales_order_lines=lines,
        )
