"""Discount allocation.

Splits Shopify discount allocations into product discounts, which end up in
each Exact line's net price, and the cart-level "pickup" discount, which Exact
receives once on the order header.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from shopify_exact.config.constants import PICKUP_MARKER, VAT_UPLIFT
from shopify_exact.models.shopify import (
    DiscountApplication,
    ShopifyLineItem,
    ShopifyOrder,
    parse_amount,
)


@dataclass
class LineDiscount:
    """Per-line pricing derived from the discount allocations."""

    unit_price: float
    quantity: int
    product_discount: float
    pickup_discount: float
    discount_per_unit: float
    net_price: float
    discount_percentage: float

    @property
    def pickup_discount_per_unit(self) -> float:
        return self.pickup_discount / self.quantity if self.quantity > 0 else 0.0

    @property
    def effective_price(self) -> float:
        """Net price after both product and pickup discounts (informational)."""
        return self.net_price - self.pickup_discount_per_unit


@dataclass
class DiscountAllocationResult:
    """Line discounts plus the cart-level pickup discount."""

    lines: List[LineDiscount] = field(default_factory=list)
    pickup_index: Optional[int] = None
    total_pickup: float = 0.0
    pickup_percentage: float = 0.0

    @property
    def has_pickup_discount(self) -> bool:
        return self.pickup_index is not None and self.total_pickup > 0

    @property
    def pickup_amount_excl_vat(self) -> float:
        return self.total_pickup

    @property
    def pickup_amount_incl_vat(self) -> float:
        return self.total_pickup * VAT_UPLIFT


def find_pickup_discount_index(applications: Sequence[DiscountApplication]) -> Optional[int]:
    """Index of the first discount application titled "...pickup...", or None."""
    for index, application in enumerate(applications):
        if application.title and PICKUP_MARKER in application.title.lower():
            return index
    return None


def allocate_line(line: ShopifyLineItem, pickup_index: Optional[int]) -> LineDiscount:
    """
    Compute net price and discount percentage for one line.

    Allocations belonging to the pickup application are kept out of the net
    price. A line without allocations falls back to its `total_discount`.
    """
    product_discount = 0.0
    pickup_discount = 0.0

    if line.discount_allocations:
        for allocation in line.discount_allocations:
            if not allocation.amount:
                continue
            amount = parse_amount(allocation.amount)
            if pickup_index is not None and allocation.discount_application_index == pickup_index:
                pickup_discount += amount
            else:
                product_discount += amount
    elif line.total_discount:
        product_discount = parse_amount(line.total_discount)

    unit_price = line.unit_price
    quantity = line.quantity

    discount_per_unit = product_discount / quantity if quantity > 0 else 0.0
    net_price = unit_price - discount_per_unit
    discount_percentage = (unit_price - net_price) / unit_price * 100 if unit_price > 0 else 0.0

    return LineDiscount(
        unit_price=unit_price,
        quantity=quantity,
        product_discount=product_discount,
        pickup_discount=pickup_discount,
        discount_per_unit=discount_per_unit,
        net_price=net_price,
        discount_percentage=discount_percentage,
    )


def allocate_discounts(order: ShopifyOrder) -> DiscountAllocationResult:
    """Allocate discounts for every line item of an order (same order as `line_items`)."""
    pickup_index = find_pickup_discount_index(order.discount_applications)
    lines = [allocate_line(line, pickup_index) for line in order.line_items]

    result = DiscountAllocationResult(lines=lines, pickup_index=pickup_index)
    if pickup_index is None:
        return result

    result.total_pickup = sum(line.pickup_discount for line in lines)
    if result.total_pickup > 0:
        # current_subtotal already has both product and pickup discounts applied
        subtotal_before_pickup = order.current_subtotal + result.total_pickup
        if subtotal_before_pickup > 0:
            result.pickup_percentage = result.total_pickup / subtotal_before_pickup

    return result
