"""Pydantic models for Shopify order webhooks.

Shopify sends snake_case keys; keys are matched case-insensitively so that
`Line_Items` or `ID` from a drifting upstream schema still validate.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def parse_amount(value: Any) -> float:
    """Parse a Shopify money string ("12.50"). Unparseable values count as 0."""
    if value is None:
        return 0.0
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


def none_as_empty_list(value: Any) -> Any:
    """Shopify sends `null` for empty collections on some payloads."""
    return [] if value is None else value


class ShopifyModel(BaseModel):
    """Base model with case-insensitive field matching."""

    @model_validator(mode="before")
    @classmethod
    def lowercase_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                (key.lower() if isinstance(key, str) else key): value
                for key, value in data.items()
            }
        return data

    class Config:
        extra = "allow"
        coerce_numbers_to_str = True


class ShopifyAddress(ShopifyModel):
    """Billing or shipping address."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None


class ShopifyCustomer(ShopifyModel):
    """Customer reference embedded in the order."""

    id: Optional[int] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    default_address: Optional[ShopifyAddress] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name, self.last_name] if p).strip()


class DiscountAllocation(ShopifyModel):
    """Share of a cart-level discount application allocated to one line."""

    amount: Optional[str] = None
    discount_application_index: int = 0


class DiscountApplication(ShopifyModel):
    """Cart-level discount (code, automatic or script)."""

    title: Optional[str] = None
    value: Optional[str] = None
    value_type: Optional[str] = None
    type: Optional[str] = None
    target_type: Optional[str] = None
    allocation_method: Optional[str] = None


class ShopifyLineItem(ShopifyModel):
    """Single order line."""

    id: Optional[int] = None
    title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = 0
    price: Optional[str] = None
    total_discount: Optional[str] = None
    discount_allocations: List[DiscountAllocation] = Field(default_factory=list)

    @field_validator("discount_allocations", mode="before")
    @classmethod
    def allocations_default(cls, value: Any) -> Any:
        return none_as_empty_list(value)

    @property
    def unit_price(self) -> float:
        return parse_amount(self.price)


class ShopifyShippingLine(ShopifyModel):
    """Shipping rate chosen at checkout."""

    id: Optional[int] = None
    title: Optional[str] = None
    price: Optional[str] = None
    code: Optional[str] = None


class NoteAttribute(ShopifyModel):
    """Cart attribute (name/value) set by the storefront theme."""

    name: Optional[str] = None
    value: Optional[str] = None


class ShopifyOrder(ShopifyModel):
    """Order payload of the `orders/create` webhook."""

    id: int
    order_number: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    currency: Optional[str] = None
    customer: Optional[ShopifyCustomer] = None
    line_items: List[ShopifyLineItem] = Field(default_factory=list)
    discount_applications: List[DiscountApplication] = Field(default_factory=list)
    shipping_lines: List[ShopifyShippingLine] = Field(default_factory=list)
    billing_address: Optional[ShopifyAddress] = None
    shipping_address: Optional[ShopifyAddress] = None
    note_attributes: List[NoteAttribute] = Field(default_factory=list)

    @field_validator("line_items", "discount_applications", "shipping_lines", "note_attributes", mode="before")
    @classmethod
    def lists_default(cls, value: Any) -> Any:
        return none_as_empty_list(value)

    total_price: Optional[str] = None
    total_line_items_price: Optional[str] = None
    current_subtotal_price: Optional[str] = None
    current_total_tax: Optional[str] = None
    current_total_discounts: Optional[str] = None

    def note_attribute(self, name: str) -> Optional[str]:
        """Value of the first note attribute with this name."""
        for attribute in self.note_attributes:
            if attribute.name == name:
                return attribute.value
        return None

    @property
    def first_shipping_line(self) -> Optional[ShopifyShippingLine]:
        return self.shipping_lines[0] if self.shipping_lines else None

    @property
    def current_subtotal(self) -> float:
        return parse_amount(self.current_subtotal_price)

    @property
    def current_tax(self) -> float:
        return parse_amount(self.current_total_tax)
