"""Pydantic models for ExactOnline documents.

Python attribute names are snake_case; the aliases are the field names of the
Exact REST API, used when reading responses and when serialising requests.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ExactModel(BaseModel):
    """Base model for Exact payloads."""

    class Config:
        extra = "ignore"
        populate_by_name = True

    def to_payload(self) -> Dict[str, Any]:
        """Serialise with Exact field names, omitting empty fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ExactItem(ExactModel):
    """Catalog item (logistics/Items) with its resolved VAT rate."""

    id: str = Field(..., alias="ID")
    code: Optional[str] = Field(None, alias="Code")
    description: Optional[str] = Field(None, alias="Description")
    unit: Optional[str] = Field(None, alias="Unit")
    sales_vat_code: Optional[str] = Field(None, alias="SalesVatCode")
    standard_sales_price: Optional[float] = Field(None, alias="StandardSalesPrice")

    # Fraction (0.21), filled from vat/VATCodes; 0 when unknown
    vat_rate: float = 0.0


class ExactOrderLine(ExactModel):
    """Sales order line (salesorder/SalesOrderLines)."""

    item: str = Field(..., alias="Item")
    description: Optional[str] = Field(None, alias="Description")
    quantity: float = Field(..., alias="Quantity")
    unit_price: float = Field(..., alias="UnitPrice")
    net_price: float = Field(..., alias="NetPrice")
    discount: float = Field(0.0, alias="Discount")
    vat_percentage: float = Field(..., alias="VATPercentage")
    unit_code: str = Field("pc", alias="UnitCode")
    delivery_date: datetime = Field(..., alias="DeliveryDate")
    division: int = Field(0, alias="Division")


class ExactOrder(ExactModel):
    """Sales order header plus lines (salesorder/SalesOrders)."""

    ordered_by: str = Field(..., alias="OrderedBy")
    deliver_to: str = Field(..., alias="DeliverTo")
    invoice_to: str = Field(..., alias="InvoiceTo")
    order_date: datetime = Field(..., alias="OrderDate")
    delivery_date: Optional[datetime] = Field(None, alias="DeliveryDate")
    description: str = Field(..., alias="Description")
    currency: str = Field("EUR", alias="Currency")
    status: int = Field(12, alias="Status")
    division: int = Field(0, alias="Division")
    warehouse_id: Optional[str] = Field(None, alias="WarehouseID")
    salesperson: Optional[str] = Field(None, alias="Salesperson")
    shipping_method: Optional[str] = Field(None, alias="ShippingMethod")
    your_ref: Optional[str] = Field(None, alias="YourRef")

    # VAT-exclusive subtotal; product discounts live in the line net prices
    amount_dc: float = Field(0.0, alias="AmountDC")
    amount_fc: float = Field(0.0, alias="AmountFC")
    amount_fc_excl_vat: float = Field(0.0, alias="AmountFCExclVat")

    # Cart-level pickup discount only
    amount_discount: float = Field(0.0, alias="AmountDiscount")
    amount_discount_excl_vat: float = Field(0.0, alias="AmountDiscountExclVat")
    discount: float = Field(0.0, alias="Discount")

    sales_order_lines: List[ExactOrderLine] = Field(default_factory=list, alias="SalesOrderLines")


class ExactAddress(ExactModel):
    """Account address (crm/Addresses). Type 3 = invoice, 4 = delivery."""

    id: Optional[str] = Field(None, alias="ID")
    account: str = Field(..., alias="Account")
    account_name: Optional[str] = Field(None, alias="AccountName")
    type: int = Field(..., alias="Type")
    address_line1: Optional[str] = Field(None, alias="AddressLine1")
    address_line2: Optional[str] = Field(None, alias="AddressLine2")
    address_line3: Optional[str] = Field(None, alias="AddressLine3")
    city: Optional[str] = Field(None, alias="City")
    postcode: Optional[str] = Field(None, alias="Postcode")
    country: Optional[str] = Field(None, alias="Country")
    main: bool = Field(False, alias="Main")
    division: Optional[int] = Field(None, alias="Division")

    @property
    def full_address(self) -> str:
        parts = [
            self.address_line1,
            self.address_line2,
            self.address_line3,
            self.postcode,
            self.city,
        ]
        return ", ".join(p.strip() for p in parts if p and p.strip())
