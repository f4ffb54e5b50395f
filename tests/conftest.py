"""Shared fixtures: temporary sqlite store, in-memory cache, fake ERP collaborators."""

import copy
from typing import Any, Dict, List, Optional

import pytest

from shopify_exact.config.settings import Settings
from shopify_exact.core.failure_log import FailureLog
from shopify_exact.db import get_engine, get_session_factory, init_db
from shopify_exact.erp.base import AddressService, CounterpartyResolver, SubmissionResult
from shopify_exact.models.exact import ExactAddress, ExactItem, ExactOrder
from shopify_exact.models.shopify import ShopifyCustomer, ShopifyOrder
from shopify_exact.services.address_reconciler import AddressReconciler
from shopify_exact.services.cache import InMemoryReservationCache
from shopify_exact.services.order_composer import OrderComposer
from shopify_exact.services.reservation_gate import ReservationGate


# ----------------------------------------------------------------------
# Fakes
# ----------------------------------------------------------------------


class FakeResolver(CounterpartyResolver):
    """Records every call; items are looked up in a dict."""

    def __init__(self, items: Optional[Dict[str, ExactItem]] = None, customer_id: Optional[str] = "cust-1"):
        self.items = items if items is not None else {}
        self.customer_id = customer_id
        self.submit_result = SubmissionResult(
            success=True, exact_order_id="exact-order-1", exact_order_number="70001"
        )
        self.submit_exception: Optional[Exception] = None
        self.failing_skus: List[str] = []

        self.customer_calls: List[ShopifyCustomer] = []
        self.item_calls: List[str] = []
        self.submitted: List[ExactOrder] = []

    @property
    def call_count(self) -> int:
        return len(self.customer_calls) + len(self.item_calls) + len(self.submitted)

    async def resolve_or_create_customer(self, customer: ShopifyCustomer) -> Optional[str]:
        self.customer_calls.append(customer)
        return self.customer_id

    async def resolve_or_create_item(self, sku: str) -> Optional[ExactItem]:
        self.item_calls.append(sku)
        if sku in self.failing_skus:
            raise RuntimeError(f"Exact unavailable for {sku}")
        return self.items.get(sku)

    async def submit_sales_order(self, order: ExactOrder) -> SubmissionResult:
        self.submitted.append(order)
        if self.submit_exception is not None:
            raise self.submit_exception
        return self.submit_result


class FakeAddressService(AddressService):
    """In-memory address book keyed by (account, type)."""

    def __init__(self, addresses: Optional[List[ExactAddress]] = None):
        self.addresses = addresses or []
        self.list_calls: List[tuple] = []
        self.created: List[ExactAddress] = []
        self.updated: List[tuple] = []
        self.fail_listing = False
        self.fail_create = False

    async def list_addresses(self, customer_id: str, address_type: int) -> List[ExactAddress]:
        self.list_calls.append((customer_id, address_type))
        if self.fail_listing:
            raise RuntimeError("Exact address listing failed")
        return [a for a in self.addresses if a.account == customer_id and a.type == address_type]

    async def create_address(self, address: ExactAddress) -> Optional[ExactAddress]:
        if self.fail_create:
            return None
        created = address.model_copy(update={"id": f"addr-new-{len(self.created) + 1}"})
        self.created.append(created)
        return created

    async def update_address(self, address_id: str, address: ExactAddress) -> bool:
        self.updated.append((address_id, address.main))
        return True


# ----------------------------------------------------------------------
# Payloads
# ----------------------------------------------------------------------

BASE_ORDER: Dict[str, Any] = {
    "id": 1001,
    "order_number": 1001,
    "name": "#1001",
    "email": "jan@example.com",
    "currency": "EUR",
    "customer": {
        "id": 501,
        "email": "jan@example.com",
        "first_name": "Jan",
        "last_name": "Jansen",
    },
    "line_items": [
        {
            "id": 9001,
            "title": "Oak Table",
            "sku": "ABC",
            "quantity": 2,
            "price": "50.00",
            "total_discount": "10.00",
            "discount_allocations": [
                {"amount": "10.00", "discount_application_index": 0},
            ],
        }
    ],
    "discount_applications": [
        {"title": "Pickup Discount", "value": "10%", "value_type": "percentage"},
    ],
    "shipping_lines": [],
    "note_attributes": [
        {"name": "selected_delivery_type", "value": "pickup"},
    ],
    "billing_address": {
        "first_name": "Jan",
        "last_name": "Jansen",
        "address1": "Kerkstraat 1",
        "city": "Utrecht",
        "zip": "3511 AB",
        "country": "Netherlands",
        "country_code": "NL",
    },
    "shipping_address": {
        "first_name": "Jan",
        "last_name": "Jansen",
        "address1": "Kerkstraat 1",
        "city": "Utrecht",
        "zip": "3511 AB",
        "country": "Netherlands",
        "country_code": "NL",
    },
    "total_line_items_price": "100.00",
    "current_subtotal_price": "90.00",
    "current_total_tax": "15.62",
    "current_total_discounts": "10.00",
    "total_price": "90.00",
}


def order_payload(**overrides: Any) -> Dict[str, Any]:
    """Deep copy of the sample order with top-level overrides."""
    payload = copy.deepcopy(BASE_ORDER)
    payload.update(overrides)
    return payload


def make_order(**overrides: Any) -> ShopifyOrder:
    return ShopifyOrder.model_validate(order_payload(**overrides))


def make_item(item_id: str, code: str, **fields: Any) -> ExactItem:
    return ExactItem(id=item_id, code=code, **fields)


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        exact_division_code=123456,
        exact_default_warehouse="wh-1",
        exact_default_salesperson="sp-1",
        shopify_webhook_secret=None,
    )


@pytest.fixture
def items() -> Dict[str, ExactItem]:
    return {
        "ABC": make_item("item-abc", "ABC", description="Oak Table", unit="pc", vat_rate=0.21),
        "09CH9902": make_item(
            "item-ship", "09CH9902", description="Verzendkosten", standard_sales_price=49.95, vat_rate=0.21
        ),
    }


@pytest.fixture
def resolver(items) -> FakeResolver:
    return FakeResolver(items=items)


@pytest.fixture
def address_service() -> FakeAddressService:
    return FakeAddressService()


@pytest.fixture
def composer(resolver, test_settings) -> OrderComposer:
    return OrderComposer(resolver, test_settings)


@pytest.fixture
def reconciler(address_service, test_settings) -> AddressReconciler:
    return AddressReconciler(address_service, division=test_settings.exact_division_code)


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a throwaway sqlite file."""
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'processed_orders.db'}"
    await init_db(database_url)
    engine = get_engine(database_url)
    yield get_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def cache() -> InMemoryReservationCache:
    return InMemoryReservationCache()


@pytest.fixture
def gate(session_factory, cache) -> ReservationGate:
    return ReservationGate(session_factory, cache, lock_ttl_seconds=300, seen_ttl_seconds=7200)


@pytest.fixture
def failure_log(tmp_path) -> FailureLog:
    return FailureLog(tmp_path / "logs" / "failed_orders.log")
