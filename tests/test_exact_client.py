"""ExactOnline client tests against a mocked HTTP transport."""

import json
from datetime import datetime

import httpx
import pytest

from shopify_exact.erp.exact_client import ExactOnlineClient, odata_results
from shopify_exact.models.exact import ExactAddress, ExactOrder
from shopify_exact.models.shopify import ShopifyCustomer

BASE_URL = "https://start.exactonline.nl"
DIVISION = 123456
API = f"/api/v1/{DIVISION}"


class StaticTokenManager:
    def __init__(self, token="test-token"):
        self.token = token

    async def get_access_token(self):
        return self.token


def make_client(handler, token="test-token") -> ExactOnlineClient:
    return ExactOnlineClient(
        BASE_URL,
        DIVISION,
        StaticTokenManager(token),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def odata(*rows):
    return {"d": {"results": list(rows)}}


def sample_order() -> ExactOrder:
    return ExactOrder(
        ordered_by="cust-1",
        deliver_to="cust-1",
        invoice_to="cust-1",
        order_date=datetime(2025, 3, 7),
        description="Shopify Order #1001",
    )


def test_odata_results_shapes():
    assert odata_results({"d": {"results": [{"ID": "a"}]}}) == [{"ID": "a"}]
    assert odata_results({"d": [{"ID": "b"}]}) == [{"ID": "b"}]
    assert odata_results({"d": {"ID": "c"}}) == [{"ID": "c"}]
    assert odata_results({}) == []


class TestCustomers:

    async def test_existing_account_by_email(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=odata({"ID": "acc-1", "Email": "o'brien@example.com"}))

        client = make_client(handler)
        account_id = await client.resolve_or_create_customer(ShopifyCustomer(email="o'brien@example.com"))

        assert account_id == "acc-1"
        assert seen[0].url.path == f"{API}/crm/Accounts"
        assert seen[0].url.params["$filter"] == "Email eq 'o''brien@example.com'"
        assert seen[0].headers["Authorization"] == "Bearer test-token"

    async def test_missing_account_is_created(self):
        posted = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=odata())
            posted.append(json.loads(request.content))
            return httpx.Response(201, json={"d": {"ID": "acc-new"}})

        client = make_client(handler)
        customer = ShopifyCustomer(
            email="jan@example.com",
            first_name="Jan",
            last_name="Jansen",
            default_address={"address1": "Kerkstraat 1", "city": "Utrecht", "zip": "3511 AB", "country_code": "NL"},
        )

        assert await client.resolve_or_create_customer(customer) == "acc-new"
        assert posted[0]["Name"] == "Jan Jansen"
        assert posted[0]["Email"] == "jan@example.com"
        assert posted[0]["Status"] == "C"
        assert posted[0]["Country"] == "NL"

    async def test_customer_without_email(self):
        client = make_client(lambda request: httpx.Response(500))
        assert await client.resolve_or_create_customer(ShopifyCustomer(id=1)) is None

    async def test_http_error_returns_none(self):
        client = make_client(lambda request: httpx.Response(503, text="maintenance"))
        assert await client.resolve_or_create_customer(ShopifyCustomer(email="a@b.nl")) is None


class TestItems:

    async def test_existing_item_with_vat_rate(self):
        vat_filters = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/logistics/Items"):
                return httpx.Response(200, json=odata({
                    "ID": "item-1",
                    "Code": "ABC",
                    "Description": "Oak Table",
                    "SalesVatCode": "2  ",
                    "StandardSalesPrice": 99.0,
                    "Unit": "pc",
                }))
            vat_filters.append(request.url.params["$filter"])
            return httpx.Response(200, json=odata({"Code": "2", "Percentage": 0.21}))

        item = await make_client(handler).resolve_or_create_item("ABC")

        assert item.id == "item-1"
        assert item.standard_sales_price == pytest.approx(99.0)
        assert item.vat_rate == pytest.approx(0.21)
        assert vat_filters == ["Code eq '2'"]

    async def test_missing_item_is_created(self):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            if request.method == "GET":
                return httpx.Response(200, json=odata())
            return httpx.Response(201, json={"d": {"ID": "item-new", "Code": "XYZ"}})

        item = await make_client(handler).resolve_or_create_item("XYZ")

        assert item.id == "item-new"
        assert item.vat_rate == 0
        assert methods == ["GET", "POST"]

    async def test_failed_lookup_returns_none(self):
        client = make_client(lambda request: httpx.Response(401, text="unauthorized"))
        assert await client.resolve_or_create_item("ABC") is None


class TestSalesOrders:

    async def test_successful_submission(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"d": {"OrderID": "order-guid", "OrderNumber": 70001}})

        result = await make_client(handler).submit_sales_order(sample_order())

        assert result.success
        assert result.exact_order_id == "order-guid"
        assert result.exact_order_number == "70001"
        assert bodies[0]["OrderedBy"] == "cust-1"
        assert bodies[0]["Status"] == 12

    async def test_timeout_is_a_failed_submission(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await make_client(handler).submit_sales_order(sample_order())

        assert not result.success
        assert result.error.startswith("Timeout")

    async def test_rejection_carries_response_text(self):
        client = make_client(lambda request: httpx.Response(400, text="Item is blocked"))

        result = await client.submit_sales_order(sample_order())

        assert not result.success
        assert result.error == "HTTP 400: Item is blocked"

    async def test_missing_token_is_a_failed_submission(self):
        client = make_client(lambda request: httpx.Response(201, json={}), token=None)

        result = await client.submit_sales_order(sample_order())

        assert not result.success
        assert "token" in result.error


class TestAddresses:

    async def test_list_addresses_filter(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["$filter"])
            return httpx.Response(200, json=odata({
                "ID": "addr-1",
                "Account": "cust-1",
                "Type": 4,
                "AddressLine1": "Kerkstraat 1",
                "Postcode": "3511 AB",
                "City": "Utrecht",
                "Main": True,
            }))

        addresses = await make_client(handler).list_addresses("cust-1", 4)

        assert seen == ["Account eq guid'cust-1' and Type eq 4"]
        assert addresses[0].full_address == "Kerkstraat 1, 3511 AB, Utrecht"
        assert addresses[0].main is True

    async def test_update_address_uses_put(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(204)

        address = ExactAddress(id="addr-1", account="cust-1", type=4, main=True)
        assert await make_client(handler).update_address("addr-1", address)

        method, path, body = seen[0]
        assert method == "PUT"
        assert path == f"{API}/crm/Addresses(guid'addr-1')"
        assert body["Main"] is True
        assert "ID" not in body

    async def test_create_address_failure_returns_none(self):
        client = make_client(lambda request: httpx.Response(500, text="error"))
        address = ExactAddress(account="cust-1", type=4, main=True)

        assert await client.create_address(address) is None
