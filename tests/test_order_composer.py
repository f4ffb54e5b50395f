"""Order composer tests."""

from datetime import date, datetime

import pytest

from shopify_exact.core.exceptions import CounterpartyResolutionError, NoLinesComposedError
from shopify_exact.services.discounts import allocate_discounts
from shopify_exact.services.order_composer import OrderComposer, parse_pickup_date

from conftest import make_item, make_order

DELIVERY = datetime(2025, 3, 14)

CARRIER_NOTE = [{"name": "selected_delivery_type", "value": "shipping"}]


class TestNoteAttributes:

    def test_pickup_order_detection(self):
        assert OrderComposer.is_pickup_order(make_order())
        assert OrderComposer.is_pickup_order(
            make_order(note_attributes=[{"name": "selected_delivery_type", "value": "Store PICKUP"}])
        )
        assert not OrderComposer.is_pickup_order(make_order(note_attributes=CARRIER_NOTE))
        assert not OrderComposer.is_pickup_order(make_order(note_attributes=[]))

    @pytest.mark.parametrize(
        "value",
        ["2025-03-14", "2025-03-14T09:30:00", "14-03-2025", "14/03/2025", "14.03.2025"],
    )
    def test_pickup_date_formats(self, value):
        assert parse_pickup_date(value) == date(2025, 3, 14)

    def test_delivery_date_from_note_attribute(self):
        order = make_order(note_attributes=[{"name": "pickup_delivery_date", "value": "14-03-2025"}])
        assert OrderComposer.resolve_delivery_date(order, today=date(2025, 1, 1)) == DELIVERY

    def test_delivery_date_defaults_to_a_week_ahead(self):
        order = make_order(note_attributes=[{"name": "pickup_delivery_date", "value": "someday"}])
        assert OrderComposer.resolve_delivery_date(order, today=date(2025, 1, 1)) == datetime(2025, 1, 8)

    def test_reference_number(self):
        order = make_order(note_attributes=[{"name": "reference_number", "value": "PO-778"}])
        assert OrderComposer.extract_reference_number(order) == "PO-778"

    def test_blank_reference_number_is_none(self):
        order = make_order(note_attributes=[{"name": "reference_number", "value": "   "}])
        assert OrderComposer.extract_reference_number(order) is None
        assert OrderComposer.extract_reference_number(make_order(note_attributes=[])) is None


class TestShippingMethod:

    def test_defaults_to_store_pickup(self, composer, test_settings):
        assert composer.select_shipping_method(make_order()) == test_settings.store_pickup_shipping_method_id

    @pytest.mark.parametrize("title", ["Verzendkosten", "Gratis verzending"])
    def test_carrier_with_fee_marker_and_address(self, composer, test_settings, title):
        order = make_order(shipping_lines=[{"title": title, "price": "6.95"}])
        assert composer.select_shipping_method(order) == test_settings.carrier_shipping_method_id

    def test_marker_without_shipping_address_stays_pickup(self, composer, test_settings):
        order = make_order(shipping_lines=[{"title": "Verzendkosten", "price": "6.95"}], shipping_address=None)
        assert composer.select_shipping_method(order) == test_settings.store_pickup_shipping_method_id

    def test_other_rate_title_stays_pickup(self, composer, test_settings):
        order = make_order(shipping_lines=[{"title": "Express", "price": "12.00"}])
        assert composer.select_shipping_method(order) == test_settings.store_pickup_shipping_method_id


class TestComposeLines:

    async def test_line_pricing_and_defaults(self, composer, resolver, test_settings):
        resolver.items["ABC"] = make_item("item-abc", "ABC", unit=None, vat_rate=0.0)
        order = make_order(discount_applications=[{"title": "SUMMER10"}])

        lines = await composer.compose_lines(order, allocate_discounts(order), DELIVERY)

        assert len(lines) == 1
        exact_line = lines[0]
        assert exact_line.item == "item-abc"
        assert exact_line.quantity == 2
        assert exact_line.unit_price == pytest.approx(50.0)
        assert exact_line.net_price == pytest.approx(45.0)
        assert exact_line.discount == pytest.approx(10.0)
        assert exact_line.vat_percentage == pytest.approx(0.21)
        assert exact_line.unit_code == "pc"
        assert exact_line.delivery_date == DELIVERY
        assert exact_line.division == test_settings.exact_division_code

    async def test_item_vat_rate_is_used(self, composer, resolver):
        resolver.items["ABC"] = make_item("item-abc", "ABC", unit=" stk ", vat_rate=0.09)
        order = make_order()

        lines = await composer.compose_lines(order, allocate_discounts(order), DELIVERY)

        assert lines[0].vat_percentage == pytest.approx(0.09)
        assert lines[0].unit_code == "stk"

    async def test_unresolved_item_aborts(self, composer, resolver):
        del resolver.items["ABC"]
        order = make_order()

        with pytest.raises(CounterpartyResolutionError):
            await composer.compose_lines(order, allocate_discounts(order), DELIVERY)

    async def test_missing_sku_aborts(self, composer):
        order = make_order(line_items=[{"title": "Gift card", "sku": "", "quantity": 1, "price": "25.00"}])

        with pytest.raises(CounterpartyResolutionError):
            await composer.compose_lines(order, allocate_discounts(order), DELIVERY)

    async def test_empty_order_raises(self, composer):
        order = make_order(line_items=[])

        with pytest.raises(NoLinesComposedError):
            await composer.compose_lines(order, allocate_discounts(order), DELIVERY)


class TestShippingLine:

    async def test_not_added_for_pickup_orders(self, composer, resolver):
        assert await composer.build_shipping_line(make_order(), DELIVERY) is None
        assert "09CH9902" not in resolver.item_calls

    async def test_uses_shopify_shipping_price(self, composer):
        order = make_order(note_attributes=CARRIER_NOTE, shipping_lines=[{"title": "Verzendkosten", "price": "6.95"}])

        shipping = await composer.build_shipping_line(order, DELIVERY)

        assert shipping.item == "item-ship"
        assert shipping.quantity == 1
        assert shipping.unit_price == pytest.approx(6.95)
        assert shipping.net_price == pytest.approx(6.95)
        assert shipping.discount == 0

    async def test_free_shipping_rate_is_kept(self, composer):
        order = make_order(note_attributes=CARRIER_NOTE, shipping_lines=[{"title": "Gratis", "price": "0.00"}])

        shipping = await composer.build_shipping_line(order, DELIVERY)

        assert shipping.unit_price == 0

    async def test_falls_back_to_item_standard_price(self, composer):
        order = make_order(note_attributes=CARRIER_NOTE, shipping_lines=[{"title": "Verzendkosten", "price": "n/a"}])

        shipping = await composer.build_shipping_line(order, DELIVERY)

        assert shipping.unit_price == pytest.approx(49.95)

    async def test_falls_back_to_default_price(self, composer, resolver, test_settings):
        resolver.items["09CH9902"] = make_item("item-ship", "09CH9902", standard_sales_price=0.0)
        order = make_order(note_attributes=CARRIER_NOTE, shipping_lines=[])

        shipping = await composer.build_shipping_line(order, DELIVERY)

        assert shipping.unit_price == pytest.approx(test_settings.default_shipping_price)
        assert shipping.vat_percentage == pytest.approx(0.21)

    async def test_unresolved_shipping_item_is_skipped(self, composer, resolver):
        del resolver.items["09CH9902"]
        order = make_order(note_attributes=CARRIER_NOTE)

        assert await composer.build_shipping_line(order, DELIVERY) is None

    async def test_resolver_error_is_skipped(self, composer, resolver):
        resolver.failing_skus.append("09CH9902")
        order = make_order(note_attributes=CARRIER_NOTE)

        assert await composer.build_shipping_line(order, DELIVERY) is None


class TestCompose:

    async def test_header_amounts(self, composer, test_settings):
        order = make_order(note_attributes=[
            {"name": "selected_delivery_type", "value": "pickup"},
            {"name": "reference_number", "value": "PO-778"},
        ])
        allocation = allocate_discounts(order)
        lines = await composer.compose_lines(order, allocation, DELIVERY)

        exact_order = composer.compose(
            order, "cust-1", lines, allocation, DELIVERY, order_date=datetime(2025, 3, 7, 10, 0)
        )

        assert exact_order.ordered_by == exact_order.deliver_to == exact_order.invoice_to == "cust-1"
        assert exact_order.description == "Shopify Order #1001"
        assert exact_order.currency == "EUR"
        assert exact_order.status == 12
        assert exact_order.division == test_settings.exact_division_code
        assert exact_order.warehouse_id == "wh-1"
        assert exact_order.salesperson == "sp-1"
        assert exact_order.your_ref == "PO-778"
        assert exact_order.shipping_method == test_settings.store_pickup_shipping_method_id
        assert exact_order.amount_dc == pytest.approx(74.38)
        assert exact_order.amount_fc == pytest.approx(74.38)
        assert exact_order.amount_fc_excl_vat == pytest.approx(74.38)
        assert exact_order.amount_discount == pytest.approx(12.1)
        assert exact_order.amount_discount_excl_vat == pytest.approx(10.0)
        assert exact_order.discount == pytest.approx(0.1)

    async def test_no_pickup_discount_on_header(self, composer):
        order = make_order(discount_applications=[{"title": "SUMMER10"}])
        allocation = allocate_discounts(order)
        lines = await composer.compose_lines(order, allocation, DELIVERY)

        exact_order = composer.compose(order, "cust-1", lines, allocation, DELIVERY)

        assert exact_order.amount_discount == 0
        assert exact_order.amount_discount_excl_vat == 0
        assert exact_order.discount == 0

    async def test_payload_uses_exact_field_names(self, composer):
        order = make_order(note_attributes=[])
        allocation = allocate_discounts(order)
        lines = await composer.compose_lines(order, allocation, DELIVERY)

        payload = composer.compose(order, "cust-1", lines, allocation, DELIVERY).to_payload()

        assert payload["OrderedBy"] == "cust-1"
        assert payload["Description"] == "Shopify Order #1001"
        assert "YourRef" not in payload
        assert payload["DeliveryDate"] == "2025-03-14T00:00:00"
        assert payload["SalesOrderLines"][0]["Item"] == "item-abc"
        assert payload["SalesOrderLines"][0]["VATPercentage"] == pytest.approx(0.21)
