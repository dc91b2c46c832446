"""Tests unitarios para Money y los modelos de dominio."""

from decimal import Decimal

import pytest

from app.domain.models import ComponentSpec, LineItem, Order
from app.domain.value_objects import Money


class TestMoney:
    """Tests para el value object Money."""

    @pytest.mark.parametrize(
        "amount,parts,expected",
        [
            ("29.99", 2, "15.00"),
            ("10.00", 3, "3.33"),
            ("0.05", 2, "0.03"),
            ("100", 4, "25.00"),
            ("0.00", 2, "0.00"),
        ],
    )
    def test_divide_rounds_half_up(self, amount, parts, expected):
        assert Money.from_string(amount).divide(parts).to_shopify() == expected

    def test_divide_by_zero_rejected(self):
        with pytest.raises(ValueError):
            Money.from_string("10.00").divide(0)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            Money.from_string("-1.00")

    @pytest.mark.parametrize("amount", ["abc", "", "NaN", "Infinity"])
    def test_invalid_amount_rejected(self, amount):
        with pytest.raises(ValueError):
            Money.from_string(amount)

    def test_amount_kept_unrounded(self):
        money = Money.from_string("0.025")

        assert money.amount == Decimal("0.025")
        assert money.divide(2).to_shopify() == "0.01"

    def test_to_shopify_rounds_half_up(self):
        assert Money.from_string("1.005").to_shopify() == "1.01"
        assert str(Money.from_string("7")) == "USD 7.00"

    def test_invalid_currency_rejected(self):
        with pytest.raises(ValueError):
            Money.from_string("1.00", "EURO")


class TestLineItem:
    """Tests para LineItem."""

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
    def test_invalid_quantity(self, quantity):
        with pytest.raises(ValueError):
            LineItem(sku="A", quantity=quantity, title="A", price="1.00")

    def test_invalid_price(self):
        with pytest.raises(ValueError):
            LineItem(sku="A", quantity=1, title="A", price="free")

    def test_negative_grams(self):
        with pytest.raises(ValueError):
            LineItem(sku="A", quantity=1, title="A", price="1.00", grams=-5)

    def test_to_shopify_dict_keeps_id(self, plain_item):
        data = plain_item.to_shopify_dict()

        assert data["id"] == 2
        assert data["variant_id"] == 456
        assert data["price"] == "10.00"


class TestComponentSpecAndOrder:
    """Tests para ComponentSpec y Order."""

    @pytest.mark.parametrize("quantity", [0, -3, False])
    def test_component_invalid_quantity(self, quantity):
        with pytest.raises(ValueError):
            ComponentSpec("A", "A", quantity)

    def test_component_blank_sku(self):
        with pytest.raises(ValueError):
            ComponentSpec(" ", "A")

    def test_order_normalizes_line_items(self, bundle_item, plain_item):
        order = Order(id=1, name="#1", line_items=[bundle_item, plain_item])

        assert isinstance(order.line_items, tuple)
        assert order.items_count == 2
        assert order.skus == ["CANDLE-BUNDLE", "UNRELATED-SKU"]
