# Overview: Pytest coverage for the immutable cart value.

from decimal import Decimal

import pytest

from tillbook.cart import Cart, CartLine, CustomerInfo
from tillbook.errors import ValidationError


class TestCartOperations:
    def test_add_returns_new_cart(self):
        empty = Cart()
        cart = empty.add(1, "10000", 2)

        assert empty.is_empty
        assert len(cart) == 1
        assert cart.total_amount == Decimal("20000.00")

    def test_add_same_product_bumps_quantity(self):
        cart = Cart().add(1, "10000", 2).add(2, "5000").add(1, "10000", 1)

        assert [(line.product_id, line.quantity) for line in cart] == [(1, 3), (2, 1)]
        assert cart.total_amount == Decimal("35000.00")

    def test_set_quantity(self):
        cart = Cart().add(1, "2500", 1)
        updated = cart.set_quantity(1, 4)

        assert cart.find(1).quantity == 1
        assert updated.find(1).quantity == 4
        assert updated.find(1).total_price == Decimal("10000.00")

    @pytest.mark.parametrize("quantity", [0, -3, "0", " 0 ", "-2", 0.0, -1.0])
    def test_set_quantity_to_zero_removes_line(self, quantity):
        cart = Cart().add(1, "2500").add(2, "100")

        assert cart.set_quantity(1, quantity).find(1) is None
        assert len(cart.set_quantity(1, quantity)) == 1

    @pytest.mark.parametrize("quantity", ["3", 3.0, " 3 "])
    def test_set_quantity_coerces_like_add(self, quantity):
        cart = Cart().add(1, "2500").set_quantity(1, quantity)

        assert cart.find(1).quantity == 3

    @pytest.mark.parametrize("quantity", ["abc", 1.5, True, None, "--1"])
    def test_set_quantity_rejects_non_integers(self, quantity):
        with pytest.raises(ValidationError):
            Cart().add(1, "2500").set_quantity(1, quantity)

    def test_set_quantity_for_missing_product(self):
        with pytest.raises(ValidationError):
            Cart().set_quantity(7, 1)

    def test_remove_and_clear(self):
        cart = Cart().add(1, "100").add(2, "200")

        assert [line.product_id for line in cart.remove(1)] == [2]
        assert cart.clear().is_empty
        assert len(cart) == 2

    def test_quantities_by_product(self):
        cart = Cart((CartLine(1, 2, Decimal("10")), CartLine(2, 1, Decimal("5")), CartLine(1, 3, Decimal("10"))))

        assert cart.quantities_by_product() == {1: 5, 2: 1}

    def test_to_dict(self):
        data = Cart().add(3, 1999.99, 2).to_dict()

        assert data == {
            "lines": [{"product_id": 3, "quantity": 2, "unit_price": "1999.99", "total_price": "3999.98"}],
            "total_amount": "3999.98",
        }


class TestCartFromItems:
    def test_from_dicts(self):
        cart = Cart.from_items([
            {"product_id": "4", "quantity": "2", "unit_price": "12.505"},
            {"product_id": 5, "quantity": 1.0, "unit_price": 3},
        ])

        assert cart.lines == (
            CartLine(4, 2, Decimal("12.51")),
            CartLine(5, 1, Decimal("3.00")),
        )

    def test_error_reports_line_index(self):
        with pytest.raises(ValidationError) as exc_info:
            Cart.from_items([
                {"product_id": 1, "quantity": 1, "unit_price": "10"},
                {"product_id": 2, "quantity": 0, "unit_price": "10"},
            ])

        assert exc_info.value.details == {"field": "quantity", "line": 1}

    @pytest.mark.parametrize("items", [None, "1:2", {"product_id": 1}])
    def test_rejects_non_lists(self, items):
        with pytest.raises(ValidationError):
            Cart.from_items(items)

    def test_rejects_non_object_items(self):
        with pytest.raises(ValidationError) as exc_info:
            Cart.from_items([{"product_id": 1, "quantity": 1, "unit_price": "1"}, 42])
        assert exc_info.value.details["line"] == 1

    @pytest.mark.parametrize("price", ["abc", "NaN", "Infinity", -1, None, True, "1e15"])
    def test_rejects_bad_prices(self, price):
        with pytest.raises(ValidationError):
            Cart.from_items([{"product_id": 1, "quantity": 1, "unit_price": price}])


class TestCustomerInfo:
    def test_from_mapping_accepts_both_key_styles(self):
        assert CustomerInfo.from_mapping({"customer_name": " Sari ", "customer_phone": ""}) == CustomerInfo("Sari", None)
        assert CustomerInfo.from_mapping({"name": "Sari", "phone": "0812"}) == CustomerInfo("Sari", "0812")

    def test_empty(self):
        assert CustomerInfo.from_mapping(None) == CustomerInfo()
