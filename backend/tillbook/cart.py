"""
Immutable cart values.

Checkout screens build a Cart with add/remove/set_quantity; every operation
returns a new Cart and leaves the original untouched. Nothing here talks to
the database: prices and quantities are only checked against live stock when
the cart is handed to sales_service.record_sale.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, Iterator, Mapping

from .errors import ValidationError
from .validation import clean_text, parse_id, parse_int, parse_money, parse_quantity, to_money


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CartLine":
        return cls(
            product_id=parse_id(data.get("product_id"), "product_id"),
            quantity=parse_quantity(data.get("quantity")),
            unit_price=parse_money(data.get("unit_price"), "unit_price"),
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "total_price": str(self.total_price),
        }


@dataclass(frozen=True)
class Cart:
    lines: tuple[CartLine, ...] = ()

    @classmethod
    def from_items(cls, items: Iterable[CartLine | Mapping[str, Any]]) -> "Cart":
        """Build a cart from CartLines or {product_id, quantity, unit_price} dicts."""
        if items is None or isinstance(items, (str, bytes, Mapping)):
            raise ValidationError("items must be a list of line items")

        lines = []
        for index, item in enumerate(items):
            if isinstance(item, CartLine):
                line = CartLine(
                    product_id=parse_id(item.product_id, "product_id"),
                    quantity=parse_quantity(item.quantity),
                    unit_price=parse_money(item.unit_price, "unit_price"),
                )
            elif isinstance(item, Mapping):
                try:
                    line = CartLine.from_mapping(item)
                except ValidationError as exc:
                    exc.details.setdefault("line", index)
                    raise
            else:
                raise ValidationError("Each item must be an object", details={"line": index})
            lines.append(line)
        return cls(tuple(lines))

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_amount(self) -> Decimal:
        return to_money(sum((line.total_price for line in self.lines), Decimal("0")))

    def find(self, product_id: int) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add(self, product_id: int, unit_price: Any, quantity: int = 1) -> "Cart":
        """Add quantity of a product; an existing line for it is bumped instead."""
        quantity = parse_quantity(quantity)
        price = parse_money(unit_price, "unit_price")
        existing = self.find(product_id)
        if existing is None:
            return Cart(self.lines + (CartLine(product_id, quantity, price),))
        return Cart(tuple(
            replace(line, quantity=line.quantity + quantity, unit_price=price)
            if line.product_id == product_id else line
            for line in self.lines
        ))

    def set_quantity(self, product_id: int, quantity: Any) -> "Cart":
        """Set a line's quantity; zero or less removes the line."""
        if self.find(product_id) is None:
            raise ValidationError("Product is not in the cart", details={"product_id": product_id})
        quantity = parse_int(quantity)
        if quantity <= 0:
            return self.remove(product_id)
        return Cart(tuple(
            replace(line, quantity=quantity) if line.product_id == product_id else line
            for line in self.lines
        ))

    def remove(self, product_id: int) -> "Cart":
        return Cart(tuple(line for line in self.lines if line.product_id != product_id))

    def clear(self) -> "Cart":
        return Cart()

    def quantities_by_product(self) -> dict[int, int]:
        totals: dict[int, int] = {}
        for line in self.lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "total_amount": str(self.total_amount),
        }


@dataclass(frozen=True)
class CustomerInfo:
    name: str | None = None
    phone: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CustomerInfo":
        data = data or {}
        return cls(
            name=clean_text(data.get("customer_name", data.get("name")), 255),
            phone=clean_text(data.get("customer_phone", data.get("phone")), 32),
        )

    def normalized(self) -> "CustomerInfo":
        return CustomerInfo(name=clean_text(self.name, 255), phone=clean_text(self.phone, 32))
