"""
fitstock/sales/cart.py
----------------------
In-memory sale cart: merges repeated product selections into one line,
bounds quantities by the stock snapshot and unit prices by the list price.

Pure Python: no Flask, no DB. Routes keep the cart in the session via
fitstock.sales.session_cart; tests drive it directly.

Cart.to_dict() layout (what the session stores):
{
    "next_line_id": int,
    "token":        str,   ← one sale per token, see Cart.token
    "lines": [
        {
            "line_id":         int,
            "product_id":      int | str,
            "product_name":    str,
            "category":        str,
            "quantity":        int,
            "list_price":      str,   ← money kept as strings for JSON safety
            "unit_price":      str,
            "available_stock": int
        },
        ...
    ]
}

All money is Decimal quantized to 0.01, never float.
"""
from __future__ import annotations
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterator, List, Optional

from fitstock.sales.errors import (
    CartLocked, InsufficientStock, InvalidDiscount, InvalidQuantity,
)


Q = Decimal('0.01')   # quantize target
ZERO = Decimal('0.00')


def parse_amount(value) -> Decimal:
    """
    Parse `value` into an unrounded Decimal.
    Floats go through str() first so 0.1 stays 0.1.
    Raises InvalidOperation for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise InvalidOperation(f"not a price: {value!r}")
    amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    if not amount.is_finite():
        raise InvalidOperation(f"not a price: {value!r}")
    return amount


def to_money(value) -> Decimal:
    """Parse `value` into a 2dp Decimal (ROUND_HALF_UP)."""
    return parse_amount(value).quantize(Q, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ProductSnapshot:
    """Point-in-time copy of a product row. Not a stock reservation."""
    id:         object
    name:       str
    category:   str
    quantity:   int
    list_price: Decimal

    def to_dict(self) -> dict:
        return {
            'id':             self.id,
            'name':           self.name,
            'category':       self.category,
            'quantity':       self.quantity,
            'price_per_unit': str(self.list_price),
        }


@dataclass
class CartLine:
    """One consolidated (product, quantity, price) commitment."""
    line_id:         int
    product_id:      object
    product_name:    str
    category:        str
    quantity:        int
    list_price:      Decimal
    unit_price:      Decimal
    available_stock: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            'line_id':         self.line_id,
            'product_id':      self.product_id,
            'product_name':    self.product_name,
            'category':        self.category,
            'quantity':        self.quantity,
            'list_price':      str(self.list_price),
            'unit_price':      str(self.unit_price),
            'available_stock': self.available_stock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CartLine':
        return cls(
            line_id=int(data['line_id']),
            product_id=data['product_id'],
            product_name=data['product_name'],
            category=data.get('category', ''),
            quantity=int(data['quantity']),
            list_price=Decimal(data['list_price']),
            unit_price=Decimal(data['unit_price']),
            available_stock=int(data['available_stock']),
        )


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


def _check_price(unit_price, list_price: Decimal) -> Decimal:
    if unit_price is None:
        return list_price
    try:
        raw = parse_amount(unit_price)
    except (InvalidOperation, ValueError):
        raise InvalidDiscount(unit_price, list_price)
    # Bounds apply to the value as entered, before rounding to the penny
    if raw < 0 or raw > list_price:
        raise InvalidDiscount(raw, list_price)
    price = raw.quantize(Q, rounding=ROUND_HALF_UP)
    return price if price else ZERO


class Cart:
    """
    Ordered sale lines, at most one per product_id.

    Every mutating call validates fully before touching state, so a
    raised error always leaves the cart as it was.
    """

    def __init__(self, lines: Optional[List[CartLine]] = None, next_line_id: int = 1,
                 token: Optional[str] = None):
        self._lines: List[CartLine] = list(lines or [])
        self._next_line_id = next_line_id
        self._token = token or uuid.uuid4().hex
        self._submitting = False

    # ── Read ──────────────────────────────────────────────────────

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def token(self) -> str:
        """
        Identifies this cart's contents as one sale. Stays fixed across
        edits and failed submissions; a new one is issued on clear().
        """
        return self._token

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines))

    def find_line(self, product_id) -> Optional[CartLine]:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def total(self) -> Decimal:
        """Sum of line totals; 0.00 for an empty cart."""
        return sum((line.line_total for line in self._lines), ZERO)

    # ── Write ─────────────────────────────────────────────────────

    def add_or_merge_line(self, product: ProductSnapshot, requested_quantity,
                          unit_price=None) -> CartLine:
        """
        Add `requested_quantity` units of `product` at `unit_price`
        (defaults to the list price).

        Repeat selections of the same product merge into its existing
        line: quantity adds up, the latest unit price wins.

        Raises:
            CartLocked        : a submission is in flight
            InvalidQuantity   : not a positive int
            InvalidDiscount   : price < 0, > list price, or not a number
            InsufficientStock : line quantity would exceed product.quantity;
                                shortfall is the remaining headroom
        """
        self._ensure_unlocked()
        quantity   = _check_quantity(requested_quantity)
        list_price = to_money(product.list_price)
        price      = _check_price(unit_price, list_price)

        existing = self.find_line(product.id)
        already  = existing.quantity if existing else 0
        if already + quantity > product.quantity:
            raise InsufficientStock(
                product.name, quantity, max(product.quantity - already, 0)
            )

        if existing is not None:
            existing.quantity        = already + quantity
            existing.unit_price      = price
            # Refresh bounds from the newer snapshot; name/category stay as first added
            existing.list_price      = list_price
            existing.available_stock = product.quantity
            return existing

        line = CartLine(
            line_id=self._next_line_id,
            product_id=product.id,
            product_name=product.name,
            category=product.category,
            quantity=quantity,
            list_price=list_price,
            unit_price=price,
            available_stock=product.quantity,
        )
        self._next_line_id += 1
        self._lines.append(line)
        return line

    def remove_line(self, line_id) -> bool:
        """Drop the line with `line_id`. Returns False if there was none."""
        self._ensure_unlocked()
        for index, line in enumerate(self._lines):
            if line.line_id == line_id:
                del self._lines[index]
                return True
        return False

    def clear(self) -> None:
        """Empty the cart (sale submitted or abandoned)."""
        self._ensure_unlocked()
        self._lines.clear()
        self._token = uuid.uuid4().hex

    @contextmanager
    def submitting_lock(self):
        """Block mutation for the duration of a backend submission."""
        self._ensure_unlocked()
        self._submitting = True
        try:
            yield self
        finally:
            self._submitting = False

    def _ensure_unlocked(self) -> None:
        if self._submitting:
            raise CartLocked()

    # ── Serialisation ─────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            'next_line_id': self._next_line_id,
            'token':        self._token,
            'lines':        [line.to_dict() for line in self._lines],
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'Cart':
        if not data:
            return cls()
        lines = [CartLine.from_dict(item) for item in data.get('lines', [])]
        next_id = int(data.get('next_line_id', 1))
        if lines:
            next_id = max(next_id, max(line.line_id for line in lines) + 1)
        return cls(lines=lines, next_line_id=next_id, token=data.get('token'))

    def summary(self) -> dict:
        """JSON-ready view for the UI: lines with totals plus the cart total."""
        return {
            'lines': [
                dict(line.to_dict(), line_total=str(line.line_total))
                for line in self._lines
            ],
            'total': str(self.total()),
        }
