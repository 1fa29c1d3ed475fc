"""
fitstock/sales/invoice.py
-------------------------
Invoice snapshots of a cart.

Format:  INV-<epoch milliseconds>
Example: INV-1760861700123

The number comes from the supplied clock. Within one process numbers
strictly increase: two invoices in the same millisecond (or a clock that
steps backwards) get last + 1. Numbers are not a consistency key, so
collisions across processes are acceptable.

An Invoice copies every display field out of the cart; later cart edits
never reach it.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Tuple

from fitstock.sales.cart import Cart, ZERO
from fitstock.sales.errors import EmptyCart


log = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = '%d/%m/%Y %H:%M'

_number_lock = threading.Lock()
_last_number = 0


def next_invoice_number(moment: datetime) -> str:
    """Time-derived invoice number, strictly increasing within the process."""
    global _last_number
    millis = int(moment.timestamp() * 1000)
    with _number_lock:
        _last_number = max(millis, _last_number + 1)
        return f"INV-{_last_number}"


@dataclass(frozen=True)
class InvoiceLine:
    product_name: str
    category:     str
    quantity:     int
    unit_price:   Decimal
    line_total:   Decimal

    def to_dict(self) -> dict:
        return {
            'product_name':   self.product_name,
            'category':       self.category,
            'quantity':       self.quantity,
            'price_per_unit': str(self.unit_price),
            'total_amount':   str(self.line_total),
        }


@dataclass(frozen=True)
class Invoice:
    invoice_number: str
    issued_at:      datetime
    date:           str
    lines:          Tuple[InvoiceLine, ...]
    grand_total:    Decimal
    customer_name:  Optional[str] = None
    customer_phone: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'invoice_number': self.invoice_number,
            'date':           self.date,
            'customer_name':  self.customer_name,
            'customer_phone': self.customer_phone,
            'items':          [line.to_dict() for line in self.lines],
            'total_amount':   str(self.grand_total),
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def generate_invoice(cart: Cart,
                     customer_name: Optional[str] = None,
                     customer_phone: Optional[str] = None,
                     clock: Callable[[], datetime] = datetime.now,
                     date_format: str = DEFAULT_DATE_FORMAT) -> Invoice:
    """
    Freeze the current cart contents into an Invoice.

    Does not modify the cart and does not touch the database. An
    invoice can be produced before, after, or without submitting the sale.

    Raises:
        EmptyCart : the cart has no lines
    """
    if cart.is_empty:
        raise EmptyCart("Cannot generate an invoice for an empty cart.")

    moment = clock()
    lines = tuple(
        InvoiceLine(
            product_name=line.product_name,
            category=line.category,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
        )
        for line in cart
    )
    grand_total = sum((line.line_total for line in lines), ZERO)

    invoice = Invoice(
        invoice_number=next_invoice_number(moment),
        issued_at=moment,
        date=moment.strftime(date_format),
        lines=lines,
        grand_total=grand_total,
        customer_name=_blank_to_none(customer_name),
        customer_phone=_blank_to_none(customer_phone),
    )
    log.info("Invoice %s generated: %d line(s), total %s",
             invoice.invoice_number, len(lines), grand_total)
    return invoice
