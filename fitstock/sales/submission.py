"""
fitstock/sales/submission.py
----------------------------
Hands a finished cart to the SalesBackend.

The cart is cleared only after the backend acknowledges the whole sale.
Any failure (header written but items rejected, or nothing written)
leaves the cart exactly as it was so the user can resubmit it unchanged.
There is no automatic retry. A resubmit carries the same Cart.token, so a
backend that already stored the sale answers with the existing id.
"""
import logging
from typing import List, Optional, Tuple

from fitstock.sales.backend import SaleHeader, SaleLineRecord, SalesBackend
from fitstock.sales.cart import Cart
from fitstock.sales.errors import EmptyCart, SubmissionFailed


log = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def build_records(cart: Cart, customer_name: Optional[str] = None,
                  customer_phone: Optional[str] = None) -> Tuple[SaleHeader, List[SaleLineRecord]]:
    """One header plus one line record per cart line."""
    header = SaleHeader(customer_name=_clean(customer_name),
                        customer_phone=_clean(customer_phone),
                        cart_token=cart.token)
    lines = [
        SaleLineRecord(
            product_id=line.product_id,
            product_name=line.product_name,
            category=line.category,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
        )
        for line in cart
    ]
    return header, lines


def submit_sale(cart: Cart, backend: SalesBackend,
                customer_name: Optional[str] = None,
                customer_phone: Optional[str] = None) -> int:
    """
    Persist the cart as a sale and clear it.

    Returns:
        the backend's sale id

    Raises:
        EmptyCart        : nothing to submit
        CartLocked       : another submission of this cart is in flight
        SubmissionFailed : the backend failed; the cart is untouched
    """
    if cart.is_empty:
        raise EmptyCart("Cart is empty. Add products before completing a sale.")

    header, lines = build_records(cart, customer_name, customer_phone)

    with cart.submitting_lock():
        try:
            sale_id = backend.submit_sale(header, lines)
        except SubmissionFailed as exc:
            log.warning("Sale submission failed, cart kept (%d line(s)): %s",
                        len(lines), exc.reason)
            raise
        except Exception as exc:
            log.exception("Sale submission failed, cart kept (%d line(s))", len(lines))
            raise SubmissionFailed(str(exc) or type(exc).__name__) from exc

    cart.clear()
    log.info("Sale %s submitted: %d line(s), total %s",
             sale_id, len(lines), sum(line.line_total for line in lines))
    return sale_id
