"""
fitstock/sales/backend.py
-------------------------
The storage capability the sale flow depends on, and its database
implementation.

SqlAlchemyBackend.submit_sale runs in one transaction:
  1. Lock each product row with SELECT … FOR UPDATE (sorted by id, so two
     concurrent sales never lock the same rows in opposite order)
  2. Re-check stock against the locked rows; the cart's own check was
     against a snapshot and is only an early rejection
  3. Deduct stock
  4. Insert the sale header, flush for its id
  5. Insert the sale items
  6. Commit
A cart_token that already has a sale short-circuits to that sale's id.
The unique column catches two requests racing past that check: the
loser rolls back and also returns the winner's id.
Any other failure rolls the whole transaction back and raises SubmissionFailed.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fitstock.sales.cart import ProductSnapshot, ZERO
from fitstock.sales.errors import SubmissionFailed


@dataclass(frozen=True)
class SaleHeader:
    customer_name:  Optional[str] = None
    customer_phone: Optional[str] = None
    cart_token:     Optional[str] = None


@dataclass(frozen=True)
class SaleLineRecord:
    product_id:   object
    product_name: str
    category:     str
    quantity:     int
    unit_price:   Decimal
    line_total:   Decimal


class SalesBackend:
    """Where products come from and where finished sales go."""

    def fetch_available_products(self) -> List[ProductSnapshot]:
        """Products with quantity > 0, ordered by name."""
        raise NotImplementedError

    def submit_sale(self, header: SaleHeader, lines: Sequence[SaleLineRecord]) -> int:
        """Persist the sale and return its id. Raise on any failure.

        A header whose cart_token already belongs to a stored sale must
        not create a second one; return that sale's id instead.
        """
        raise NotImplementedError


class SqlAlchemyBackend(SalesBackend):
    """SalesBackend over the app's own Flask-SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def fetch_available_products(self) -> List[ProductSnapshot]:
        from fitstock.inventory.models import Product

        rows = (
            self.session.query(Product)
            .filter(Product.quantity > 0)
            .order_by(Product.name)
            .all()
        )
        return [row.snapshot() for row in rows]

    def submit_sale(self, header: SaleHeader, lines: Sequence[SaleLineRecord]) -> int:
        from fitstock.inventory.models import Product
        from fitstock.sales.models import Sale, SaleItem

        if header.cart_token:
            existing = self._sale_for_token(header.cart_token)
            if existing is not None:
                return existing

        try:
            # ── Lock product rows in a deterministic order ────────
            wanted = {}
            for line in lines:
                pid = int(line.product_id)
                wanted[pid] = wanted.get(pid, 0) + line.quantity

            locked = {}
            for pid in sorted(wanted):
                product = (
                    self.session.query(Product)
                    .filter(Product.id == pid)
                    .with_for_update()
                    .first()
                )
                if product is None:
                    raise SubmissionFailed(f'Product ID {pid} no longer exists.')
                locked[pid] = product

            # ── Authoritative stock check (all-or-nothing) ────────
            for pid, required in wanted.items():
                product = locked[pid]
                if product.quantity < required:
                    raise SubmissionFailed(
                        f'Insufficient stock for "{product.name}". '
                        f'Available: {product.quantity}, requested: {required}.'
                    )

            for pid, required in wanted.items():
                locked[pid].quantity -= required

            # ── Header, then items ────────────────────────────────
            sale = Sale(
                customer_name=header.customer_name,
                customer_phone=header.customer_phone,
                cart_token=header.cart_token,
                total_amount=sum((line.line_total for line in lines), ZERO),
            )
            self.session.add(sale)
            self.session.flush()   # assigns sale.id without committing

            for line in lines:
                self.session.add(SaleItem(
                    sale_id=sale.id,
                    product_id=int(line.product_id),
                    product_name=line.product_name,
                    category=line.category,
                    quantity=line.quantity,
                    price_per_unit=line.unit_price,
                    total_amount=line.line_total,
                ))

            self.session.commit()
            return sale.id

        except SubmissionFailed:
            self.session.rollback()
            raise
        except IntegrityError as exc:
            self.session.rollback()
            existing = self._sale_for_token(header.cart_token) if header.cart_token else None
            if existing is not None:
                return existing
            raise SubmissionFailed('A database error occurred. Please try again.') from exc
        except (SQLAlchemyError, ValueError) as exc:
            self.session.rollback()
            raise SubmissionFailed('A database error occurred. Please try again.') from exc

    def _sale_for_token(self, token: str) -> Optional[int]:
        from fitstock.sales.models import Sale

        row = self.session.query(Sale.id).filter(Sale.cart_token == token).first()
        return row[0] if row else None
