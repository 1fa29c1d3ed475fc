"""
test_submission.py: Tests for sale submission: cart kept on failure, cleared on success,
and the database backend's stock re-check / rollback.
Run: pytest test_submission.py -v
"""
import pytest
from decimal import Decimal

from fitstock import create_app, db
from fitstock.inventory.models import Product
from fitstock.sales.backend import SalesBackend, SqlAlchemyBackend
from fitstock.sales.cart import Cart, ProductSnapshot
from fitstock.sales.errors import CartLocked, EmptyCart, SubmissionFailed
from fitstock.sales.models import Sale, SaleItem
from fitstock.sales.submission import build_records, submit_sale


class FakeBackend(SalesBackend):
    """In-memory backend. `fail_at` = 'header' or 'items' simulates a failed write."""

    def __init__(self, products=(), fail_at=None, error=None):
        self.products = list(products)
        self.fail_at = fail_at
        self.error = error
        self.headers = []
        self.items = []
        self.calls = 0

    def fetch_available_products(self):
        return [p for p in self.products if p.quantity > 0]

    def submit_sale(self, header, lines):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.fail_at == 'header':
            raise SubmissionFailed('header insert rejected')
        self.headers.append(header)
        sale_id = len(self.headers)
        if self.fail_at == 'items':
            raise SubmissionFailed('item insert rejected')
        self.items.extend((sale_id, line) for line in lines)
        return sale_id


def make_product(pid='A', name='Spin Bike', stock=5, price='18999.00'):
    return ProductSnapshot(id=pid, name=name, category='cardio',
                           quantity=stock, list_price=Decimal(price))


@pytest.fixture
def cart():
    c = Cart()
    c.add_or_merge_line(make_product('A'), 2, '17999.00')
    c.add_or_merge_line(make_product('B', 'Skipping Rope', stock=50, price='299.00'), 3)
    return c


# ── Engine contract ───────────────────────────────────────────────

def test_success_clears_cart_and_sends_every_line(cart):
    backend = FakeBackend()
    sale_id = submit_sale(cart, backend, customer_name=' Ravi ', customer_phone='')

    assert sale_id == 1
    assert cart.is_empty
    assert backend.headers[0].customer_name == 'Ravi'
    assert backend.headers[0].customer_phone is None
    sent = [line for _, line in backend.items]
    assert [(l.product_id, l.quantity, l.unit_price, l.line_total) for l in sent] == [
        ('A', 2, Decimal('17999.00'), Decimal('35998.00')),
        ('B', 3, Decimal('299.00'), Decimal('897.00')),
    ]


def test_failure_after_header_keeps_cart_for_exact_resubmit(cart):
    before = cart.to_dict()
    backend = FakeBackend(fail_at='items')

    with pytest.raises(SubmissionFailed) as exc:
        submit_sale(cart, backend)

    assert exc.value.status_code == 502
    assert cart.to_dict() == before
    assert not cart.submitting

    # Retry against a healthy backend with the unchanged cart
    backend.fail_at = None
    submit_sale(cart, backend)
    assert cart.is_empty
    assert backend.calls == 2


def test_failure_before_any_write_keeps_cart(cart):
    before = cart.to_dict()
    with pytest.raises(SubmissionFailed):
        submit_sale(cart, FakeBackend(fail_at='header'))
    assert cart.to_dict() == before


def test_unexpected_backend_error_is_wrapped(cart):
    before = cart.to_dict()
    with pytest.raises(SubmissionFailed) as exc:
        submit_sale(cart, FakeBackend(error=ConnectionError('network down')))
    assert 'network down' in exc.value.reason
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert cart.to_dict() == before


def test_empty_cart_is_rejected_without_calling_backend():
    backend = FakeBackend()
    with pytest.raises(EmptyCart):
        submit_sale(Cart(), backend)
    assert backend.calls == 0


def test_cart_cannot_change_during_submission(cart):
    class MutatingBackend(FakeBackend):
        def submit_sale(self, header, lines):
            cart.add_or_merge_line(make_product('A'), 1)
            return 1

    with pytest.raises(SubmissionFailed) as exc:
        submit_sale(cart, MutatingBackend())
    assert isinstance(exc.value.__cause__, CartLocked)
    assert cart.find_line('A').quantity == 2


def test_build_records_mirror_cart(cart):
    header, lines = build_records(cart, 'Ravi', '123')
    assert header.customer_name == 'Ravi'
    assert header.cart_token == cart.token
    assert sum(l.line_total for l in lines) == cart.total()


# ── Database backend ──────────────────────────────────────────────

@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def seed(name, qty, price, category='weights'):
    p = Product(name=name, category=category, quantity=qty, price_per_unit=Decimal(price))
    db.session.add(p)
    db.session.commit()
    return p


def test_fetch_available_products_skips_empty_stock(app):
    seed('Kettlebell', 4, '2199.00')
    seed('Barbell', 0, '8999.00')
    seed('Band Set', 10, '899.00', 'accessories')

    products = SqlAlchemyBackend(db.session).fetch_available_products()

    assert [p.name for p in products] == ['Band Set', 'Kettlebell']
    assert products[1].list_price == Decimal('2199.00')


def test_db_submission_writes_sale_and_decrements_stock(app):
    bell = seed('Kettlebell', 4, '2199.00')
    band = seed('Band Set', 10, '899.00', 'accessories')
    backend = SqlAlchemyBackend(db.session)

    cart = Cart()
    for snap in backend.fetch_available_products():
        cart.add_or_merge_line(snap, 2)
    cart.add_or_merge_line(bell.snapshot(), 1, '2000.00')

    sale_id = submit_sale(cart, backend, 'Meera', '99999')

    sale = db.session.get(Sale, sale_id)
    assert sale.customer_name == 'Meera'
    assert Decimal(str(sale.total_amount)) == Decimal('7798.00')
    assert len(sale.items) == 2
    assert db.session.get(Product, bell.id).quantity == 1
    assert db.session.get(Product, band.id).quantity == 8
    assert cart.is_empty


def test_db_rejects_oversell_and_rolls_back(app):
    bell = seed('Kettlebell', 4, '2199.00')
    cart = Cart()
    cart.add_or_merge_line(bell.snapshot(), 3)

    # Someone else sold stock after the snapshot was taken
    bell.quantity = 1
    db.session.commit()
    before = cart.to_dict()

    with pytest.raises(SubmissionFailed) as exc:
        submit_sale(cart, SqlAlchemyBackend(db.session))

    assert 'Insufficient stock' in exc.value.reason
    assert cart.to_dict() == before
    assert Sale.query.count() == 0
    assert SaleItem.query.count() == 0
    assert db.session.get(Product, bell.id).quantity == 1


def test_db_rejects_deleted_product(app):
    bell = seed('Kettlebell', 4, '2199.00')
    cart = Cart()
    cart.add_or_merge_line(bell.snapshot(), 1)
    db.session.delete(bell)
    db.session.commit()

    with pytest.raises(SubmissionFailed):
        submit_sale(cart, SqlAlchemyBackend(db.session))
    assert len(cart) == 1
    assert Sale.query.count() == 0


def test_db_resubmitting_the_same_cart_returns_the_first_sale(app):
    bell = seed('Kettlebell', 4, '2199.00')
    backend = SqlAlchemyBackend(db.session)
    cart = Cart()
    cart.add_or_merge_line(bell.snapshot(), 1)

    # A copy of the cart as a second tab or a replayed request would hold it
    stale = Cart.from_dict(cart.to_dict())

    first = submit_sale(cart, backend)
    second = submit_sale(stale, backend)

    assert second == first
    assert stale.is_empty
    assert Sale.query.count() == 1
    assert db.session.get(Product, bell.id).quantity == 3


def test_db_new_cart_after_clear_is_a_new_sale(app):
    bell = seed('Kettlebell', 4, '2199.00')
    backend = SqlAlchemyBackend(db.session)
    cart = Cart()
    cart.add_or_merge_line(bell.snapshot(), 1)
    first = submit_sale(cart, backend)

    cart.add_or_merge_line(bell.snapshot(), 1)
    second = submit_sale(cart, backend)

    assert second != first
    assert Sale.query.count() == 2
