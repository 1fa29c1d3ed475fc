"""
test_invoice.py: Tests for invoice snapshots and their text / PDF rendering.
Run: pytest test_invoice.py -v
"""
import re
import pytest
from datetime import datetime
from decimal import Decimal

from fitstock.sales.cart import Cart, ProductSnapshot
from fitstock.sales.errors import EmptyCart
from fitstock.sales.invoice import generate_invoice, next_invoice_number
from fitstock.sales.render import render_pdf, render_text, invoice_filename


FIXED = datetime(2026, 10, 19, 14, 30)


def fixed_clock():
    return FIXED


def make_product(pid, name, category='weights', stock=50, price='100.00'):
    return ProductSnapshot(id=pid, name=name, category=category,
                           quantity=stock, list_price=Decimal(price))


@pytest.fixture
def cart():
    c = Cart()
    c.add_or_merge_line(make_product(1, 'Hex Dumbbell 10kg', price='1450.00'), 2)
    c.add_or_merge_line(make_product(2, 'Yoga Mat', 'accessories', price='749.00'), 1, '699.50')
    return c


def page_count(pdf: bytes) -> int:
    return len(re.findall(rb'/Type /Page[^s]', pdf))


# ── Snapshot ──────────────────────────────────────────────────────

def test_grand_total_matches_cart_total(cart):
    invoice = generate_invoice(cart, clock=fixed_clock)
    assert invoice.grand_total == cart.total() == Decimal('3599.50')
    assert [line.product_name for line in invoice.lines] == ['Hex Dumbbell 10kg', 'Yoga Mat']
    assert invoice.lines[1].unit_price == Decimal('699.50')
    assert invoice.date == '19/10/2026 14:30'


def test_invoice_is_isolated_from_later_cart_changes(cart):
    invoice = generate_invoice(cart, clock=fixed_clock)
    first_line = cart.lines[0]

    cart.add_or_merge_line(make_product(1, 'Hex Dumbbell 10kg', price='1450.00'), 5, '1000.00')
    cart.remove_line(cart.lines[1].line_id)
    cart.clear()

    assert invoice.lines[0].quantity == 2
    assert invoice.lines[0].unit_price == Decimal('1450.00')
    assert invoice.grand_total == Decimal('3599.50')
    assert len(invoice.lines) == 2
    assert first_line.quantity == 7


def test_generating_an_invoice_does_not_change_the_cart(cart):
    before = cart.to_dict()
    generate_invoice(cart, 'Asha', '98765', clock=fixed_clock)
    assert cart.to_dict() == before


def test_empty_cart_cannot_be_invoiced():
    with pytest.raises(EmptyCart):
        generate_invoice(Cart(), clock=fixed_clock)


def test_blank_customer_fields_become_none(cart):
    invoice = generate_invoice(cart, customer_name='  ', customer_phone='', clock=fixed_clock)
    assert invoice.customer_name is None
    assert invoice.customer_phone is None


def test_invoice_numbers_strictly_increase_for_the_same_instant(cart):
    numbers = [generate_invoice(cart, clock=fixed_clock).invoice_number for _ in range(5)]
    values = [int(n.split('-')[1]) for n in numbers]
    assert values == sorted(values)
    assert len(set(values)) == 5
    assert all(n.startswith('INV-') for n in numbers)


def test_invoice_number_follows_a_later_clock():
    later = datetime(2099, 1, 1)
    number = next_invoice_number(later)
    assert number == f"INV-{int(later.timestamp() * 1000)}"


def test_custom_date_format(cart):
    invoice = generate_invoice(cart, clock=fixed_clock, date_format='%Y-%m-%d')
    assert invoice.date == '2026-10-19'


def test_to_dict_uses_storage_field_names(cart):
    data = generate_invoice(cart, 'Asha', clock=fixed_clock).to_dict()
    assert data['customer_name'] == 'Asha'
    assert data['total_amount'] == '3599.50'
    assert data['items'][0] == {
        'product_name':   'Hex Dumbbell 10kg',
        'category':       'weights',
        'quantity':       2,
        'price_per_unit': '1450.00',
        'total_amount':   '2900.00',
    }


# ── Rendering ─────────────────────────────────────────────────────

def test_text_rendering(cart):
    invoice = generate_invoice(cart, 'Asha Rao', '9876543210', clock=fixed_clock)
    text = render_text(invoice, 'FITSTOCK MANAGER')

    assert text.startswith('FITSTOCK MANAGER\nINVOICE\n')
    assert f'Invoice Number: {invoice.invoice_number}' in text
    assert 'Customer: Asha Rao' in text
    assert 'Phone: 9876543210' in text
    assert '1. Hex Dumbbell 10kg' in text
    assert '   Quantity: 1 x Rs. 699.50' in text
    assert '   Subtotal: Rs. 2900.00' in text
    assert 'TOTAL AMOUNT: Rs. 3599.50' in text


def test_text_rendering_skips_missing_customer(cart):
    text = render_text(generate_invoice(cart, clock=fixed_clock))
    assert 'Customer:' not in text
    assert 'Phone:' not in text


def test_pdf_rendering_is_reproducible(cart):
    invoice = generate_invoice(cart, 'Asha', clock=fixed_clock)
    first = render_pdf(invoice)
    second = render_pdf(invoice)

    assert first.startswith(b'%PDF')
    assert first == second
    assert page_count(first) == 1


def test_long_invoice_spans_several_pages():
    cart = Cart()
    for pid in range(30):
        cart.add_or_merge_line(make_product(pid, f'Plate {pid}'), 1)
    pdf = render_pdf(generate_invoice(cart, clock=fixed_clock))
    assert page_count(pdf) > 1


def test_filename_uses_invoice_number(cart):
    invoice = generate_invoice(cart, clock=fixed_clock)
    assert invoice_filename(invoice) == f'invoice-{invoice.invoice_number}.pdf'
    assert invoice_filename(invoice, 'txt').endswith('.txt')
