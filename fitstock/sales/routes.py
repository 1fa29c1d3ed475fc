from datetime import datetime
from io import BytesIO

from flask import (
    request, jsonify, send_file, current_app, Response
)

from fitstock import db
from fitstock.auth.decorators import login_required
from fitstock.sales import sales
from fitstock.sales.backend import SqlAlchemyBackend
from fitstock.sales.errors import SaleError, ProductUnavailable
from fitstock.sales.invoice import generate_invoice
from fitstock.sales.models import Sale
from fitstock.sales.render import render_pdf, render_text, invoice_filename
from fitstock.sales.session_cart import load_cart, save_cart, discard_cart
from fitstock.sales.submission import submit_sale


# Tests (or an alternate store) can register a zero-arg factory here
BACKEND_EXTENSION = 'fitstock.sales_backend'


def get_backend():
    factory = current_app.extensions.get(BACKEND_EXTENSION)
    if factory is not None:
        return factory()
    return SqlAlchemyBackend(db.session)


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _as_int(raw):
    """Form posts send digits as text; anything else goes through as-is for validation."""
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return raw


# ── ERRORS ────────────────────────────────────────────────────────

@sales.errorhandler(SaleError)
def handle_sale_error(exc):
    current_app.logger.warning(f"Sale flow rejected ({type(exc).__name__}): {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


# ── PRODUCT PICKER ────────────────────────────────────────────────

@sales.route('/products')
@login_required
def products():
    """In-stock products, optionally narrowed to one category ('all' = no filter)."""
    category = request.args.get('category', 'all')
    available = get_backend().fetch_available_products()
    if category != 'all':
        available = [p for p in available if p.category == category]
    return jsonify([p.to_dict() for p in available])


# ── CART ──────────────────────────────────────────────────────────

@sales.route('/cart')
@login_required
def view_cart():
    return jsonify(load_cart().summary())


@sales.route('/cart/add', methods=['POST'])
@login_required
def add_line():
    """Add (or merge) a product into the cart at list or discounted price."""
    data = _payload()
    product_id = _as_int(data.get('product_id'))

    product = next(
        (p for p in get_backend().fetch_available_products() if str(p.id) == str(product_id)),
        None,
    )
    if product is None:
        raise ProductUnavailable(product_id)

    unit_price = data.get('unit_price')
    if unit_price in ('', None):
        unit_price = None

    cart = load_cart()
    line = cart.add_or_merge_line(product, _as_int(data.get('quantity')), unit_price)
    save_cart(cart)

    summary = cart.summary()
    summary['line_id'] = line.line_id
    return jsonify(summary)


@sales.route('/cart/remove', methods=['POST'])
@login_required
def remove_line():
    data = _payload()
    cart = load_cart()
    removed = cart.remove_line(_as_int(data.get('line_id')))
    if removed:
        save_cart(cart)

    summary = cart.summary()
    summary['removed'] = removed
    return jsonify(summary)


@sales.route('/cart/discard', methods=['POST'])
@login_required
def discard():
    discard_cart()
    return jsonify(load_cart().summary())


# ── INVOICE DOWNLOAD ──────────────────────────────────────────────

@sales.route('/invoice', methods=['POST'])
@login_required
def invoice():
    """Invoice for the cart as it stands. PDF by default, ?format=text for plain text."""
    data = _payload()
    cart = load_cart()
    inv = generate_invoice(
        cart,
        customer_name=data.get('customer_name'),
        customer_phone=data.get('customer_phone'),
        clock=datetime.now,
        date_format=current_app.config['INVOICE_DATE_FORMAT'],
    )
    store_name = current_app.config['STORE_NAME']

    if request.args.get('format') == 'text':
        filename = invoice_filename(inv, 'txt')
        return Response(
            render_text(inv, store_name),
            mimetype='text/plain',
            headers={'Content-Disposition': f'attachment; filename={filename}'},
        )

    return send_file(
        BytesIO(render_pdf(inv, store_name)),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=invoice_filename(inv, 'pdf'),
    )


# ── COMPLETE SALE ─────────────────────────────────────────────────

@sales.route('/submit', methods=['POST'])
@login_required
def submit():
    """
    Persist the cart as a sale. On success the session cart is emptied;
    on failure it is left untouched for a resubmit.

    The in-memory submission lock only lives for this request. Repeat or
    concurrent posts of the same session cart are settled by the backend
    through Cart.token: they all get back the one sale id.
    """
    data  = _payload()
    cart  = load_cart()
    total = cart.total()

    sale_id = submit_sale(
        cart, get_backend(),
        customer_name=data.get('customer_name'),
        customer_phone=data.get('customer_phone'),
    )
    save_cart(cart)

    current_app.logger.info(f"Sale {sale_id} completed | Total: {total}")
    return jsonify({
        'status':       'ok',
        'sale_id':      sale_id,
        'total_amount': str(total),
        'message':      f'Sale complete! Sale #{sale_id}',
    }), 201


# ── HISTORY ───────────────────────────────────────────────────────

@sales.route('/')
@login_required
def history():
    """Most recent sales with their items."""
    limit = request.args.get('limit', 20, type=int)
    rows = Sale.query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
    return jsonify([sale.to_dict() for sale in rows])
