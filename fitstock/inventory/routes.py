from flask import request, jsonify, current_app, abort
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from fitstock import db
from fitstock.auth.decorators import login_required
from fitstock.inventory import inventory
from fitstock.inventory.models import Category, Product, Purchase
from fitstock.inventory.validators import (
    validate_category_name, validate_product_form, parse_product_form,
    validate_purchase_form, parse_purchase_form,
)


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _category_names():
    return [c.name for c in Category.query.all()]


def _invalid(errors):
    return jsonify({'status': 'error', 'errors': errors}), 400


# ── PRODUCTS ──────────────────────────────────────────────────────

@inventory.route('/products')
@login_required
def products():
    """All products, newest first; ?category= narrows ('all' = no filter)."""
    query = Product.query
    category = request.args.get('category', 'all')
    if category != 'all':
        query = query.filter(Product.category == category)
    rows = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify([p.to_dict() for p in rows])


@inventory.route('/products', methods=['POST'])
@login_required
def create_product():
    data = _payload()
    errors = validate_product_form(data, _category_names())
    if errors:
        return _invalid(errors)

    product = Product(**parse_product_form(data))
    db.session.add(product)
    db.session.commit()
    current_app.logger.info(f"Product created: {product.name} (qty {product.quantity})")
    return jsonify(product.to_dict()), 201


@inventory.route('/products/<int:product_id>/edit', methods=['POST'])
@login_required
def edit_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        abort(404)

    data = _payload()
    errors = validate_product_form(data, _category_names())
    if errors:
        return _invalid(errors)

    old_quantity = product.quantity
    for key, value in parse_product_form(data).items():
        setattr(product, key, value)
    db.session.commit()

    if old_quantity != product.quantity:
        current_app.logger.info(
            f"Stock edited for {product.name}: {old_quantity} -> {product.quantity}"
        )
    return jsonify(product.to_dict())


@inventory.route('/products/<int:product_id>/delete', methods=['POST'])
@login_required
def delete_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        abort(404)

    db.session.delete(product)
    db.session.commit()
    current_app.logger.info(f"Product deleted: {product.name}")
    return jsonify({'status': 'ok', 'message': 'Product deleted successfully'})


# ── CATEGORIES ────────────────────────────────────────────────────

@inventory.route('/categories')
@login_required
def categories():
    rows = Category.query.order_by(Category.name).all()
    return jsonify([c.to_dict() for c in rows])


def _name_taken(name, exclude_id=None) -> bool:
    query = Category.query.filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return db.session.query(query.exists()).scalar()


@inventory.route('/categories', methods=['POST'])
@login_required
def create_category():
    raw = _payload().get('name')
    errors = validate_category_name(raw)
    if errors:
        return _invalid(errors)

    name = raw.strip()
    if _name_taken(name):
        return jsonify({'status': 'error', 'message': 'A category with this name already exists'}), 409

    category = Category(name=name)
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same name
        db.session.rollback()
        return jsonify({'status': 'error', 'message': 'A category with this name already exists'}), 409

    return jsonify(category.to_dict()), 201


@inventory.route('/categories/<int:category_id>/edit', methods=['POST'])
@login_required
def rename_category(category_id):
    """Rename a category; products and purchases carrying the old label follow."""
    category = db.session.get(Category, category_id)
    if category is None:
        abort(404)

    raw = _payload().get('name')
    errors = validate_category_name(raw)
    if errors:
        return _invalid(errors)

    name = raw.strip()
    if _name_taken(name, exclude_id=category.id):
        return jsonify({'status': 'error', 'message': 'A category with this name already exists'}), 409

    old_name = category.name
    category.name = name
    Product.query.filter(Product.category == old_name).update(
        {Product.category: name}, synchronize_session=False
    )
    Purchase.query.filter(Purchase.category == old_name).update(
        {Purchase.category: name}, synchronize_session=False
    )
    db.session.commit()
    return jsonify(category.to_dict())


@inventory.route('/categories/<int:category_id>/delete', methods=['POST'])
@login_required
def delete_category(category_id):
    """Blocked while any product or purchase still uses the category."""
    category = db.session.get(Category, category_id)
    if category is None:
        abort(404)

    in_use = (
        Product.query.filter(Product.category == category.name).count()
        + Purchase.query.filter(Purchase.category == category.name).count()
    )
    if in_use:
        return jsonify({
            'status':  'error',
            'message': f'Cannot delete category "{category.name}": it is used in '
                       f'{in_use} product(s) or purchase(s). Remove them from this category first.',
        }), 409

    db.session.delete(category)
    db.session.commit()
    return jsonify({'status': 'ok', 'message': f'Category "{category.name}" deleted successfully'})


# ── PURCHASES (RESTOCK) ───────────────────────────────────────────

@inventory.route('/purchases')
@login_required
def purchases():
    limit = request.args.get('limit', 50, type=int)
    rows = Purchase.query.order_by(Purchase.created_at.desc(), Purchase.id.desc()).limit(limit).all()
    return jsonify([p.to_dict() for p in rows])


@inventory.route('/purchases', methods=['POST'])
@login_required
def create_purchase():
    """
    Record a purchase and restock:
      - an existing product with the same name (case-insensitive) and
        category gets its quantity increased;
      - otherwise a new product is created at the purchase price.
    """
    data = _payload()
    errors = validate_purchase_form(data, _category_names())
    if errors:
        return _invalid(errors)

    fields = parse_purchase_form(data)

    product = (
        db.session.query(Product)
        .filter(func.lower(Product.name) == fields['product_name'].lower(),
                Product.category == fields['category'])
        .with_for_update()
        .first()
    )
    if product is None:
        product = Product(
            name=fields['product_name'],
            category=fields['category'],
            quantity=0,
            price_per_unit=fields['price_per_unit'],
        )
        db.session.add(product)
        db.session.flush()

    old_quantity = product.quantity
    product.quantity += fields['quantity']

    purchase = Purchase(product_id=product.id, **fields)
    db.session.add(purchase)
    db.session.commit()

    current_app.logger.info(
        f"Purchase recorded: {purchase.product_name} +{purchase.quantity} "
        f"(stock {old_quantity} -> {product.quantity}) | Cost: {purchase.total_cost}"
    )
    return jsonify(purchase.to_dict()), 201
