"""
fitstock/inventory/validators.py
--------------------------------
Pure-Python validation for product, category and purchase input.
Validators return a dict of field -> error_message.
An empty dict means all fields are valid.
"""
from decimal import Decimal, InvalidOperation

CATEGORY_NAME_MAX = 50
PRODUCT_NAME_MAX  = 200

# Largest values the Numeric(10, 2) price and Numeric(12, 2) cost columns
# hold once rounded to the penny
PRICE_CEILING = Decimal('99999999.995')
COST_CEILING  = Decimal('9999999999.995')


def _text(data: dict, key: str, default: str = '') -> str:
    """Raw value as stripped text; JSON bodies may carry numbers."""
    value = data.get(key)
    if value is None:
        return default
    return str(value).strip()


def _check_price(raw: str, field: str, errors: dict, allow_zero: bool) -> None:
    if not raw:
        errors[field] = 'Price is required.'
        return
    try:
        price = Decimal(raw)
    except InvalidOperation:
        errors[field] = 'Price must be a valid number.'
        return
    if not price.is_finite():
        errors[field] = 'Price must be a valid number.'
    elif allow_zero and price < 0:
        errors[field] = 'Price cannot be negative.'
    elif not allow_zero and price <= 0:
        errors[field] = 'Price must be greater than zero.'
    elif price >= PRICE_CEILING:
        errors[field] = 'Price is too large.'


def validate_category_name(raw) -> dict:
    """Trimmed name, 1–50 characters."""
    name = '' if raw is None else str(raw).strip()
    if not name:
        return {'name': 'Category name is required'}
    if len(name) > CATEGORY_NAME_MAX:
        return {'name': 'Category name too long'}
    return {}


def validate_product_form(form_data: dict, categories) -> dict:
    """
    Validate raw data for create / edit product.

    Args:
        form_data:  dict of raw values from the request
        categories: names of the categories that currently exist
    """
    errors = {}

    # ── name ─────────────────────────────────────────────────────
    name = _text(form_data, 'name')
    if not name:
        errors['name'] = 'Product name is required.'
    elif len(name) > PRODUCT_NAME_MAX:
        errors['name'] = 'Product name must be 200 characters or fewer.'

    # ── category ──────────────────────────────────────────────────
    category = _text(form_data, 'category')
    if not category:
        errors['category'] = 'Category is required.'
    elif category not in set(categories):
        errors['category'] = f'Unknown category "{category}".'

    # ── quantity ──────────────────────────────────────────────────
    try:
        quantity = int(_text(form_data, 'quantity', '0'))
        if quantity < 0:
            errors['quantity'] = 'Quantity cannot be negative.'
    except ValueError:
        errors['quantity'] = 'Quantity must be a whole number.'

    # ── price_per_unit ────────────────────────────────────────────
    _check_price(_text(form_data, 'price_per_unit'), 'price_per_unit', errors, allow_zero=True)

    return errors


def parse_product_form(form_data: dict) -> dict:
    """
    Convert validated raw values to correct Python types.
    Call only after validate_product_form returns no errors.
    """
    return {
        'name':           _text(form_data, 'name'),
        'category':       _text(form_data, 'category'),
        'quantity':       int(_text(form_data, 'quantity', '0')),
        'price_per_unit': Decimal(_text(form_data, 'price_per_unit')).quantize(Decimal('0.01')),
    }


def validate_purchase_form(form_data: dict, categories) -> dict:
    """All fields required; quantity and price must be positive."""
    errors = {}

    name = _text(form_data, 'product_name')
    if not name:
        errors['product_name'] = 'Product name is required.'
    elif len(name) > PRODUCT_NAME_MAX:
        errors['product_name'] = 'Product name must be 200 characters or fewer.'

    category = _text(form_data, 'category')
    if not category:
        errors['category'] = 'Category is required.'
    elif category not in set(categories):
        errors['category'] = f'Unknown category "{category}".'

    try:
        quantity = int(_text(form_data, 'quantity', '0'))
        if quantity <= 0:
            errors['quantity'] = 'Quantity must be greater than zero.'
    except ValueError:
        errors['quantity'] = 'Quantity must be a whole number.'

    _check_price(_text(form_data, 'price_per_unit'), 'price_per_unit', errors, allow_zero=False)

    if not errors:
        price = Decimal(_text(form_data, 'price_per_unit')).quantize(Decimal('0.01'))
        if quantity * price >= COST_CEILING:
            errors['quantity'] = 'Purchase total is too large.'

    return errors


def parse_purchase_form(form_data: dict) -> dict:
    quantity = int(_text(form_data, 'quantity'))
    price    = Decimal(_text(form_data, 'price_per_unit')).quantize(Decimal('0.01'))
    return {
        'product_name':   _text(form_data, 'product_name'),
        'category':       _text(form_data, 'category'),
        'quantity':       quantity,
        'price_per_unit': price,
        'total_cost':     price * quantity,
    }
