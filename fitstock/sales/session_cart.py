"""
fitstock/sales/session_cart.py
------------------------------
Keeps the current sale's Cart in the Flask session under key 'cart'.
The session holds Cart.to_dict(), money as strings, never float.
"""
from flask import session

from fitstock.sales.cart import Cart


CART_KEY = 'cart'


def load_cart() -> Cart:
    """Return the session's cart (empty if none yet)."""
    return Cart.from_dict(session.get(CART_KEY))


def save_cart(cart: Cart) -> None:
    session[CART_KEY] = cart.to_dict()
    session.modified  = True


def discard_cart() -> None:
    """Abandon the sale in progress."""
    session.pop(CART_KEY, None)
    session.modified = True
