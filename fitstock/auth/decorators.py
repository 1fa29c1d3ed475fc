"""
fitstock/auth/decorators.py
---------------------------
Route-protection decorator.
Usage:
    from fitstock.auth.decorators import login_required

    @sales.route('/cart')
    @login_required
    def view_cart():
        ...
"""
from functools import wraps
from flask import session, jsonify


def login_required(f):
    """
    Reject unauthenticated requests with a 401 JSON body.
    Checks for the 'user_id' key in the Flask session.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'status': 'error', 'message': 'Please log in to access this page.'}), 401
        return f(*args, **kwargs)
    return decorated
