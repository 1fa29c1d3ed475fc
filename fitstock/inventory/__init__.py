"""
fitstock/inventory/__init__.py
------------------------------
Products, categories and purchases blueprint.
URL prefix: /inventory
"""
from flask import Blueprint

inventory = Blueprint('inventory', __name__)

from fitstock.inventory import routes  # noqa: F401, E402
from fitstock.inventory import models  # noqa: F401, E402: registers Product/Category/Purchase with SQLAlchemy
