"""
fitstock/sales/__init__.py
--------------------------
Sale entry blueprint: cart, invoice download, submission, history.
URL prefix: /sales
"""
from flask import Blueprint

sales = Blueprint('sales', __name__)

from fitstock.sales import routes  # noqa: F401, E402
from fitstock.sales import models  # noqa: F401, E402: registers Sale/SaleItem with SQLAlchemy
