"""
fitstock/main/routes.py
───────────────────────
Dashboard: stock totals, sales totals, low-stock alert, recent activity.
Clients poll this endpoint; there is no push channel.
"""
from datetime import datetime

from flask import request, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fitstock import db
from fitstock.auth.decorators import login_required
from fitstock.inventory.models import Product, Purchase
from fitstock.main import main
from fitstock.main.dashboard import (
    stock_summary, sales_summary, filter_stock, recent_activity,
)
from fitstock.sales.models import Sale


@main.route('/')
@login_required
def index():
    """
    Query args:
        category : stock table filter ('all' = no filter)
        q        : search over product name or category
    """
    products = [p.to_dict() for p in Product.query.order_by(Product.name).all()]
    sales = [s.to_dict() for s in Sale.query.all()]

    per_kind = current_app.config['RECENT_ACTIVITY_LIMIT'] // 2
    newest_purchases = (
        Purchase.query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .limit(per_kind).all()
    )
    newest_sales = (
        Sale.query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(per_kind).all()
    )

    stats = stock_summary(products, current_app.config['LOW_STOCK_THRESHOLD'])
    stats.update(sales_summary(sales))

    return jsonify({
        'stats': stats,
        'stock': filter_stock(
            products,
            category=request.args.get('category', 'all'),
            query=request.args.get('q', ''),
        ),
        'recent_activity': recent_activity(
            [p.to_dict() for p in newest_purchases],
            [s.to_dict() for s in newest_sales],
            limit=current_app.config['RECENT_ACTIVITY_LIMIT'],
        ),
    })


@main.route('/health')
def health():
    """Health check for load balancers and monitoring."""
    status = 'ok'
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as exc:
        status = 'error'
        current_app.logger.error(f"Health check failed (DB): {exc}")

    response = {
        'status':    status,
        'timestamp': datetime.utcnow().isoformat(),
        'details':   {'db': status},
    }
    return response, 200 if status == 'ok' else 500
