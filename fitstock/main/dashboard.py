"""
fitstock/main/dashboard.py
--------------------------
Pure aggregation over fetched rows for the dashboard.

Inputs are plain dicts (Model.to_dict() output) so the functions can be
unit-tested without a database.
"""
from __future__ import annotations
from decimal import Decimal
from typing import Iterable, List


def stock_summary(products: Iterable[dict], low_stock_threshold: int = 5) -> dict:
    """Total units on hand, low-stock items and the distinct categories."""
    products = list(products)
    low = [p for p in products if p['quantity'] < low_stock_threshold]
    categories = sorted({p['category'] for p in products})
    return {
        'total_stock':     sum(p['quantity'] for p in products),
        'product_count':   len(products),
        'low_stock_count': len(low),
        'low_stock':       low,
        'categories':      categories,
    }


def sales_summary(sales: Iterable[dict]) -> dict:
    """Units sold and sales value across all sale headers and their items."""
    sales = list(sales)
    units = sum(item['quantity'] for sale in sales for item in sale.get('items', []))
    value = sum((Decimal(sale['total_amount']) for sale in sales), Decimal('0.00'))
    return {
        'sale_count':  len(sales),
        'units_sold':  units,
        'sales_value': str(value),
    }


def filter_stock(products: Iterable[dict], category: str = 'all', query: str = '') -> List[dict]:
    """Narrow by category ('all' = no filter), then by a case-insensitive search over name or category."""
    rows = list(products)
    if category and category != 'all':
        rows = [p for p in rows if p['category'] == category]
    needle = (query or '').strip().lower()
    if needle:
        rows = [
            p for p in rows
            if needle in p['name'].lower() or needle in p['category'].lower()
        ]
    return rows


def recent_activity(purchases: Iterable[dict], sales: Iterable[dict], limit: int = 10) -> List[dict]:
    """
    Purchases and sales merged newest-first, each tagged with its type.
    Callers pass the newest few of each; ISO timestamps sort as text.
    """
    combined = (
        [dict(p, type='purchase') for p in purchases]
        + [dict(s, type='sale') for s in sales]
    )
    combined.sort(key=lambda row: row['created_at'], reverse=True)
    return combined[:limit]
