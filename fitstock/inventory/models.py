from datetime import datetime
from decimal import Decimal
from fitstock import db


class Category(db.Model):
    """A product category label (cardio, weights, accessories, …)."""
    __tablename__ = 'categories'

    id         = db.Column(db.Integer, primary_key=True)
    name       = db.Column(db.String(50), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f"<Category {self.name!r}>"


class Product(db.Model):
    """A stocked item. `category` holds the category label, not an id."""
    __tablename__ = 'products'

    id             = db.Column(db.Integer, primary_key=True)
    name           = db.Column(db.String(200), nullable=False, index=True)
    category       = db.Column(db.String(50), nullable=False, index=True)
    quantity       = db.Column(db.Integer, nullable=False, default=0)
    price_per_unit = db.Column(db.Numeric(10, 2), nullable=False)
    created_at     = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at     = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='check_quantity_non_negative'),
        db.CheckConstraint('price_per_unit >= 0', name='check_price_non_negative'),
    )

    def snapshot(self):
        """Copy the fields the sale cart needs into an immutable value."""
        from fitstock.sales.cart import ProductSnapshot
        return ProductSnapshot(
            id=self.id,
            name=self.name,
            category=self.category,
            quantity=self.quantity,
            list_price=Decimal(str(self.price_per_unit)),
        )

    def to_dict(self) -> dict:
        return {
            'id':             self.id,
            'name':           self.name,
            'category':       self.category,
            'quantity':       self.quantity,
            'price_per_unit': str(self.price_per_unit),
            'created_at':     self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Product {self.name!r} qty={self.quantity}>"


class Purchase(db.Model):
    """
    A stock purchase (restock). Keeps name/category/price as typed so
    the record stays readable if the product is later renamed or deleted.
    """
    __tablename__ = 'purchases'

    id             = db.Column(db.Integer, primary_key=True)
    product_id     = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    product_name   = db.Column(db.String(200), nullable=False)
    category       = db.Column(db.String(50), nullable=False, index=True)
    quantity       = db.Column(db.Integer, nullable=False)
    price_per_unit = db.Column(db.Numeric(10, 2), nullable=False)
    total_cost     = db.Column(db.Numeric(12, 2), nullable=False)
    created_at     = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='check_purchase_qty_positive'),
    )

    product = db.relationship('Product', backref=db.backref('purchases', lazy='select'))

    def to_dict(self) -> dict:
        return {
            'id':             self.id,
            'product_id':     self.product_id,
            'product_name':   self.product_name,
            'category':       self.category,
            'quantity':       self.quantity,
            'price_per_unit': str(self.price_per_unit),
            'total_cost':     str(self.total_cost),
            'created_at':     self.created_at.isoformat(),
        }

    def __repr__(self):
        return f"<Purchase {self.product_name!r} +{self.quantity}>"
