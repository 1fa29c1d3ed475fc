from datetime import datetime
from fitstock import db


class Sale(db.Model):
    """
    Header of one completed sale. Customer fields are optional.
    A Sale has many SaleItems.
    """
    __tablename__ = 'sales'

    id             = db.Column(db.Integer, primary_key=True)
    customer_name  = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(30), nullable=True)
    total_amount   = db.Column(db.Numeric(12, 2), nullable=False)  # sum of item totals
    cart_token     = db.Column(db.String(32), unique=True, nullable=True)  # one sale per cart
    created_at     = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    items = db.relationship('SaleItem', backref='sale', lazy='select',
                            cascade='all, delete-orphan')

    @property
    def units(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            'id':             self.id,
            'customer_name':  self.customer_name,
            'customer_phone': self.customer_phone,
            'total_amount':   str(self.total_amount),
            'created_at':     self.created_at.isoformat(),
            'items':          [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f"<Sale {self.id} Rs.{self.total_amount}>"


class SaleItem(db.Model):
    """
    One line of a Sale.
    Stores a snapshot of name and price at the time of sale,
    so future product edits don't alter historical sales.
    """
    __tablename__ = 'sale_items'

    id             = db.Column(db.Integer, primary_key=True)
    sale_id        = db.Column(db.Integer, db.ForeignKey('sales.id'), nullable=False, index=True)
    product_id     = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    product_name   = db.Column(db.String(200), nullable=False)
    category       = db.Column(db.String(50), nullable=True)
    quantity       = db.Column(db.Integer, nullable=False)
    price_per_unit = db.Column(db.Numeric(10, 2), nullable=False)
    total_amount   = db.Column(db.Numeric(12, 2), nullable=False)  # qty × price_per_unit

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='check_sale_item_qty_positive'),
    )

    def to_dict(self) -> dict:
        return {
            'product_id':     self.product_id,
            'product_name':   self.product_name,
            'category':       self.category,
            'quantity':       self.quantity,
            'price_per_unit': str(self.price_per_unit),
            'total_amount':   str(self.total_amount),
        }

    def __repr__(self):
        return f"<SaleItem sale={self.sale_id} product={self.product_id} qty={self.quantity}>"
