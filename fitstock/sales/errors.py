"""Exceptions raised by the cart, invoice and submission engine."""


class SaleError(Exception):
    """Base exception for all sale-flow errors."""
    def __init__(self, message="Sale could not be processed", status_code=400, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        rv['error'] = type(self).__name__
        return rv


class InvalidQuantity(SaleError):
    """Requested quantity is not a positive whole number."""
    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(
            f"Quantity must be a positive whole number (got {quantity!r}).",
            payload={'quantity': str(quantity)},
        )


class InsufficientStock(SaleError):
    """Requested (or cumulative) quantity exceeds the stock snapshot."""
    def __init__(self, product_name, requested, shortfall):
        self.product_name = product_name
        self.requested = requested
        self.shortfall = shortfall
        super().__init__(
            f'Only {shortfall} more unit(s) of "{product_name}" available, requested {requested}.',
            status_code=409,
            payload={'product_name': product_name, 'requested': requested, 'shortfall': shortfall},
        )


class InvalidDiscount(SaleError):
    """Unit price is negative, unparsable, or above the list price."""
    def __init__(self, unit_price, list_price):
        self.unit_price = unit_price
        self.list_price = list_price
        super().__init__(
            f"Unit price {unit_price} must be between 0 and the list price {list_price}.",
            payload={'unit_price': str(unit_price), 'list_price': str(list_price)},
        )


class EmptyCart(SaleError):
    """Invoice or submission requested against an empty cart."""
    def __init__(self, message="Cart is empty. Add products first."):
        super().__init__(message)


class CartLocked(SaleError):
    """Cart mutation attempted while a submission is in flight."""
    def __init__(self):
        super().__init__("Sale is being submitted. Wait for it to finish.", status_code=409)


class SubmissionFailed(SaleError):
    """The backend write failed partway or entirely. The cart is left intact."""
    def __init__(self, reason):
        self.reason = reason
        super().__init__(
            f"Failed to complete sale: {reason}",
            status_code=502,
            payload={'reason': reason},
        )


class ProductUnavailable(SaleError):
    """Product id not among the products currently in stock."""
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} is not available for sale.",
            status_code=404,
            payload={'product_id': product_id},
        )
