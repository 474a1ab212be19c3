"""
Checkout error kinds.

Each carries the HTTP status the API answers with; the message is what the
customer sees.
"""


class CheckoutError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyCart(CheckoutError):
    def __init__(self):
        super().__init__("Cart is empty")


class ProductNotFound(CheckoutError):
    status_code = 404

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class InsufficientStock(CheckoutError):
    status_code = 409

    def __init__(self, product_name: str, remaining: int):
        super().__init__(f"Insufficient stock for {product_name}. Only {remaining} left.")
        self.product_name = product_name
        self.remaining = remaining


class PersistenceError(CheckoutError):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(f"Failed to create order: {message}")


class StockUpdateFailure(Exception):
    """Stock could not be decremented after the order was recorded. Logged, never raised to callers."""

    def __init__(self, product_id: str, quantity: int, reason: str):
        super().__init__(f"Stock update failed for {product_id} (x{quantity}): {reason}")
        self.product_id = product_id
        self.quantity = quantity
        self.reason = reason
