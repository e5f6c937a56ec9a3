# storefront/domain/errors.py


class StorefrontError(Exception):
    """Bazowy błąd reguł biznesowych."""


class EmptyCart(StorefrontError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Cart is empty")


class ProductNotFound(StorefrontError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(StorefrontError):
    def __init__(self, product_id: str, requested: int, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for product {product_id}")

    @property
    def shortfall(self) -> int | None:
        if self.available is None:
            return None
        return max(self.requested - self.available, 0)


class CartLineNotFound(StorefrontError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product not found in cart")


class OrderNotFound(StorefrontError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class ProfileNotFound(StorefrontError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Profile not found")


class InvalidStatusTransition(StorefrontError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")


class OrderWriteFailed(StorefrontError):
    """Kolizja orderId - błąd wewnętrzny, nie biznesowy."""
