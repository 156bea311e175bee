"""Typed errors raised by the storefront services."""


class OrderError(Exception):
    """Base exception for all storefront errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# --- validation ---


class EmptyOrder(OrderError, ValueError):
    def __init__(self):
        super().__init__("No order items")


class InvalidLineItem(OrderError, ValueError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Order item {position} needs a numeric product_id and quantity")


class InvalidQuantity(OrderError, ValueError):
    def __init__(self, product_id: int, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"Quantity for product {product_id} must be at least 1, got {quantity}")


class IncompleteAddress(OrderError, ValueError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Shipping address is missing: {', '.join(missing)}")


class InvalidPaymentMethod(OrderError, ValueError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported payment method: {method}")


class ProductNotFound(OrderError, LookupError):
    status_code = 404

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(OrderError, ValueError):
    def __init__(self, product_id: int, name: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product '{name}'. Available: {available}, Requested: {requested}"
        )


# --- lookup / access ---


class NotFound(OrderError, LookupError):
    status_code = 404

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class Unauthorized(OrderError, PermissionError):
    status_code = 403

    def __init__(self, message: str = "Not authorized to access this order"):
        super().__init__(message)


class UserNotFound(OrderError, LookupError):
    status_code = 404

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


# --- state conflicts ---


class StateConflict(OrderError):
    status_code = 409


class AlreadyPaid(StateConflict):
    def __init__(self):
        super().__init__("Order is already paid")


class AlreadyShipped(StateConflict):
    def __init__(self):
        super().__init__("Order is already shipped")


class AlreadyDelivered(StateConflict):
    def __init__(self):
        super().__init__("Order is already delivered")


class AlreadyCancelled(StateConflict):
    def __init__(self):
        super().__init__("Order is already cancelled")


class AlreadyRefunded(StateConflict):
    def __init__(self):
        super().__init__("Order is already refunded")


class NotYetShipped(StateConflict):
    def __init__(self):
        super().__init__("Order has not been shipped yet")


class ShippedOrDelivered(StateConflict):
    def __init__(self):
        super().__init__("Shipped or delivered orders cannot be cancelled or deleted")


class OrderCancelled(StateConflict):
    def __init__(self):
        super().__init__("Order is cancelled")


class CancelWindowExpired(StateConflict):
    def __init__(self, hours: int):
        self.hours = hours
        super().__init__(f"Paid orders can only be cancelled within {hours} hours")


class NotCancelled(StateConflict):
    def __init__(self):
        super().__init__("Only cancelled orders can be refunded")


class NotPaid(StateConflict):
    def __init__(self):
        super().__init__("Order was never paid, nothing to refund")


class DuplicateRequest(StateConflict):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Request with idempotency key '{key}' was already submitted")


class EmailTaken(StateConflict):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


# --- infrastructure ---


class TransactionFailed(OrderError):
    """The unit of work was rolled back; safe to retry."""

    status_code = 503

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Could not {operation} order, please retry")
