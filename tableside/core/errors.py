from typing import Any, Optional


class DomainError(Exception):
    """
    Base class for business-rule failures. Each subclass maps to one HTTP
    status and a stable machine-readable code used in the error envelope.
    """
    status_code = 400
    code = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


# --- Validation (400) ---

class EmptyCart(DomainError):
    code = "empty_cart"

    def __init__(self, message: str = "Order must contain at least one item."):
        super().__init__(message)


class InvalidQuantity(DomainError):
    code = "invalid_quantity"


class ItemUnavailable(DomainError):
    code = "item_unavailable"


class NotRefundable(DomainError):
    code = "not_refundable"


class PaymentNotConfigured(DomainError):
    code = "payment_not_configured"


class InvalidSignature(DomainError):
    code = "invalid_signature"

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class MalformedEvent(DomainError):
    code = "malformed_event"


# --- Not found (404) ---

class NotFound(DomainError):
    status_code = 404
    code = "not_found"


class RestaurantNotFound(NotFound):
    code = "restaurant_not_found"


class TableNotFound(NotFound):
    code = "table_not_found"


class ItemNotFound(NotFound):
    code = "item_not_found"


class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class PaymentNotFound(NotFound):
    code = "payment_not_found"

    def __init__(self, message: str = "Payment not found"):
        super().__init__(message)


# --- Authorization (401 / 403) ---

class NotAuthenticated(DomainError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotAuthorized(DomainError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


# --- State conflicts (409) ---

class InsufficientStock(DomainError):
    status_code = 409
    code = "insufficient_stock"


class IllegalTransition(DomainError):
    status_code = 409
    code = "illegal_transition"


class AlreadyPaid(DomainError):
    status_code = 409
    code = "already_paid"

    def __init__(self, message: str = "Order is already paid."):
        super().__init__(message)


# --- External dependencies (5xx) ---

class GatewayError(DomainError):
    """The payment gateway was unreachable or rejected the request."""
    status_code = 500
    code = "gateway_error"

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code
        # HTTP status returned by the gateway, when it answered at all
        self.upstream_status = upstream_status


class SettlementError(DomainError):
    status_code = 500
    code = "settlement_failed"
