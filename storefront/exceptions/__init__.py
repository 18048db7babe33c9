"""Custom exceptions for the storefront application."""


class StoreError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        rv['success'] = False
        return rv


class ValidationError(StoreError):
    """Bad input shape or range. Raised before any mutation starts."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class PaymentVerificationError(ValidationError):
    """The gateway rejected the payment proof (bad signature or not captured)."""
    def __init__(self, message="Payment could not be verified", payload=None):
        super().__init__(message, 400, payload)


class AuthenticationRequired(StoreError):
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)


class UnauthorizedError(StoreError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Admin access required"):
        super().__init__(message, 403)


class NotFoundError(StoreError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ConflictError(StoreError):
    """State changed under the caller; retry with fresh data, not blindly."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class InsufficientStockError(ConflictError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available=None):
        self.product_name = product_name
        self.required = required
        self.available = available
        if available is None:
            message = f"Insufficient stock for {product_name}"
        else:
            message = f"Insufficient stock for {product_name}: requested {required}, available {available}"
        super().__init__(message)


class DiscountCodeError(ConflictError):
    """Discount code is used, expired or lost a redemption race."""


class DuplicatePaymentError(ConflictError):
    """The payment id was already used to settle a different checkout."""
    def __init__(self, message="This payment has already been processed"):
        super().__init__(message)


class CartChangedError(ConflictError):
    """Cart contents or prices no longer match the quoted checkout."""
    def __init__(self, message="Your cart changed since checkout started. Please review it and try again."):
        super().__init__(message)


class PaymentMismatchError(ConflictError):
    """Charged amount differs from the server-side quote."""
    def __init__(self, message="Paid amount does not match the order total"):
        super().__init__(message)


class TransientError(StoreError):
    """Store or gateway unavailable; the whole call is safe to retry."""
    def __init__(self, message="Service temporarily unavailable, please retry"):
        super().__init__(message, 503)


class FatalError(StoreError):
    """An invariant was violated. Never partially committed."""
    def __init__(self, message="Order could not be completed"):
        super().__init__(message, 500)
