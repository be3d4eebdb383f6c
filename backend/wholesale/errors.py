# Overview: Domain error taxonomy for the ordering engine.

"""
Ordering engine errors.

Every domain error carries a stable machine-readable code, the HTTP status the
boundary should answer with, and a details dict with enough context for the
caller to act (which product, which status). None of these are retried
automatically: the caller re-fetches cart/catalog state and resubmits.
"""

from __future__ import annotations


class OrderingError(Exception):
    """Base class for expected, caller-visible domain failures."""
    code = "ORDERING_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class UnauthorizedError(OrderingError):
    """Wrong role, or acting on a resource the caller does not own."""
    code = "UNAUTHORIZED"
    http_status = 403


class AccountDeactivatedError(OrderingError):
    """
    Caller has the OUTLET role but its outlet account is not ACTIVE.

    account_status distinguishes PENDING ("awaiting approval") from
    INACTIVE ("deactivated"); None means the account no longer exists.
    The boundary terminates the caller's session when this is raised.
    """
    code = "ACCOUNT_DEACTIVATED"
    http_status = 403

    def __init__(self, message: str, account_status: str | None, details: dict | None = None):
        super().__init__(message, details)
        self.account_status = account_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["account_status"] = self.account_status
        return data


class ProductNotFoundError(OrderingError):
    code = "PRODUCT_NOT_FOUND"
    http_status = 404


class InsufficientStockError(OrderingError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409


class PriceMismatchError(OrderingError):
    """Submitted unit price differs from the catalog: the cart is stale."""
    code = "PRICE_MISMATCH"
    http_status = 409


class InvalidTransitionError(OrderingError):
    code = "INVALID_TRANSITION"
    http_status = 409


class OrderNotFoundError(OrderingError):
    code = "ORDER_NOT_FOUND"
    http_status = 404


class PersistenceError(OrderingError):
    """Storage-layer fault. Logged server-side, surfaced generically."""
    code = "PERSISTENCE_FAILURE"
    http_status = 500

    def to_dict(self) -> dict:
        return {
            "error": "Internal server error",
            "code": self.code,
            "details": {},
        }
