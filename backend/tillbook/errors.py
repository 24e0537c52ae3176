"""
Sale engine error kinds.

Every failure of record_sale surfaces as one of these, never as a bare
database or runtime error, so callers can tell "fix your cart" apart from
"try again".

    ValidationError      -> caller fixes input (400)
    TenantAccessError    -> unknown/foreign tenant or actor (404)
    InsufficientStock    -> caller reduces quantity (409)
    ConcurrencyConflict  -> retry verbatim (409)
    NumberingExhausted   -> server side, retryable (503)
    PersistenceFailure   -> storage rejected the write (503)
"""

from __future__ import annotations


class SaleError(Exception):
    """Base class for sale operation errors."""

    code = "sale_error"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class ValidationError(SaleError, ValueError):
    """Input problem detected before anything is written."""

    code = "validation_error"
    http_status = 400


class TenantAccessError(SaleError):
    """Tenant or actor missing, inactive, or belonging to another tenant."""

    code = "tenant_access_denied"
    http_status = 404


class InsufficientStock(SaleError):
    code = "insufficient_stock"
    http_status = 409

    def __init__(self, product_id: int, requested: int, available: int, details: dict | None = None):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
                **(details or {}),
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class NumberingExhausted(SaleError):
    code = "numbering_exhausted"
    http_status = 503


class ConcurrencyConflict(SaleError):
    """Optimistic/lock collision that outlived every retry."""

    code = "concurrency_conflict"
    http_status = 409


class PersistenceFailure(SaleError):
    code = "persistence_failure"
    http_status = 503
