# Overview: Error taxonomy shared by the ledgers, the correction coordinator and the API layer.

from __future__ import annotations


class BillingError(Exception):
    """Base class for business failures surfaced to the operator."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(BillingError, ValueError):
    """400-level input problem (malformed payload, payment-sum mismatch)."""

    status_code = 400


class NotFoundError(BillingError):
    """Invoice, card, package, product or catalog entry absent in the tenant."""

    status_code = 404


class InvariantViolation(BillingError):
    """
    A ledger refused the change: a balance or stock would go negative, or an
    instrument is already used by another invoice.
    """

    status_code = 422


class ConflictError(BillingError):
    """Concurrent write detected at flush/commit. Safe to retry."""

    status_code = 409

    def __init__(self, message: str, details: dict | None = None, retryable: bool = True):
        super().__init__(message, details)
        self.retryable = retryable

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data
