# Overview: Error taxonomy shared by the ledger, grid and day-partition services.

from __future__ import annotations


class LedgerError(Exception):
    """Base for expected ledger/grid failures; carries structured details."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class NotFoundError(LedgerError):
    """Referenced sale/delivery/transfer/sheet/row/cell does not exist."""

    status_code = 404


class ValidationError(LedgerError):
    """Malformed input rejected before any mutation."""

    status_code = 400


class OwnershipError(LedgerError):
    """Product or cashier mismatch during a delivery or transfer."""

    status_code = 403


class InsufficientStockError(LedgerError):
    """Conditional decrement refused (only when negative stock is disallowed)."""

    status_code = 409


class TransactionTimeoutError(LedgerError):
    """A bounded ledger transaction ran past its deadline and was rolled back."""

    status_code = 503
