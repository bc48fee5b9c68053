"""
Error taxonomy for ledger building.

Every error carries a machine-readable code of the form
``"<category>:<field path>"`` (e.g. ``"invalid_amount:lines[0].quantity"``),
the same shape the validation rules return.
"""

from typing import Optional

from .config import ErrorCategory


class LedgerError(Exception):
    """Base class for all ledger building failures."""

    category: ErrorCategory = ErrorCategory.MISSING_FIELD

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def code(self) -> str:
        if self.field:
            return f"{self.category.value}:{self.field}"
        return self.category.value


class InvalidAmount(LedgerError):
    """A decimal string could not be parsed."""
    category = ErrorCategory.INVALID_AMOUNT


class MissingPrice(LedgerError):
    """A line carries neither a usable net price nor a gross price."""
    category = ErrorCategory.MISSING_PRICE


class MissingRequiredField(LedgerError):
    category = ErrorCategory.MISSING_FIELD


class ReconciliationUnderflow(LedgerError):
    """A quantity is zero or negative."""
    category = ErrorCategory.RECONCILIATION_UNDERFLOW


class InvalidDate(LedgerError):
    category = ErrorCategory.INVALID_DATE


class InvoiceRejected(LedgerError):
    """
    Raised when a request fails validation.

    Holds every error code found so the caller can correct the whole
    request in one pass.
    """

    def __init__(self, errors: list[str]):
        super().__init__(f"Invoice request rejected: {', '.join(errors)}")
        self.errors = errors

    @property
    def code(self) -> str:
        return "invoice_rejected"


class DocumentAssemblyError(Exception):
    """The downstream document collaborator failed; details stay in the log."""
