"""
Factur-X Ledger

Turns a structured invoice request into a validated, monetarily consistent
line-item ledger: net prices resolved, discounts applied, credits split out
and the grand total reconciled with an explicit rounding adjustment.
"""

__version__ = "0.1.0"

from .errors import InvoiceRejected, LedgerError
from .ledger import build_ledger
from .schemas import EntryKind, InvoiceLedger, InvoiceRequest, LedgerEntry, LineItem
from .validator import validate_request

__all__ = [
    "EntryKind",
    "InvoiceLedger",
    "InvoiceRejected",
    "InvoiceRequest",
    "LedgerEntry",
    "LedgerError",
    "LineItem",
    "build_ledger",
    "validate_request",
]
