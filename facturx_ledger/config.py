"""
Configuration constants and enums for the Factur-X ledger builder.
"""

import logging
import os
from decimal import Decimal
from enum import Enum
from typing import Final

# ============================================================================
# Decimal Scales
# ============================================================================

QUANTITY_SCALE: Final[int] = 4
TAX_RATE_SCALE: Final[int] = 2
MONEY_SCALE: Final[int] = 2
# Unit net prices derived from a gross price keep four places
DERIVED_PRICE_SCALE: Final[int] = 4

# ============================================================================
# Reconciliation
# ============================================================================

# Smallest expected-vs-computed gap that produces a rounding adjustment entry
RECONCILIATION_THRESHOLD: Final[Decimal] = Decimal(os.getenv("RECONCILIATION_THRESHOLD", "0.01"))

# Largest magnitude accepted for any parsed amount; keeps every product and
# sum within the 28-digit default decimal context
MAX_AMOUNT: Final[Decimal] = Decimal(os.getenv("MAX_AMOUNT", "1000000000"))

# ============================================================================
# Codes and Labels
# ============================================================================

DEFAULT_UNIT_CODE: Final[str] = "C62"  # UN/ECE "one" (each)
DEFAULT_CURRENCY: Final[str] = "EUR"
DEFAULT_INVOICE_NUMBER: Final[str] = "INV-001"

STANDARD_TAX_CATEGORY: Final[str] = "S"
EXEMPT_TAX_CATEGORY: Final[str] = "E"

CREDIT_MARKER: Final[str] = " (Credit)"
INVOICE_DISCOUNT_LABEL: Final[str] = "Discount"
ROUNDING_ADJUSTMENT_LABEL: Final[str] = "Rundungsausgleich"

# ============================================================================
# Payment
# ============================================================================

PAID_STATUS: Final[str] = "paid"

PAYMENT_MEANS_SEPA_TRANSFER: Final[str] = "58"
PAYMENT_MEANS_OTHER: Final[str] = "ZZZ"

SEPA_TRANSFER_TEXT: Final[str] = "SEPA Credit Transfer"
ALREADY_PAID_TEXT: Final[str] = "Already paid"
REMIT_UNTIL_TEXT: Final[str] = "Please remit until {date}"

# Due date fallback when the request does not carry one
DEFAULT_PAYMENT_TERM_DAYS: Final[int] = int(os.getenv("DEFAULT_PAYMENT_TERM_DAYS", "14"))

# ============================================================================
# Date Formats
# ============================================================================

DATE_FORMATS: Final[list[str]] = [
    "%Y-%m-%d",      # ISO format: 2024-01-15
    "%d.%m.%Y",      # German: 15.01.2024
]

# ============================================================================
# Error Code Prefixes
# ============================================================================

class ErrorCategory(str, Enum):
    """Categories for request error codes."""
    MISSING_FIELD = "missing_field"
    INVALID_AMOUNT = "invalid_amount"
    MISSING_PRICE = "missing_price"
    RECONCILIATION_UNDERFLOW = "reconciliation_underflow"
    INVALID_DATE = "invalid_date"


# ============================================================================
# API Configuration
# ============================================================================

API_HOST: Final[str] = os.getenv("API_HOST", "0.0.0.0")
API_PORT: Final[int] = int(os.getenv("API_PORT", "8000"))
CORS_ORIGINS: Final[list[str]] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173",
).split(",")

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")

def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("facturx_ledger")


logger = setup_logging()
