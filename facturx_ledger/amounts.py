"""
Exact decimal parsing and rounding helpers.

Every amount in the ledger starts here: request strings are parsed into
``Decimal`` at a fixed scale and every later arithmetic step rounds with
``quantize``. Floats never enter the amount path.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from .config import MAX_AMOUNT
from .errors import InvalidAmount

HUNDRED = Decimal("100")


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def quantize(value: Decimal, scale: int) -> Decimal:
    """Round ``value`` half-up to ``scale`` fractional digits."""
    return value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)


def parse_amount(value: Optional[str], scale: int, field: str = "amount") -> Decimal:
    """
    Parse a decimal string into a fixed-point ``Decimal``.

    Accepts ``,`` or ``.`` as the fractional separator ("19,5" and "19.5"
    are the same value). Thousands separators are not supported.

    Args:
        value: The raw string from the request
        scale: Number of fractional digits to keep (rounded half-up)
        field: Field path used in the error code

    Raises:
        InvalidAmount: If the value is blank, not a finite number, or larger
            in magnitude than MAX_AMOUNT
    """
    if is_blank(value):
        raise InvalidAmount(f"{field}: value is required", field)

    normalized = str(value).strip().replace(",", ".")
    try:
        parsed = Decimal(normalized)
    except InvalidOperation:
        raise InvalidAmount(f"{field}: '{value}' is not a decimal number", field)

    if not parsed.is_finite():
        raise InvalidAmount(f"{field}: '{value}' is not a finite number", field)

    if abs(parsed) > MAX_AMOUNT:
        raise InvalidAmount(f"{field}: '{value}' exceeds the maximum amount {MAX_AMOUNT}", field)

    try:
        return quantize(parsed, scale)
    except InvalidOperation:
        raise InvalidAmount(f"{field}: '{value}' cannot be represented with {scale} decimal places", field)


def parse_optional_amount(value: Optional[str], scale: int, field: str = "amount") -> Optional[Decimal]:
    """Like ``parse_amount`` but returns None for blank input."""
    if is_blank(value):
        return None
    return parse_amount(value, scale, field)


def gross_factor(rate: Decimal) -> Decimal:
    """Multiplier turning a net amount into gross for a percentage rate (19 -> 1.19)."""
    return Decimal(1) + rate / HUNDRED
