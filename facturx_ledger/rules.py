"""
Validation rules for invoice requests.

Rules are organized by what they inspect:
- Request rules: parties, line list, declared totals, header dates
- Line rules: description, quantity, tax rate, price, discount of one line

Each rule is a function returning an error code (``"<category>:<field>"``)
if validation fails, or None if it passes. Line rules receive the line's
index so codes point at the exact field, e.g. ``missing_price:lines[3]``.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .amounts import is_blank, parse_optional_amount
from .config import MONEY_SCALE, ErrorCategory
from .document import parse_date
from .errors import LedgerError
from .lines import line_field, parse_discount, parse_quantity, parse_tax_rate, resolve_unit_net
from .schemas import InvoiceRequest, LineItem


RequestCheckFn = Callable[[InvoiceRequest], Optional[str]]
LineCheckFn = Callable[[LineItem, int], Optional[str]]


@dataclass
class RequestRule:
    """
    A rule applied once per request.

    Attributes:
        code: Representative error code (the check may refine the field)
        description: Human-readable description of the rule
        category: Category of the rule
        check: Function that performs the validation check
    """
    code: str
    description: str
    category: ErrorCategory
    check: RequestCheckFn


@dataclass
class LineRule:
    """A rule applied to every line of a request."""
    code: str
    description: str
    category: ErrorCategory
    check: LineCheckFn


def _error_code(fn: Callable, *args) -> Optional[str]:
    """Run a parsing step and turn its LedgerError into an error code."""
    try:
        fn(*args)
    except LedgerError as e:
        return e.code
    return None


# ============================================================================
# Request Rules
# ============================================================================

def check_seller(request: InvoiceRequest) -> Optional[str]:
    """Seller information is required."""
    if request.seller is None:
        return f"{ErrorCategory.MISSING_FIELD.value}:seller"
    return None


def check_buyer(request: InvoiceRequest) -> Optional[str]:
    """Buyer information is required."""
    if request.buyer is None:
        return f"{ErrorCategory.MISSING_FIELD.value}:buyer"
    return None


def check_lines_present(request: InvoiceRequest) -> Optional[str]:
    """At least one line is required."""
    if not request.lines:
        return f"{ErrorCategory.MISSING_FIELD.value}:lines"
    return None


def check_totals_amounts(request: InvoiceRequest) -> Optional[str]:
    """Declared totals, when present, must be decimal numbers."""
    if request.totals is None:
        return None

    for name in ("subtotal_gross", "discount_gross", "grand_total_gross"):
        code = _error_code(
            parse_optional_amount, getattr(request.totals, name), MONEY_SCALE, f"totals.{name}"
        )
        if code:
            return code
    return None


def check_header_dates(request: InvoiceRequest) -> Optional[str]:
    """Header dates, when present, must be parseable."""
    if request.header is None:
        return None

    for name in ("issue_date", "service_from", "service_to", "due_date"):
        code = _error_code(parse_date, getattr(request.header, name), f"invoice.{name}")
        if code:
            return code
    return None


# ============================================================================
# Line Rules
# ============================================================================

def check_line_description(item: LineItem, index: int = 0) -> Optional[str]:
    """Every line needs a non-empty description."""
    if is_blank(item.description):
        return f"{ErrorCategory.MISSING_FIELD.value}:{line_field(index, 'description')}"
    return None


def check_line_quantity(item: LineItem, index: int = 0) -> Optional[str]:
    """
    Quantity must be present, numeric and greater than zero.

    A zero or negative quantity would flip the sign of every amount
    derived from the line, so it is rejected outright.
    """
    return _error_code(parse_quantity, item, index)


def check_line_tax_rate(item: LineItem, index: int = 0) -> Optional[str]:
    """Tax rate, when given, must be a number from 0 to 100."""
    return _error_code(parse_tax_rate, item, index)


def check_line_price(item: LineItem, index: int = 0) -> Optional[str]:
    """A usable net or gross price is required."""
    return _error_code(resolve_unit_net, item, index)


def check_line_discount(item: LineItem, index: int = 0) -> Optional[str]:
    """Line discount, when given, must be a non-negative number."""
    return _error_code(parse_discount, item, index)


# ============================================================================
# Rule Registry
# ============================================================================

REQUEST_RULES: list[RequestRule] = [
    RequestRule(
        code="missing_field:seller",
        description="Seller information is required",
        category=ErrorCategory.MISSING_FIELD,
        check=check_seller,
    ),
    RequestRule(
        code="missing_field:buyer",
        description="Buyer information is required",
        category=ErrorCategory.MISSING_FIELD,
        check=check_buyer,
    ),
    RequestRule(
        code="missing_field:lines",
        description="At least one line is required",
        category=ErrorCategory.MISSING_FIELD,
        check=check_lines_present,
    ),
    RequestRule(
        code="invalid_amount:totals",
        description="Declared totals must be decimal numbers",
        category=ErrorCategory.INVALID_AMOUNT,
        check=check_totals_amounts,
    ),
    RequestRule(
        code="invalid_date:invoice",
        description="Header dates must be valid dates",
        category=ErrorCategory.INVALID_DATE,
        check=check_header_dates,
    ),
]

LINE_RULES: list[LineRule] = [
    LineRule(
        code="missing_field:lines[].description",
        description="Every line needs a description",
        category=ErrorCategory.MISSING_FIELD,
        check=check_line_description,
    ),
    LineRule(
        code="reconciliation_underflow:lines[].quantity",
        description="Quantity must be a number greater than zero",
        category=ErrorCategory.RECONCILIATION_UNDERFLOW,
        check=check_line_quantity,
    ),
    LineRule(
        code="invalid_amount:lines[].tax_rate",
        description="Tax rate must be a percentage between 0 and 100",
        category=ErrorCategory.INVALID_AMOUNT,
        check=check_line_tax_rate,
    ),
    LineRule(
        code="missing_price:lines[]",
        description="Every line needs a net price or a gross price",
        category=ErrorCategory.MISSING_PRICE,
        check=check_line_price,
    ),
    LineRule(
        code="invalid_amount:lines[].discount",
        description="Line discount must be a non-negative net amount",
        category=ErrorCategory.INVALID_AMOUNT,
        check=check_line_discount,
    ),
]


def get_rule_descriptions() -> dict[str, str]:
    """Get a mapping of rule codes to their descriptions."""
    return {rule.code: rule.description for rule in [*REQUEST_RULES, *LINE_RULES]}
