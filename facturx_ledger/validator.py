"""
Validation engine for invoice requests.

Runs the request and line rules, collects every error code, and decides
whether a ledger may be built. A request with any error is rejected as a
whole; there is no partial ledger.
"""

from typing import Optional

from .config import logger
from .errors import InvoiceRejected
from .rules import LINE_RULES, REQUEST_RULES, LineRule, RequestRule
from .schemas import EntryKind, InvoiceLedger, InvoiceRequest, RequestValidationResult


def invoice_id(request: InvoiceRequest) -> str:
    if request.header is not None and request.header.number and request.header.number.strip():
        return request.header.number.strip()
    return "<unnumbered>"


def validate_request(
    request: InvoiceRequest,
    rules: Optional[list[RequestRule]] = None,
    line_rules: Optional[list[LineRule]] = None,
) -> RequestValidationResult:
    """
    Validate an invoice request against all defined rules.

    Args:
        request: The InvoiceRequest to validate
        rules: Optional request-level rules (defaults to REQUEST_RULES)
        line_rules: Optional per-line rules (defaults to LINE_RULES)

    Returns:
        RequestValidationResult with every error code found, in rule order
    """
    if rules is None:
        rules = REQUEST_RULES
    if line_rules is None:
        line_rules = LINE_RULES

    errors: list[str] = []

    for rule in rules:
        try:
            error_code = rule.check(request)
        except Exception as e:
            logger.error(f"Error running rule {rule.code} on invoice {invoice_id(request)}: {e}")
            error_code = f"rule_error:{rule.code}"
        if error_code and error_code not in errors:
            errors.append(error_code)

    for index, item in enumerate(request.lines):
        for rule in line_rules:
            try:
                error_code = rule.check(item, index)
            except Exception as e:
                logger.error(f"Error running rule {rule.code} on line {index}: {e}")
                error_code = f"rule_error:{rule.code}"
            # Gross-price lines parse the tax rate twice; report it once
            if error_code and error_code not in errors:
                errors.append(error_code)

    return RequestValidationResult(
        invoice_id=invoice_id(request),
        is_valid=len(errors) == 0,
        errors=errors,
    )


def ensure_valid(request: InvoiceRequest) -> RequestValidationResult:
    """
    Validate a request and raise if it has errors.

    Raises:
        InvoiceRejected: Carrying every error code of the request
    """
    result = validate_request(request)
    if not result.is_valid:
        logger.info(f"Invoice {result.invoice_id} rejected: {', '.join(result.errors)}")
        raise InvoiceRejected(result.errors)
    return result


def format_ledger_text(ledger: InvoiceLedger) -> str:
    """
    Format a ledger as human-readable text for CLI output.

    Args:
        ledger: InvoiceLedger to format

    Returns:
        Formatted string for display
    """
    rec = ledger.reconciliation
    lines = [
        "=" * 72,
        f"LEDGER {ledger.header.number}  ({ledger.header.currency}, issued {ledger.header.issue_date})",
        "=" * 72,
        f"{'Kind':<20} {'Description':<24} {'Qty':>8} {'Unit net':>10} {'VAT %':>6}",
        "-" * 72,
    ]

    for entry in ledger.entries:
        lines.append(
            f"{entry.kind.value:<20} {entry.description[:24]:<24} "
            f"{entry.quantity:>8} {entry.unit_net_amount:>10} {entry.tax_rate:>6}"
        )

    lines.extend([
        "-" * 72,
        f"Total net:                {rec.total_net}",
        f"Computed gross:           {rec.computed_gross}",
    ])

    if rec.expected_gross is not None:
        lines.append(f"Expected gross:           {rec.expected_gross}")
    if ledger.entries_of(EntryKind.ROUNDING_ADJUSTMENT):
        lines.append(f"Rounding adjustment:      {rec.delta:+}")

    lines.append(f"Final gross:              {rec.final_gross}")
    lines.append("=" * 72)

    return "\n".join(lines)
