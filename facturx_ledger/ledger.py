"""
Ledger assembly and the end-to-end build.

``build_ledger`` is the single entry point: it validates the request,
resolves every line, reconciles the totals and assembles the entries in
their contractual order:

    ordinary items -> invoice discount -> credit items -> rounding adjustment

Ordinary and credit items keep their request order, so identical input
always yields an identical ledger. All intermediate state is local to one
call.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from .amounts import is_blank, parse_optional_amount, quantize
from .config import (
    CREDIT_MARKER,
    DEFAULT_UNIT_CODE,
    EXEMPT_TAX_CATEGORY,
    INVOICE_DISCOUNT_LABEL,
    MONEY_SCALE,
    QUANTITY_SCALE,
    TAX_RATE_SCALE,
    logger,
)
from .document import resolve_header, resolve_payment_means
from .lines import ResolvedLine, resolve_lines, split_lines
from .reconciliation import reconcile
from .schemas import EntryKind, InvoiceLedger, InvoiceRequest, LedgerEntry
from .validator import ensure_valid

ZERO = Decimal("0")


def _unit_code(line: ResolvedLine) -> str:
    code = line.source.unit_code
    return code.strip() if not is_blank(code) else DEFAULT_UNIT_CODE


def _tax_category(line: ResolvedLine) -> Optional[str]:
    category = line.source.tax_category
    return category.strip() if not is_blank(category) else None


# ============================================================================
# Entry Builders
# ============================================================================

def ordinary_entry(line: ResolvedLine) -> LedgerEntry:
    """Ledger entry for a non-negative line, priced at its discount-adjusted unit net."""
    return LedgerEntry(
        description=line.source.description.strip(),
        unit_code=_unit_code(line),
        unit_net_amount=line.unit_net_adjusted,
        quantity=line.quantity,
        tax_rate=line.tax_rate,
        tax_category=_tax_category(line),
        kind=EntryKind.ORDINARY_ITEM,
        line_net_amount=line.line_net,
        source_line=line.index,
    )


def credit_entry(line: ResolvedLine) -> LedgerEntry:
    """Ledger entry for a credit line: marked description, negative unit amount in cents."""
    amount = quantize(-abs(line.unit_net_original), MONEY_SCALE)
    return LedgerEntry(
        description=line.source.description.strip() + CREDIT_MARKER,
        unit_code=_unit_code(line),
        unit_net_amount=amount,
        quantity=line.quantity,
        tax_rate=line.tax_rate,
        tax_category=_tax_category(line),
        kind=EntryKind.CREDIT_ITEM,
        line_net_amount=quantize(amount * line.quantity, MONEY_SCALE),
        source_line=line.index,
    )


def invoice_discount_entry(discount: Decimal) -> LedgerEntry:
    """Single zero-rated entry for the invoice-level discount."""
    amount = -abs(discount)
    return LedgerEntry(
        description=INVOICE_DISCOUNT_LABEL,
        unit_code=DEFAULT_UNIT_CODE,
        unit_net_amount=amount,
        quantity=quantize(Decimal(1), QUANTITY_SCALE),
        tax_rate=quantize(ZERO, TAX_RATE_SCALE),
        tax_category=EXEMPT_TAX_CATEGORY,
        kind=EntryKind.INVOICE_DISCOUNT,
        line_net_amount=amount,
    )


def invoice_discount(request: InvoiceRequest) -> Optional[Decimal]:
    """The positive invoice-level discount, or None."""
    if request.totals is None:
        return None
    discount = parse_optional_amount(request.totals.discount_gross, MONEY_SCALE, "totals.discount_gross")
    if discount is None or discount <= ZERO:
        return None
    return discount


def expected_grand_total(request: InvoiceRequest) -> Optional[Decimal]:
    if request.totals is None:
        return None
    return parse_optional_amount(request.totals.grand_total_gross, MONEY_SCALE, "totals.grand_total_gross")


# ============================================================================
# Assembler
# ============================================================================

def assemble_ledger(
    ordinary: list[ResolvedLine],
    credit: list[ResolvedLine],
    discount: Optional[Decimal] = None,
    adjustment: Optional[LedgerEntry] = None,
) -> list[LedgerEntry]:
    """
    Concatenate ledger entries in their fixed order.

    Args:
        ordinary: Ordinary lines, in request order
        credit: Credit lines, in request order
        discount: Positive invoice-level discount, if any
        adjustment: Rounding adjustment entry, if any

    Returns:
        Ordered list of LedgerEntry
    """
    entries = [ordinary_entry(line) for line in ordinary]
    if discount is not None and discount > ZERO:
        entries.append(invoice_discount_entry(discount))
    entries.extend(credit_entry(line) for line in credit)
    if adjustment is not None:
        entries.append(adjustment)
    return entries


def build_ledger(request: InvoiceRequest, today: Optional[date] = None) -> InvoiceLedger:
    """
    Build the reconciled ledger for one invoice request.

    Args:
        request: Parsed invoice request
        today: Fallback issue date (defaults to the current date)

    Returns:
        InvoiceLedger ready for the document-assembly collaborator

    Raises:
        InvoiceRejected: If the request fails validation
    """
    ensure_valid(request)

    header = resolve_header(request, today)
    logger.info(f"Building ledger for invoice {header.number} with {len(request.lines)} line(s)")

    resolved = resolve_lines(request)
    ordinary, credit = split_lines(resolved)
    discount = invoice_discount(request)

    reconciliation = reconcile(resolved, expected_grand_total(request), discount)
    entries = assemble_ledger(ordinary, credit, discount, reconciliation.adjustment)

    if credit:
        logger.info(f"Invoice {header.number}: {len(credit)} credit line(s)")
    if discount is not None:
        logger.info(f"Invoice {header.number}: invoice discount {discount}")

    return InvoiceLedger(
        header=header,
        seller=request.seller,
        buyer=request.buyer,
        payment_means=resolve_payment_means(request),
        entries=entries,
        reconciliation=reconciliation,
    )
