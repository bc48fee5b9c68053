"""
Reconciliation of computed totals against the caller's expected grand total.

The engine never pushes a rounding difference back into individual lines,
and never rescales declared prices to hit a target. Any gap of a cent or
more becomes one explicit, zero-rated rounding-adjustment entry.

Aggregate gross is derived from the total net with one representative tax
rate (the highest rate seen) instead of summing per-line rounded gross
amounts, so per-line rounding does not compound into the total.
"""

from decimal import Decimal
from typing import Optional

from .amounts import gross_factor, quantize
from .config import (
    DEFAULT_UNIT_CODE,
    EXEMPT_TAX_CATEGORY,
    MONEY_SCALE,
    QUANTITY_SCALE,
    RECONCILIATION_THRESHOLD,
    ROUNDING_ADJUSTMENT_LABEL,
    TAX_RATE_SCALE,
    logger,
)
from .lines import ResolvedLine
from .schemas import EntryKind, LedgerEntry, ReconciliationResult

ZERO = Decimal("0")


def representative_rate(lines: list[ResolvedLine]) -> Decimal:
    """Highest tax rate among the lines (the standard rate is never below a reduced one)."""
    rate = quantize(ZERO, TAX_RATE_SCALE)
    for line in lines:
        if line.tax_rate > rate:
            rate = line.tax_rate
    return rate


def line_gross(line: ResolvedLine) -> Decimal:
    return quantize(line.line_net * gross_factor(line.tax_rate), MONEY_SCALE)


def rounding_adjustment_entry(delta: Decimal) -> LedgerEntry:
    """Build the zero-rated exempt entry absorbing ``delta`` (surcharge if positive, allowance if negative)."""
    return LedgerEntry(
        description=ROUNDING_ADJUSTMENT_LABEL,
        unit_code=DEFAULT_UNIT_CODE,
        unit_net_amount=delta,
        quantity=quantize(Decimal(1), QUANTITY_SCALE),
        tax_rate=quantize(ZERO, TAX_RATE_SCALE),
        tax_category=EXEMPT_TAX_CATEGORY,
        kind=EntryKind.ROUNDING_ADJUSTMENT,
        line_net_amount=delta,
    )


def reconcile(
    lines: list[ResolvedLine],
    expected_gross: Optional[Decimal] = None,
    invoice_discount: Optional[Decimal] = None,
) -> ReconciliationResult:
    """
    Compare computed totals with the expected grand total.

    Credit lines take part exactly like ordinary lines; only their ledger
    presentation differs.

    ``computed_gross`` is net of the invoice-level discount, so the delta
    against the expected total never contains the discount a second time.

    Args:
        lines: All resolved lines (ordinary and credit)
        expected_gross: Caller-declared grand total, authoritative when given
        invoice_discount: Positive invoice-level discount; it is zero-rated,
            so it reduces the computed gross total one to one

    Returns:
        ReconciliationResult with the totals and the adjustment entry, if any
    """
    total_net = quantize(ZERO, MONEY_SCALE)
    line_gross_sum = quantize(ZERO, MONEY_SCALE)

    for line in lines:
        total_net += line.line_net
        line_gross_sum += line_gross(line)

    rate = representative_rate(lines)
    discount = invoice_discount if invoice_discount and invoice_discount > ZERO else quantize(ZERO, MONEY_SCALE)
    computed_gross = quantize(total_net * gross_factor(rate), MONEY_SCALE) - discount

    logger.debug(
        f"Totals: net={total_net} line_gross_sum={line_gross_sum} "
        f"rate={rate} discount={discount} computed_gross={computed_gross}"
    )

    if expected_gross is None:
        return ReconciliationResult(
            total_net=total_net,
            line_gross_sum=line_gross_sum,
            representative_rate=rate,
            invoice_discount=discount,
            computed_gross=computed_gross,
            final_gross=computed_gross,
        )

    delta = quantize(expected_gross - computed_gross, MONEY_SCALE)
    adjustment = None
    if abs(delta) >= RECONCILIATION_THRESHOLD:
        adjustment = rounding_adjustment_entry(delta)
        logger.info(f"Rounding adjustment {delta:+} (computed {computed_gross}, expected {expected_gross})")
    else:
        logger.debug(f"No rounding adjustment needed (delta {delta})")

    final_gross = computed_gross + adjustment.unit_net_amount if adjustment else computed_gross

    return ReconciliationResult(
        total_net=total_net,
        line_gross_sum=line_gross_sum,
        representative_rate=rate,
        invoice_discount=discount,
        computed_gross=computed_gross,
        expected_gross=expected_gross,
        delta=delta,
        adjustment=adjustment,
        final_gross=final_gross,
    )
