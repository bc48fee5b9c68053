"""
Tests for the reconciliation engine.

Covers the aggregate gross computation, the representative tax rate and
the synthesized rounding adjustment.
"""

from decimal import Decimal

import pytest

from facturx_ledger.config import EXEMPT_TAX_CATEGORY, ROUNDING_ADJUSTMENT_LABEL
from facturx_ledger.lines import resolve_line
from facturx_ledger.reconciliation import reconcile, representative_rate, rounding_adjustment_entry
from facturx_ledger.schemas import EntryKind, LineItem


def _resolve(*items: LineItem):
    return [resolve_line(item, index) for index, item in enumerate(items)]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def two_gross_lines():
    """Two lines at 119.00 gross / 19%: 238.00 in total."""
    return _resolve(
        LineItem(description="Item 1", quantity="1.0000", gross_price="119.00", tax_rate="19", tax_category="S"),
        LineItem(description="Item 2", quantity="1.0000", gross_price="119.00", tax_rate="19", tax_category="S"),
    )


# ============================================================================
# Computed Totals
# ============================================================================

class TestComputedTotals:

    def test_single_net_line_without_expectation(self):
        lines = _resolve(LineItem(description="Widget", quantity="1", net_price="100.00", tax_rate="19"))
        result = reconcile(lines)

        assert result.total_net == Decimal("100.00")
        assert result.computed_gross == Decimal("119.00")
        assert result.final_gross == Decimal("119.00")
        assert result.expected_gross is None
        assert result.adjustment is None

    def test_representative_rate_is_highest(self):
        lines = _resolve(
            LineItem(description="Food", quantity="1", net_price="100", tax_rate="7"),
            LineItem(description="Tool", quantity="1", net_price="100", tax_rate="19"),
        )
        assert representative_rate(lines) == Decimal("19.00")

        result = reconcile(lines)
        # Aggregate uses the representative rate, the line sum does not
        assert result.computed_gross == Decimal("238.00")
        assert result.line_gross_sum == Decimal("226.00")

    def test_zero_rated_invoice(self):
        lines = _resolve(LineItem(description="Export", quantity="2", net_price="50"))
        result = reconcile(lines)
        assert result.representative_rate == Decimal("0.00")
        assert result.computed_gross == Decimal("100.00")

    def test_credit_lines_count_toward_totals(self):
        lines = _resolve(
            LineItem(description="Widget", quantity="1", net_price="100.00", tax_rate="19"),
            LineItem(description="Refund", quantity="1", net_price="-50.00", tax_rate="19"),
        )
        result = reconcile(lines)
        assert result.total_net == Decimal("50.00")
        assert result.computed_gross == Decimal("59.50")

    def test_invoice_discount_reduces_computed_gross(self):
        lines = _resolve(LineItem(description="Widget", quantity="1", net_price="100.00", tax_rate="19"))
        result = reconcile(lines, Decimal("109.00"), Decimal("10.00"))

        assert result.invoice_discount == Decimal("10.00")
        assert result.computed_gross == Decimal("109.00")
        assert result.adjustment is None


# ============================================================================
# Rounding Adjustment
# ============================================================================

class TestRoundingAdjustment:

    def test_exact_match_needs_no_adjustment(self, two_gross_lines):
        result = reconcile(two_gross_lines, Decimal("238.00"))

        assert result.computed_gross == Decimal("238.00")
        assert result.delta == Decimal("0.00")
        assert result.adjustment is None
        assert result.final_gross == Decimal("238.00")

    def test_positive_delta_is_surcharge(self, two_gross_lines):
        result = reconcile(two_gross_lines, Decimal("238.02"))
        adjustment = result.adjustment

        assert adjustment is not None
        assert adjustment.unit_net_amount == Decimal("0.02")
        assert adjustment.quantity == Decimal("1")
        assert adjustment.tax_rate == Decimal("0")
        assert adjustment.tax_category == EXEMPT_TAX_CATEGORY
        assert adjustment.kind == EntryKind.ROUNDING_ADJUSTMENT
        assert adjustment.description == ROUNDING_ADJUSTMENT_LABEL

    def test_negative_delta_is_allowance(self, two_gross_lines):
        result = reconcile(two_gross_lines, Decimal("237.97"))
        assert result.adjustment.unit_net_amount == Decimal("-0.03")
        assert result.adjustment.line_net_amount == Decimal("-0.03")

    @pytest.mark.parametrize("expected", ["238.01", "237.99", "250.00", "0.00", "-12.34"])
    def test_adjustment_closes_the_gap_exactly(self, two_gross_lines, expected):
        expected_total = Decimal(expected)
        result = reconcile(two_gross_lines, expected_total)

        assert result.adjustment is not None
        assert result.computed_gross + result.adjustment.unit_net_amount == expected_total
        assert result.final_gross == expected_total

    def test_delta_never_pushed_into_lines(self, two_gross_lines):
        reconcile(two_gross_lines, Decimal("240.00"))
        assert [line.unit_net_adjusted for line in two_gross_lines] == [Decimal("100.00"), Decimal("100.00")]

    def test_mixed_rates_reconciled_against_line_sum(self):
        lines = _resolve(
            LineItem(description="Food", quantity="1", net_price="100", tax_rate="7"),
            LineItem(description="Tool", quantity="1", net_price="100", tax_rate="19"),
        )
        result = reconcile(lines, Decimal("226.00"))
        assert result.adjustment.unit_net_amount == Decimal("-12.00")

    def test_entry_builder_sign(self):
        assert rounding_adjustment_entry(Decimal("0.05")).unit_net_amount == Decimal("0.05")
        assert rounding_adjustment_entry(Decimal("-0.05")).unit_net_amount == Decimal("-0.05")
