"""
Per-line resolution: unit net price, line discount and credit classification.

Each request line becomes exactly one ``ResolvedLine``. The steps run in a
fixed order:

1. Resolve the unit net price (net price wins; otherwise derive from gross)
2. Apply the optional line discount and redistribute it per unit
3. Classify the line as ordinary or credit by its original unit net price
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .amounts import HUNDRED, gross_factor, is_blank, parse_amount, parse_optional_amount, quantize
from .config import (
    DERIVED_PRICE_SCALE,
    MONEY_SCALE,
    QUANTITY_SCALE,
    TAX_RATE_SCALE,
    logger,
)
from .errors import InvalidAmount, MissingPrice, MissingRequiredField, ReconciliationUnderflow
from .schemas import InvoiceRequest, LineItem

ZERO = Decimal("0")


class LineClassification(str, Enum):
    ORDINARY = "ordinary"
    CREDIT = "credit"


@dataclass(frozen=True)
class ResolvedLine:
    """
    A request line with every amount parsed and derived.

    Attributes:
        index: Position of the line in the request
        source: The LineItem it was resolved from
        quantity: Parsed quantity (4 places, always > 0)
        tax_rate: Parsed tax rate percentage (2 places)
        unit_net_original: Unit net price before the line discount
        unit_net_adjusted: Unit net price after the line discount (2 places)
        classification: Ordinary or credit
    """
    index: int
    source: LineItem
    quantity: Decimal
    tax_rate: Decimal
    unit_net_original: Decimal
    unit_net_adjusted: Decimal
    classification: LineClassification

    @property
    def is_credit(self) -> bool:
        return self.classification == LineClassification.CREDIT

    @property
    def line_net(self) -> Decimal:
        return quantize(self.unit_net_adjusted * self.quantity, MONEY_SCALE)


def line_field(index: int, name: Optional[str] = None) -> str:
    """Field path used in error codes, e.g. ``lines[2].quantity``."""
    if name is None:
        return f"lines[{index}]"
    return f"lines[{index}].{name}"


# ============================================================================
# Line Resolver
# ============================================================================

def parse_quantity(item: LineItem, index: int = 0) -> Decimal:
    """Parse the line quantity; it must be strictly positive."""
    field = line_field(index, "quantity")
    if is_blank(item.quantity):
        raise MissingRequiredField(f"{field}: quantity required", field)

    quantity = parse_amount(item.quantity, QUANTITY_SCALE, field)
    if quantity <= ZERO:
        raise ReconciliationUnderflow(f"{field}: quantity must be greater than zero, got {quantity}", field)
    return quantity


def parse_tax_rate(item: LineItem, index: int = 0) -> Decimal:
    """Parse the tax rate percentage (0 to 100); blank means 0."""
    field = line_field(index, "tax_rate")
    rate = parse_optional_amount(item.tax_rate, TAX_RATE_SCALE, field)
    if rate is None:
        return quantize(ZERO, TAX_RATE_SCALE)
    if rate < ZERO or rate > HUNDRED:
        raise InvalidAmount(f"{field}: tax rate must be between 0 and 100, got {rate}", field)
    return rate


def resolve_unit_net(item: LineItem, index: int = 0) -> Decimal:
    """
    Return the unit net price of a line.

    A non-blank net price is taken as given and never back-derived from the
    gross price. Otherwise the gross price is converted with the line's tax
    rate: ``gross / (1 + rate/100)``, rounded half-up to four places.

    Raises:
        MissingPrice: If neither net nor gross price is present
        InvalidAmount: If the price or tax rate cannot be parsed
    """
    if not is_blank(item.net_price):
        return parse_amount(item.net_price, DERIVED_PRICE_SCALE, line_field(index, "net_price"))

    if is_blank(item.gross_price):
        raise MissingPrice(
            f"{line_field(index)}: line requires either net_price or gross_price",
            line_field(index),
        )

    gross = parse_amount(item.gross_price, DERIVED_PRICE_SCALE, line_field(index, "gross_price"))
    rate = parse_tax_rate(item, index)
    return quantize(gross / gross_factor(rate), DERIVED_PRICE_SCALE)


# ============================================================================
# Discount Applier
# ============================================================================

def apply_discount(unit_net: Decimal, quantity: Decimal, discount: Optional[Decimal] = None) -> Decimal:
    """
    Spread an absolute line discount back onto the unit price.

    ``max(round2(unit_net * quantity) - discount, 0) / quantity``, rounded
    half-up to cents, so that unit price times quantity reproduces the
    discounted line total. Without a discount the unit price is only
    rounded to cents.
    """
    if discount is None or discount == ZERO:
        return quantize(unit_net, MONEY_SCALE)

    line_net = quantize(unit_net * quantity, MONEY_SCALE) - discount
    if line_net < ZERO:
        line_net = ZERO
    return quantize(line_net / quantity, MONEY_SCALE)


def parse_discount(item: LineItem, index: int = 0) -> Optional[Decimal]:
    """Parse the optional line discount; negative values are rejected."""
    field = line_field(index, "discount")
    discount = parse_optional_amount(item.discount, MONEY_SCALE, field)
    if discount is not None and discount < ZERO:
        raise InvalidAmount(f"{field}: discount must not be negative, got {discount}", field)
    return discount


# ============================================================================
# Credit Splitter
# ============================================================================

def classify(unit_net_original: Decimal) -> LineClassification:
    """Lines with a negative original unit net price are credits."""
    if unit_net_original < ZERO:
        return LineClassification.CREDIT
    return LineClassification.ORDINARY


def split_lines(lines: list[ResolvedLine]) -> tuple[list[ResolvedLine], list[ResolvedLine]]:
    """Partition resolved lines into (ordinary, credit), keeping input order."""
    ordinary = [line for line in lines if not line.is_credit]
    credit = [line for line in lines if line.is_credit]
    return ordinary, credit


# ============================================================================
# Resolution Pipeline
# ============================================================================

def resolve_line(item: LineItem, index: int = 0) -> ResolvedLine:
    """Run the resolver, discount applier and classifier for one line."""
    if is_blank(item.description):
        field = line_field(index, "description")
        raise MissingRequiredField(f"{field}: description required", field)

    quantity = parse_quantity(item, index)
    tax_rate = parse_tax_rate(item, index)
    unit_net = resolve_unit_net(item, index)
    discount = parse_discount(item, index)
    classification = classify(unit_net)

    if classification == LineClassification.CREDIT:
        if discount:
            logger.warning(f"Ignoring discount {discount} on credit line {index} ({item.description})")
        adjusted = quantize(unit_net, MONEY_SCALE)
    else:
        adjusted = apply_discount(unit_net, quantity, discount)

    logger.debug(
        f"Line {index} {item.description!r}: qty={quantity} rate={tax_rate} "
        f"unit_net={unit_net} adjusted={adjusted} ({classification.value})"
    )

    return ResolvedLine(
        index=index,
        source=item,
        quantity=quantity,
        tax_rate=tax_rate,
        unit_net_original=unit_net,
        unit_net_adjusted=adjusted,
        classification=classification,
    )


def resolve_lines(request: InvoiceRequest) -> list[ResolvedLine]:
    """Resolve every request line, in input order."""
    return [resolve_line(item, index) for index, item in enumerate(request.lines)]
