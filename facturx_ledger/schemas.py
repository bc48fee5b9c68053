"""
Pydantic models for invoice requests and the reconciled ledger.

This module defines the data structures flowing through the ledger builder:
- InvoiceRequest and its parts, as received from the request parser
- LedgerEntry and ReconciliationResult, produced by the builder
- InvoiceLedger, the hand-off object for document assembly
- RequestValidationResult for validation outcomes

Request amounts stay strings on purpose: the amount parser decides how
"19,5" or "119.00" become exact decimals, not the JSON decoder.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

_REQUEST_CONFIG = {
    "frozen": True,
    "extra": "ignore",
    "coerce_numbers_to_str": True,
}


# ============================================================================
# Request Models
# ============================================================================

class Party(BaseModel):
    """Seller or buyer of the invoice."""
    name: Optional[str] = None
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    vat_id: Optional[str] = None
    tax_number: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    email: Optional[str] = None
    buyer_reference: Optional[str] = None
    leitweg_id: Optional[str] = None

    model_config = _REQUEST_CONFIG


class InvoiceHeader(BaseModel):
    """Invoice identifiers and dates (ISO strings, longer timestamps are cut to the date)."""
    number: Optional[str] = None
    issue_date: Optional[str] = None
    service_from: Optional[str] = None
    service_to: Optional[str] = None
    due_date: Optional[str] = None
    currency: Optional[str] = None

    model_config = _REQUEST_CONFIG


class PaymentInfo(BaseModel):
    method: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    payment_status: Optional[str] = Field(
        None,
        description="'paid' marks an invoice that is already settled",
    )
    remittance_information: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("remittance_information", "remittance_info"),
    )

    model_config = _REQUEST_CONFIG


class Totals(BaseModel):
    """Totals declared by the caller. ``grand_total_gross`` is the reconciliation target."""
    subtotal_gross: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("subtotal_gross", "subtotalGross", "subtotal"),
        description="Gross total before the invoice-level discount",
    )
    discount_gross: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("discount_gross", "discountGross", "discount"),
        description="Absolute invoice-level discount",
    )
    grand_total_gross: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("grand_total_gross", "grandTotalGross", "grand_total", "total"),
        description="Gross total after the invoice-level discount",
    )

    model_config = _REQUEST_CONFIG


class LineItem(BaseModel):
    """
    A single invoice line as received.

    Attributes:
        description: Item text (required, checked by the validation rules)
        quantity: Decimal string, parsed with four fractional digits
        unit_code: UN/ECE unit code, defaults to C62 when blank
        net_price: Net unit price; authoritative when present
        gross_price: Gross unit price; used only when net_price is blank
        tax_rate: Percentage (19 means 19%), defaults to 0
        tax_category: Tax category code (e.g. "S")
        discount: Absolute net discount for the whole line
    """
    description: Optional[str] = None
    quantity: Optional[str] = None
    unit_code: Optional[str] = None
    net_price: Optional[str] = None
    gross_price: Optional[str] = None
    tax_rate: Optional[str] = None
    tax_category: Optional[str] = None
    discount: Optional[str] = None

    model_config = {
        **_REQUEST_CONFIG,
        "json_schema_extra": {
            "examples": [
                {
                    "description": "Consulting",
                    "quantity": "8",
                    "unit_code": "HUR",
                    "net_price": "120,00",
                    "tax_rate": "19",
                    "tax_category": "S",
                    "discount": "40.00",
                }
            ]
        },
    }


class InvoiceRequest(BaseModel):
    """A parsed invoice description. Immutable once received."""
    seller: Optional[Party] = None
    buyer: Optional[Party] = None
    header: Optional[InvoiceHeader] = Field(
        None,
        validation_alias=AliasChoices("invoice", "header"),
    )
    lines: list[LineItem] = Field(default_factory=list)
    payment: Optional[PaymentInfo] = None
    totals: Optional[Totals] = None

    model_config = {
        **_REQUEST_CONFIG,
        "json_schema_extra": {
            "examples": [
                {
                    "seller": {"name": "Muster GmbH", "vat_id": "DE123456789", "iban": "DE02120300000000202051"},
                    "buyer": {"name": "Kunde AG", "buyer_reference": "04011000-12345-34"},
                    "invoice": {
                        "number": "RE-2024-0042",
                        "issue_date": "2024-03-01",
                        "due_date": "2024-03-15",
                        "currency": "EUR",
                    },
                    "lines": [
                        {"description": "Widget", "quantity": "2", "gross_price": "119.00", "tax_rate": "19"}
                    ],
                    "totals": {"grand_total_gross": "238.00"},
                }
            ]
        },
    }


# ============================================================================
# Ledger Models
# ============================================================================

class EntryKind(str, Enum):
    """Kinds of ledger entries, in the order the assembler emits them."""
    ORDINARY_ITEM = "ordinary-item"
    INVOICE_DISCOUNT = "invoice-discount"
    CREDIT_ITEM = "credit-item"
    ROUNDING_ADJUSTMENT = "rounding-adjustment"


class LedgerEntry(BaseModel):
    """
    One line of the reconciled ledger.

    Self-describing: ``unit_net_amount * quantity`` rounded to cents equals
    ``line_net_amount``, so downstream code never re-derives amounts from
    the request.
    """
    description: str
    unit_code: str
    unit_net_amount: Decimal
    quantity: Decimal
    tax_rate: Decimal
    tax_category: Optional[str] = None
    kind: EntryKind
    line_net_amount: Decimal
    source_line: Optional[int] = Field(
        None,
        description="Index of the request line this entry came from; None for synthesized entries",
    )

    model_config = {"frozen": True}


class ReconciliationResult(BaseModel):
    """Computed totals and the outcome of comparing them with the expected grand total."""
    total_net: Decimal
    line_gross_sum: Decimal = Field(
        ...,
        description="Sum of individually rounded line gross amounts (informational)",
    )
    representative_rate: Decimal
    invoice_discount: Decimal = Decimal("0.00")
    computed_gross: Decimal = Field(
        ...,
        description="Gross total from the lines, minus the invoice-level discount",
    )
    expected_gross: Optional[Decimal] = None
    delta: Optional[Decimal] = None
    adjustment: Optional[LedgerEntry] = None
    final_gross: Decimal

    model_config = {"frozen": True}


# ============================================================================
# Document Hand-off Models
# ============================================================================

class DocumentHeader(BaseModel):
    """Header data with every default already applied."""
    number: str
    issue_date: date
    delivery_date: date
    service_from: Optional[date] = None
    service_to: Optional[date] = None
    due_date: date
    currency: str
    payment_term_description: str
    reference_number: Optional[str] = None
    payment_reference: Optional[str] = None


class PaymentMeans(BaseModel):
    code: str
    information: str
    iban: Optional[str] = None
    bic: Optional[str] = None


class InvoiceLedger(BaseModel):
    """
    Everything the document-assembly collaborator needs.

    Entries are in their final order; no amount needs to be recomputed.
    """
    header: DocumentHeader
    seller: Party
    buyer: Party
    payment_means: PaymentMeans
    entries: list[LedgerEntry]
    reconciliation: ReconciliationResult

    def entries_of(self, kind: EntryKind) -> list[LedgerEntry]:
        return [entry for entry in self.entries if entry.kind == kind]


# ============================================================================
# Validation Models
# ============================================================================

class RequestValidationResult(BaseModel):
    """Validation outcome for one invoice request."""
    invoice_id: str = Field(
        ...,
        description="Invoice number, or a placeholder when the header has none",
    )
    is_valid: bool
    errors: list[str] = Field(
        default_factory=list,
        description="Error codes (e.g., 'missing_price:lines[2]')",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "invoice_id": "RE-2024-0042",
                    "is_valid": False,
                    "errors": [
                        "missing_field:buyer",
                        "invalid_amount:lines[0].quantity",
                    ],
                }
            ]
        }
    }
