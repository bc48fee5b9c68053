"""
Hand-off to the document-assembly collaborator.

Resolves header, party and payment data with all defaults applied, so the
collaborator can populate its invoice document model directly, and wraps
the collaborator call so its failures surface as one opaque error.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Protocol

from .amounts import is_blank
from .config import (
    ALREADY_PAID_TEXT,
    DATE_FORMATS,
    DEFAULT_CURRENCY,
    DEFAULT_INVOICE_NUMBER,
    DEFAULT_PAYMENT_TERM_DAYS,
    PAID_STATUS,
    PAYMENT_MEANS_OTHER,
    PAYMENT_MEANS_SEPA_TRANSFER,
    REMIT_UNTIL_TEXT,
    SEPA_TRANSFER_TEXT,
    logger,
)
from .errors import DocumentAssemblyError, InvalidDate
from .schemas import DocumentHeader, InvoiceHeader, InvoiceLedger, InvoiceRequest, PaymentMeans


# ============================================================================
# Dates
# ============================================================================

def parse_date(date_str: Optional[str], field: str = "date") -> Optional[date]:
    """
    Parse a date string; ISO timestamps are cut to their date part.

    Returns None for blank input.

    Raises:
        InvalidDate: If no known format matches
    """
    if is_blank(date_str):
        return None

    value = date_str.strip()[:10]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    raise InvalidDate(f"{field}: '{date_str}' is not a valid date", field)


def format_de(value: date) -> str:
    return value.strftime("%d.%m.%Y")


# ============================================================================
# Header and Payment
# ============================================================================

def resolve_header(request: InvoiceRequest, today: Optional[date] = None) -> DocumentHeader:
    """
    Apply the header defaults.

    - number falls back to INV-001, currency to EUR
    - issue date falls back to ``today``
    - delivery date is the service start when given, else the issue date
    - the service period is kept only when both ends are present
    - due date falls back to issue date + DEFAULT_PAYMENT_TERM_DAYS
    """
    header = request.header or InvoiceHeader()
    today = today or date.today()

    number = header.number if not is_blank(header.number) else DEFAULT_INVOICE_NUMBER
    currency = header.currency.strip().upper() if not is_blank(header.currency) else DEFAULT_CURRENCY

    issue_date = parse_date(header.issue_date, "invoice.issue_date")
    if issue_date is None:
        logger.warning(f"Invoice {number}: no issue date, using {today}")
        issue_date = today

    service_from = parse_date(header.service_from, "invoice.service_from")
    service_to = parse_date(header.service_to, "invoice.service_to")
    delivery_date = service_from or issue_date
    if service_from is None or service_to is None:
        service_from = service_to = None

    due_date = parse_date(header.due_date, "invoice.due_date")
    if due_date is None:
        due_date = issue_date + timedelta(days=DEFAULT_PAYMENT_TERM_DAYS)

    if is_paid(request):
        payment_term = ALREADY_PAID_TEXT
    else:
        payment_term = REMIT_UNTIL_TEXT.format(date=format_de(due_date))

    reference_number = None
    if request.buyer is not None and not is_blank(request.buyer.buyer_reference):
        reference_number = request.buyer.buyer_reference

    payment_reference = None
    if request.payment is not None and not is_blank(request.payment.remittance_information):
        payment_reference = request.payment.remittance_information

    return DocumentHeader(
        number=number,
        issue_date=issue_date,
        delivery_date=delivery_date,
        service_from=service_from,
        service_to=service_to,
        due_date=due_date,
        currency=currency,
        payment_term_description=payment_term,
        reference_number=reference_number,
        payment_reference=payment_reference,
    )


def is_paid(request: InvoiceRequest) -> bool:
    return request.payment is not None and request.payment.payment_status == PAID_STATUS


def resolve_payment_means(request: InvoiceRequest) -> PaymentMeans:
    """
    Choose the payment means.

    Paid invoices get code ZZZ; everything else is a SEPA credit transfer
    (code 58) with the payment block's IBAN/BIC, falling back to the
    seller's bank details.
    """
    seller = request.seller
    iban = seller.iban if seller is not None and not is_blank(seller.iban) else None
    bic = seller.bic if seller is not None and not is_blank(seller.bic) else None

    if is_paid(request):
        return PaymentMeans(code=PAYMENT_MEANS_OTHER, information=ALREADY_PAID_TEXT, iban=iban, bic=bic)

    if request.payment is not None:
        if not is_blank(request.payment.iban):
            iban = request.payment.iban
        if not is_blank(request.payment.bic):
            bic = request.payment.bic

    return PaymentMeans(code=PAYMENT_MEANS_SEPA_TRANSFER, information=SEPA_TRANSFER_TEXT, iban=iban, bic=bic)


# ============================================================================
# Collaborator
# ============================================================================

class DocumentAssembler(Protocol):
    """Anything that turns a ledger into the deliverable document bytes."""

    def assemble(self, ledger: InvoiceLedger) -> bytes:
        ...


def hand_off(ledger: InvoiceLedger, assembler: DocumentAssembler) -> bytes:
    """
    Pass a finished ledger to the document assembler.

    Raises:
        DocumentAssemblyError: If the assembler fails for any reason; the
            original exception is logged, not exposed
    """
    try:
        return assembler.assemble(ledger)
    except Exception as e:
        logger.exception(f"Document assembly failed for invoice {ledger.header.number}")
        raise DocumentAssemblyError("Document assembly failed") from e
