"""
Tests for header/payment resolution and the document hand-off.
"""

from datetime import date

import pytest

from facturx_ledger.config import (
    ALREADY_PAID_TEXT,
    PAYMENT_MEANS_OTHER,
    PAYMENT_MEANS_SEPA_TRANSFER,
)
from facturx_ledger.document import hand_off, parse_date, resolve_header, resolve_payment_means
from facturx_ledger.errors import DocumentAssemblyError, InvalidDate
from facturx_ledger.ledger import build_ledger
from facturx_ledger.schemas import (
    InvoiceHeader,
    InvoiceLedger,
    InvoiceRequest,
    LineItem,
    Party,
    PaymentInfo,
)

TODAY = date(2024, 3, 1)


@pytest.fixture
def request_base() -> InvoiceRequest:
    return InvoiceRequest(
        seller=Party(name="Muster GmbH", iban="DE02120300000000202051", bic="BYLADEM1001"),
        buyer=Party(name="Kunde AG", buyer_reference="04011000-12345-34"),
        lines=[LineItem(description="Widget", quantity="1", net_price="10", tax_rate="19")],
    )


class TestParseDate:

    def test_iso(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_timestamp_cut_to_date(self):
        assert parse_date("2024-01-15T10:30:00Z") == date(2024, 1, 15)

    def test_german_format(self):
        assert parse_date("15.01.2024") == date(2024, 1, 15)

    def test_blank(self):
        assert parse_date("") is None
        assert parse_date(None) is None

    def test_invalid(self):
        with pytest.raises(InvalidDate) as exc_info:
            parse_date("next tuesday", "invoice.due_date")
        assert exc_info.value.code == "invalid_date:invoice.due_date"


class TestResolveHeader:
    """Tests for header defaults."""

    def test_defaults_without_header(self, request_base):
        header = resolve_header(request_base, TODAY)

        assert header.number == "INV-001"
        assert header.currency == "EUR"
        assert header.issue_date == TODAY
        assert header.delivery_date == TODAY
        assert header.due_date == date(2024, 3, 15)
        assert header.payment_term_description == "Please remit until 15.03.2024"
        assert header.reference_number == "04011000-12345-34"

    def test_service_from_is_delivery_date(self, request_base):
        request = request_base.model_copy(update={
            "header": InvoiceHeader(issue_date="2024-03-01", service_from="2024-02-01"),
        })
        header = resolve_header(request, TODAY)

        assert header.delivery_date == date(2024, 2, 1)
        # Period needs both ends
        assert header.service_from is None
        assert header.service_to is None

    def test_service_period(self, request_base):
        request = request_base.model_copy(update={
            "header": InvoiceHeader(service_from="2024-02-01", service_to="2024-02-29"),
        })
        header = resolve_header(request, TODAY)

        assert header.service_from == date(2024, 2, 1)
        assert header.service_to == date(2024, 2, 29)

    def test_explicit_values_kept(self, request_base):
        request = request_base.model_copy(update={
            "header": InvoiceHeader(number="RE-7", issue_date="2024-01-10", due_date="2024-02-10", currency="chf"),
        })
        header = resolve_header(request, TODAY)

        assert header.number == "RE-7"
        assert header.currency == "CHF"
        assert header.issue_date == date(2024, 1, 10)
        assert header.due_date == date(2024, 2, 10)

    def test_paid_invoice_term(self, request_base):
        request = request_base.model_copy(update={
            "payment": PaymentInfo(payment_status="paid", remittance_information="RE-7 / Kunde AG"),
        })
        header = resolve_header(request, TODAY)

        assert header.payment_term_description == ALREADY_PAID_TEXT
        assert header.payment_reference == "RE-7 / Kunde AG"


class TestResolvePaymentMeans:

    def test_unpaid_uses_sepa_with_seller_bank(self, request_base):
        means = resolve_payment_means(request_base)
        assert means.code == PAYMENT_MEANS_SEPA_TRANSFER
        assert means.iban == "DE02120300000000202051"
        assert means.bic == "BYLADEM1001"

    def test_payment_block_overrides_bank(self, request_base):
        request = request_base.model_copy(update={
            "payment": PaymentInfo(iban="DE89370400440532013000"),
        })
        means = resolve_payment_means(request)
        assert means.iban == "DE89370400440532013000"
        assert means.bic == "BYLADEM1001"

    def test_paid(self, request_base):
        request = request_base.model_copy(update={"payment": PaymentInfo(payment_status="paid")})
        assert resolve_payment_means(request).code == PAYMENT_MEANS_OTHER


class TestHandOff:

    class RecordingAssembler:
        def __init__(self):
            self.received = None

        def assemble(self, ledger: InvoiceLedger) -> bytes:
            self.received = ledger
            return b"%PDF-1.7"

    class FailingAssembler:
        def assemble(self, ledger: InvoiceLedger) -> bytes:
            raise IOError("/tmp/fx-src-123.pdf: disk full")

    def test_ledger_passed_through(self, request_base):
        ledger = build_ledger(request_base, TODAY)
        assembler = self.RecordingAssembler()

        assert hand_off(ledger, assembler) == b"%PDF-1.7"
        assert assembler.received is ledger

    def test_failure_is_opaque(self, request_base):
        ledger = build_ledger(request_base, TODAY)

        with pytest.raises(DocumentAssemblyError) as exc_info:
            hand_off(ledger, self.FailingAssembler())

        assert "disk full" not in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, IOError)
