"""Shared fixtures for the billing core tests."""

from datetime import date
from decimal import Decimal

import pytest

from models.billing_models import (
    CompanyInfo,
    ContactInfo,
    Invoice,
    InvoiceStatus,
    LineItem,
    Quote,
    QuoteStatus,
)
from services import invoice_service, payment_service, quote_service

# Business date every test runs "as of"
TODAY = date(2026, 1, 15)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def widget_items() -> list[LineItem]:
    """2 × 100 at 10% tax: subtotal 200, tax 20, total 220."""
    return [LineItem(name="Widget", quantity=Decimal("2"), unitRate=Decimal("100"), taxRatePercent=Decimal("10"))]


@pytest.fixture
def sent_invoice(widget_items) -> Invoice:
    return Invoice(
        id="inv-1",
        invoiceNumber="INV-0001",
        contactId="contact-1",
        issueDate=date(2026, 1, 10),
        dueDate=date(2026, 2, 9),
        paymentTerms="Net 30",
        status=InvoiceStatus.SENT,
        items=widget_items,
        subtotal=Decimal("200"),
        taxAmount=Decimal("20"),
        total=Decimal("220"),
    )


@pytest.fixture
def sent_quote(widget_items) -> Quote:
    return Quote(
        id="quote-1",
        quoteNumber="QUO-0001",
        contactId="contact-1",
        issueDate=date(2026, 1, 5),
        expiryDate=date(2026, 2, 4),
        paymentTerms="Net 30",
        status=QuoteStatus.SENT,
        items=widget_items,
        subtotal=Decimal("200"),
        taxAmount=Decimal("20"),
        total=Decimal("220"),
    )


@pytest.fixture
def contact() -> ContactInfo:
    return ContactInfo(
        name="Acme Traders",
        email="accounts@acme.test",
        address="1 Old Street",
        billingAddress="12 MG Road",
        billingCity="Pune",
        state="Maharashtra",
        zipCode="411001",
        country="India",
    )


@pytest.fixture
def company() -> CompanyInfo:
    return CompanyInfo(
        name="Test Studio",
        address="4 Lake View",
        city="Ahmedabad",
        state="Gujarat",
        zipCode="380001",
        country="India",
        email="billing@studio.test",
    )


@pytest.fixture
def outbox(monkeypatch, tmp_path):
    """
    Replace PDF generation and email delivery in every service that sends
    documents. Returns the list of emails that would have been sent.
    """
    sent = []

    def fake_generate_pdf(html_content, document_number=None, prefix="document", output_dir=None):
        path = tmp_path / f"{prefix}_{document_number}.pdf"
        path.write_text(html_content, encoding="utf-8")
        return str(path)

    def fake_send_email(recipient_email, subject, html_body, attachments=None, text_body=None):
        sent.append({
            "to": recipient_email,
            "subject": subject,
            "html": html_body,
            "attachments": list(attachments or []),
        })

    for module in (invoice_service, quote_service, payment_service):
        monkeypatch.setattr(module, "generate_pdf", fake_generate_pdf)
        monkeypatch.setattr(module, "send_email", fake_send_email)

    return sent
