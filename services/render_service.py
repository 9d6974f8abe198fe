# services/render_service.py
"""
Turns quotes, invoices and payments into the flat render context the HTML
templates expect, then renders them with ``template_engine``.

Amounts are preformatted as currency strings and dates as DD/MM/YYYY, so
templates only ever print values.
"""

import os
from datetime import date, datetime
from typing import Iterable, List

from configs.settings import TEMPLATE_DIR
from models.billing_models import (
    CompanyInfo,
    ContactInfo,
    Invoice,
    InvoiceStatus,
    LineItem,
    Payment,
    Quote,
    QuoteStatus,
)
from services.billing_service import convert_number_to_words
from services.document_lifecycle import effective_invoice_status
from template_engine.renderer import render
from utils.date_utils import format_document_date
from utils.logger import get_logger
from utils.money import ZERO, format_currency, format_quantity

logger = get_logger(__name__)

DEFAULT_INVOICE_TEMPLATE = "default-invoice.html"
DEFAULT_QUOTE_TEMPLATE = "default-quote.html"
RECEIPT_TEMPLATE = "payment-receipt.html"
DEFAULT_TEMPLATE_NAME = "Spreadsheet Template"


def load_template(template_name: str) -> str:
    template_path = os.path.join(TEMPLATE_DIR, template_name)
    if not os.path.exists(template_path):
        raise FileNotFoundError(f"Template file not found: {template_path}")
    with open(template_path, "r", encoding="utf-8") as f:
        return f.read()


def resolve_template_file(template_id: str | None, default: str) -> str:
    """``<template_id>.html`` when such a file exists in TEMPLATE_DIR, otherwise ``default``."""
    if template_id and os.path.basename(template_id) == template_id:
        candidate = f"{template_id}.html"
        if os.path.exists(os.path.join(TEMPLATE_DIR, candidate)):
            return candidate
        logger.debug(f"No template file for {template_id}; using {default}")
    return default


def prepare_items(items: Iterable[LineItem]) -> List[dict]:
    """Line items as display rows. Header rows keep only their name and description."""
    rows = []
    for item in items:
        is_header = item.is_header
        rows.append({
            "type": item.kind.value,
            "name": item.name,
            "description": item.description or "",
            "quantity": "" if is_header else format_quantity(item.quantity),
            "rate": "" if is_header else format_currency(item.unitRate),
            "taxRate": "" if is_header or not item.taxRatePercent else f"{item.taxRatePercent.normalize():f}%",
            "amount": "" if is_header else format_currency(item.amount),
        })
    return rows


def _company_fields(company: CompanyInfo | None) -> dict:
    company = company or CompanyInfo.from_settings()
    return {
        "companyName": company.name,
        "companyAddress": company.address,
        "companyCity": company.city,
        "companyState": company.state,
        "companyZipCode": company.zipCode,
        "companyCountry": company.country,
        "companyEmail": company.email,
    }


def _contact_fields(contact: ContactInfo) -> dict:
    # Billing address wins over the contact's general address
    return {
        "contactName": contact.name,
        "contactEmail": contact.email or "",
        "billingAddress": contact.billingAddress or contact.address or "",
        "billingCity": contact.billingCity or contact.city or "",
        "billingState": contact.billingState or contact.state or "",
        "billingZipCode": contact.billingZipCode or contact.zipCode or "",
        "billingCountry": contact.billingCountry or contact.country or "",
    }


def email_subject(document: str, number: str, company: CompanyInfo) -> str:
    if company.name:
        return f"{document} {number} from {company.name}"
    return f"{document} {number}"


def build_invoice_context(
    invoice: Invoice,
    contact: ContactInfo,
    company: CompanyInfo | None = None,
    quote: Quote | None = None,
    now: datetime | date | None = None,
) -> dict:
    status = effective_invoice_status(invoice, now)
    paid_amount = invoice.paidAmount
    remaining_amount = invoice.balance_due

    return {
        **_company_fields(company),
        **_contact_fields(contact),
        "invoiceNumber": invoice.invoiceNumber.strip(),
        "quoteNumber": quote.quoteNumber.strip() if quote else "",
        "quoteStatus": quote.status.value if quote else "",
        "issueDate": format_document_date(invoice.issueDate),
        "dueDate": format_document_date(invoice.dueDate),
        "paymentTerms": invoice.paymentTerms or "",
        "templateName": invoice.templateId or DEFAULT_TEMPLATE_NAME,
        "status": status.value,
        "isDraft": status == InvoiceStatus.DRAFT,
        "subtotal": format_currency(invoice.subtotal),
        "taxAmount": format_currency(invoice.taxAmount),
        "total": format_currency(invoice.total),
        "paidAmount": format_currency(paid_amount) if paid_amount > ZERO else "",
        "remainingAmount": format_currency(remaining_amount) if remaining_amount > ZERO else "",
        "totalInWords": convert_number_to_words(invoice.total),
        "notes": invoice.notes or "",
        "items": prepare_items(invoice.items),
    }


def build_quote_context(quote: Quote, contact: ContactInfo, company: CompanyInfo | None = None) -> dict:
    return {
        **_company_fields(company),
        **_contact_fields(contact),
        "quoteNumber": quote.quoteNumber.strip(),
        "issueDate": format_document_date(quote.issueDate),
        "expiryDate": format_document_date(quote.expiryDate),
        "paymentTerms": quote.paymentTerms or "",
        "templateName": quote.templateId or DEFAULT_TEMPLATE_NAME,
        "status": quote.status.value,
        "quoteStatus": quote.status.value,
        "isDraft": quote.status == QuoteStatus.DRAFT,
        "subtotal": format_currency(quote.subtotal),
        "taxAmount": format_currency(quote.taxAmount),
        "total": format_currency(quote.total),
        "totalInWords": convert_number_to_words(quote.total),
        "notes": quote.notes or "",
        "items": prepare_items(quote.items),
    }


def build_receipt_context(
    invoice: Invoice,
    payment: Payment,
    contact: ContactInfo,
    company: CompanyInfo | None = None,
) -> dict:
    return {
        **_company_fields(company),
        **_contact_fields(contact),
        "receiptNumber": payment.paymentNumber or payment.id,
        "invoiceNumber": invoice.invoiceNumber,
        "invoiceDate": format_document_date(invoice.issueDate),
        "invoiceTotal": format_currency(invoice.total),
        "balanceDue": format_currency(invoice.balance_due),
        "paymentDate": format_document_date(payment.paymentDate),
        "paymentMode": payment.paymentMode.value,
        "referenceNumber": payment.referenceNumber or "",
        "amountReceived": format_currency(payment.amountReceived),
        "amountInWords": convert_number_to_words(payment.amountReceived),
        "bankCharges": format_currency(payment.bankCharges) if payment.bankCharges else "",
        "tdsAmount": format_currency(payment.tdsAmount) if payment.taxDeducted and payment.tdsAmount else "",
        "notes": payment.notes or "",
    }


def render_invoice_html(
    invoice: Invoice,
    contact: ContactInfo,
    company: CompanyInfo | None = None,
    quote: Quote | None = None,
    template_source: str | None = None,
    now: datetime | date | None = None,
) -> str:
    if template_source is None:
        template_source = load_template(resolve_template_file(invoice.templateId, DEFAULT_INVOICE_TEMPLATE))
    context = build_invoice_context(invoice, contact, company=company, quote=quote, now=now)
    return render(template_source, context)


def render_quote_html(
    quote: Quote,
    contact: ContactInfo,
    company: CompanyInfo | None = None,
    template_source: str | None = None,
) -> str:
    if template_source is None:
        template_source = load_template(resolve_template_file(quote.templateId, DEFAULT_QUOTE_TEMPLATE))
    return render(template_source, build_quote_context(quote, contact, company=company))


def render_receipt_html(
    invoice: Invoice,
    payment: Payment,
    contact: ContactInfo,
    company: CompanyInfo | None = None,
    template_source: str | None = None,
) -> str:
    if template_source is None:
        template_source = load_template(RECEIPT_TEMPLATE)
    return render(template_source, build_receipt_context(invoice, payment, contact, company=company))


def render_email_body(template_name: str, context: dict) -> str:
    return render(load_template(template_name), context)
