# services/quote_service.py
import uuid
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, Tuple

from models.billing_models import CompanyInfo, ContactInfo, Invoice, LineItem, Quote, QuoteStatus, TimesheetEntry
from services.billing_service import build_line_items, compute_totals
from services.document_lifecycle import check_quote_transition, ensure_quote_editable
from services.invoice_service import create_invoice
from services.mailer_service import send_email
from services.pdf_service import generate_pdf
from services.render_service import email_subject, render_email_body, render_quote_html
from utils.date_utils import calculate_due_date, current_date, format_document_date
from utils.document_numbers import generate_quote_number
from utils.exceptions import BillingValidationError, InvalidStatusTransitionError
from utils.logger import get_logger
from utils.money import format_currency

logger = get_logger(__name__)

QUOTE_EMAIL_TEMPLATE = "quote-email.html"


def create_quote(
    items: Sequence[LineItem],
    quote_number: str | None = None,
    *,
    issue_date: date | None = None,
    expiry_date: date | None = None,
    payment_terms: str | None = None,
    contact_id: str | None = None,
    project_id: str | None = None,
    template_id: str | None = None,
    notes: str | None = None,
    timesheets: Optional[Iterable[TimesheetEntry]] = None,
    hourly_rate=None,
    quote_id: str | None = None,
    quote_count: int = 0,
    now: datetime | date | None = None,
) -> Quote:
    """
    Build a new DRAFT quote with computed totals. Without a ``quote_number``
    the next QUO-nnnn number after ``quote_count`` stored quotes is used.
    """
    items = build_line_items(items, timesheets, hourly_rate, document="quote")
    issue_date = issue_date or current_date(now)
    totals = compute_totals(items)

    quote = Quote(
        id=quote_id or str(uuid.uuid4()),
        quoteNumber=quote_number or generate_quote_number(quote_count),
        contactId=contact_id,
        projectId=project_id,
        templateId=template_id,
        paymentTerms=payment_terms,
        issueDate=issue_date,
        expiryDate=calculate_due_date(issue_date, payment_terms, expiry_date),
        status=QuoteStatus.DRAFT,
        items=items,
        subtotal=totals.subtotal,
        taxAmount=totals.taxAmount,
        total=totals.total,
        notes=notes,
    )
    logger.info(f"Created quote {quote.quoteNumber} ({len(items)} rows, total {quote.total})")
    return quote


def update_quote(
    quote: Quote,
    *,
    items: Optional[Sequence[LineItem]] = None,
    expiry_date: date | None = None,
    payment_terms: str | None = None,
    template_id: str | None = None,
    notes: str | None = None,
) -> Quote:
    ensure_quote_editable(quote)

    updates = {}
    if items is not None:
        new_items = build_line_items(items, document="quote")
        totals = compute_totals(new_items)
        updates.update(items=new_items, subtotal=totals.subtotal, taxAmount=totals.taxAmount, total=totals.total)
    if payment_terms is not None:
        updates["paymentTerms"] = payment_terms
    if template_id is not None:
        updates["templateId"] = template_id
    if notes is not None:
        updates["notes"] = notes

    if expiry_date is not None:
        updates["expiryDate"] = expiry_date
    elif payment_terms is not None:
        recalculated = calculate_due_date(quote.issueDate, payment_terms)
        if recalculated is not None:
            updates["expiryDate"] = recalculated

    return quote.model_copy(update=updates)


def advance_quote_status(
    quote: Quote,
    target: QuoteStatus | str,
    invoice_id: str | None = None,
) -> Quote:
    """
    Move a quote to ``target``.

    INVOICED is one way and needs the id of the invoice it produced. Asking
    for the status the quote already has is a no-op, except for INVOICED.
    """
    target = QuoteStatus(target)

    if target == quote.status and target != QuoteStatus.INVOICED:
        return quote

    if quote.convertedToInvoice or quote.status == QuoteStatus.INVOICED:
        raise InvalidStatusTransitionError(
            "quote", quote.status.value, target.value,
            reason=f"already converted to invoice {quote.invoiceId}",
        )

    check_quote_transition(quote.status, target)

    updates = {"status": target}
    if target == QuoteStatus.INVOICED:
        if not invoice_id:
            raise InvalidStatusTransitionError(
                "quote", quote.status.value, target.value, reason="an invoice id is required"
            )
        updates["invoiceId"] = invoice_id

    logger.info(f"Quote {quote.quoteNumber}: {quote.status.value} -> {target.value}")
    return quote.model_copy(update=updates)


def convert_quote_to_invoice(
    quote: Quote,
    invoice_number: str | None = None,
    *,
    issue_date: date | None = None,
    due_date: date | None = None,
    payment_terms: str | None = None,
    invoice_id: str | None = None,
    invoice_count: int = 0,
    now: datetime | date | None = None,
) -> Tuple[Quote, Invoice]:
    """
    Turn a SENT quote into a DRAFT invoice.

    Items are copied as they are, so header and timesheet rows keep their
    kinds and the hours are not billed a second time. Returns the quote
    (now INVOICED and linked) together with the new invoice.
    """
    if quote.convertedToInvoice:
        raise InvalidStatusTransitionError(
            "quote", quote.status.value, QuoteStatus.INVOICED.value,
            reason=f"already converted to invoice {quote.invoiceId}",
        )
    check_quote_transition(quote.status, QuoteStatus.INVOICED)

    invoice = create_invoice(
        quote.items,
        invoice_number,
        issue_date=issue_date or current_date(now),
        due_date=due_date,
        payment_terms=payment_terms or quote.paymentTerms,
        contact_id=quote.contactId,
        template_id=quote.templateId,
        quote_id=quote.id,
        notes=quote.notes,
        invoice_id=invoice_id,
        invoice_count=invoice_count,
        now=now,
    )
    converted = advance_quote_status(quote, QuoteStatus.INVOICED, invoice_id=invoice.id)

    logger.info(f"Quote {quote.quoteNumber} converted to invoice {invoice.invoiceNumber}")
    return converted, invoice


def send_quote_to_client(
    quote: Quote,
    contact: ContactInfo,
    *,
    recipient_email: str | None = None,
    company: CompanyInfo | None = None,
    template_source: str | None = None,
) -> dict:
    """Render, PDF and email a quote. A DRAFT quote moves to SENT afterwards."""
    recipient = recipient_email or contact.email
    if not recipient:
        raise BillingValidationError(f"No email address for {contact.name}")

    company = company or CompanyInfo.from_settings()

    try:
        html_content = render_quote_html(quote, contact, company=company, template_source=template_source)
        pdf_path = generate_pdf(html_content, quote.quoteNumber, prefix="quote")

        body = render_email_body(QUOTE_EMAIL_TEMPLATE, {
            "contactName": contact.name,
            "companyName": company.name,
            "companyEmail": company.email,
            "quoteNumber": quote.quoteNumber,
            "quoteDate": format_document_date(quote.issueDate),
            "expiryDate": format_document_date(quote.expiryDate),
            "total": format_currency(quote.total),
        })

        send_email(
            recipient_email=recipient,
            subject=email_subject("Quote", quote.quoteNumber, company),
            html_body=body,
            attachments=[pdf_path],
        )
    except Exception as e:
        logger.error(f"❌ Failed to send quote {quote.quoteNumber}: {e}")
        raise

    sent = quote
    if quote.status == QuoteStatus.DRAFT:
        sent = advance_quote_status(quote, QuoteStatus.SENT)

    logger.info(f"✅ Quote {quote.quoteNumber} sent to {recipient}")
    return {"quote": sent, "quote_number": quote.quoteNumber, "email": recipient, "pdf": pdf_path}
