# services/invoice_service.py
import uuid
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from models.billing_models import CompanyInfo, ContactInfo, Invoice, InvoiceStatus, LineItem, TimesheetEntry
from services.billing_service import build_line_items, compute_totals
from services.document_lifecycle import (
    check_invoice_transition,
    effective_invoice_status,
    ensure_invoice_editable,
    is_fully_paid,
    settled_status,
)
from services.mailer_service import send_email
from services.pdf_service import generate_pdf
from services.render_service import email_subject, render_email_body, render_invoice_html
from utils.date_utils import calculate_due_date, current_date, format_document_date, is_past_due
from utils.document_numbers import generate_invoice_number
from utils.exceptions import BillingValidationError, InvalidStatusTransitionError
from utils.logger import get_logger
from utils.money import format_currency

logger = get_logger(__name__)

INVOICE_EMAIL_TEMPLATE = "invoice-email.html"


def create_invoice(
    items: Sequence[LineItem],
    invoice_number: str | None = None,
    *,
    issue_date: date | None = None,
    due_date: date | None = None,
    payment_terms: str | None = None,
    contact_id: str | None = None,
    project_id: str | None = None,
    template_id: str | None = None,
    quote_id: str | None = None,
    notes: str | None = None,
    timesheets: Optional[Iterable[TimesheetEntry]] = None,
    hourly_rate=None,
    invoice_id: str | None = None,
    invoice_count: int = 0,
    now: datetime | date | None = None,
) -> Invoice:
    """
    Build a new DRAFT invoice with computed totals.

    When ``timesheets`` are given, billable hours are appended as a
    "Timesheet Hours" section at ``hourly_rate``, unless the items already
    carry timesheet rows. The due date is taken from ``due_date`` or derived
    from ``payment_terms``. Without an ``invoice_number`` the next INV-nnnn
    number after ``invoice_count`` stored invoices is used.
    """
    items = build_line_items(items, timesheets, hourly_rate)
    issue_date = issue_date or current_date(now)
    totals = compute_totals(items)

    invoice = Invoice(
        id=invoice_id or str(uuid.uuid4()),
        invoiceNumber=invoice_number or generate_invoice_number(invoice_count),
        contactId=contact_id,
        projectId=project_id,
        templateId=template_id,
        quoteId=quote_id,
        paymentTerms=payment_terms,
        issueDate=issue_date,
        dueDate=calculate_due_date(issue_date, payment_terms, due_date),
        status=InvoiceStatus.DRAFT,
        items=items,
        subtotal=totals.subtotal,
        taxAmount=totals.taxAmount,
        total=totals.total,
        notes=notes,
    )
    logger.info(f"Created invoice {invoice.invoiceNumber} ({len(items)} rows, total {invoice.total})")
    return invoice


def update_invoice(
    invoice: Invoice,
    *,
    items: Optional[Sequence[LineItem]] = None,
    issue_date: date | None = None,
    due_date: date | None = None,
    payment_terms: str | None = None,
    template_id: str | None = None,
    notes: str | None = None,
    timesheets: Optional[Iterable[TimesheetEntry]] = None,
    hourly_rate=None,
) -> Invoice:
    """Edit a DRAFT invoice. Totals are recomputed whenever items change."""
    ensure_invoice_editable(invoice)

    updates = {}
    if items is not None or timesheets is not None:
        base_items = invoice.items if items is None else items
        new_items = build_line_items(base_items, timesheets, hourly_rate)
        totals = compute_totals(new_items)
        updates.update(items=new_items, subtotal=totals.subtotal, taxAmount=totals.taxAmount, total=totals.total)

    if issue_date is not None:
        updates["issueDate"] = issue_date
    if payment_terms is not None:
        updates["paymentTerms"] = payment_terms
    if template_id is not None:
        updates["templateId"] = template_id
    if notes is not None:
        updates["notes"] = notes

    if due_date is not None:
        updates["dueDate"] = due_date
    elif payment_terms is not None or issue_date is not None:
        # "Custom" terms keep whatever due date the invoice already has
        recalculated = calculate_due_date(
            updates.get("issueDate", invoice.issueDate),
            updates.get("paymentTerms", invoice.paymentTerms),
        )
        if recalculated is not None:
            updates["dueDate"] = recalculated

    return invoice.model_copy(update=updates)


def advance_invoice_status(
    invoice: Invoice,
    target: InvoiceStatus | str,
    now: datetime | date | None = None,
) -> Invoice:
    """
    Move an invoice to ``target``.

    Sending an invoice whose due date has already passed lands it in
    OVERDUE, and one with nothing left to pay lands in PAID. PAID requires
    ``paidAmount`` to cover the rounded total; leaving PAID requires
    the opposite. Returns the invoice unchanged when it is already there.
    """
    target = InvoiceStatus(target)
    current = effective_invoice_status(invoice, now)

    if target == current:
        if current == invoice.status:
            return invoice
        return invoice.model_copy(update={"status": current})

    check_invoice_transition(current, target)

    if target == InvoiceStatus.PAID and not is_fully_paid(invoice):
        raise InvalidStatusTransitionError(
            "invoice", current.value, target.value,
            reason=f"only {format_currency(invoice.paidAmount)} of {format_currency(invoice.total)} has been paid",
        )

    if current == InvoiceStatus.PAID and is_fully_paid(invoice):
        raise InvalidStatusTransitionError("invoice", current.value, target.value, reason="invoice is fully paid")

    if target == InvoiceStatus.OVERDUE and not is_past_due(invoice.dueDate, now):
        raise InvalidStatusTransitionError("invoice", current.value, target.value, reason="due date has not passed")

    new_status = target
    if target == InvoiceStatus.SENT:
        # a zero-total invoice is settled the moment it goes out
        new_status = settled_status(invoice, now=now)

    logger.info(f"Invoice {invoice.invoiceNumber}: {current.value} -> {new_status.value}")
    return invoice.model_copy(update={"status": new_status})


def refresh_overdue_invoices(
    invoices: Iterable[Invoice],
    now: datetime | date | None = None,
) -> Tuple[List[Invoice], dict]:
    """
    Find SENT invoices whose due date has passed and move them to OVERDUE.

    Returns the updated invoices (only those that changed) and a summary.
    """
    today = current_date(now)
    updated = []
    skipped = 0

    for invoice in invoices:
        if invoice.status != InvoiceStatus.SENT:
            skipped += 1
            continue

        if effective_invoice_status(invoice, today) == InvoiceStatus.OVERDUE:
            updated.append(invoice.model_copy(update={"status": InvoiceStatus.OVERDUE}))
            logger.info(
                f"Invoice {invoice.invoiceNumber} is overdue (due {format_document_date(invoice.dueDate)})"
            )
        else:
            skipped += 1

    summary = {
        "updated": len(updated),
        "skipped": skipped,
        "message": f"Marked {len(updated)} invoice(s) overdue as of {format_document_date(today)}",
    }
    logger.info(summary["message"])
    return updated, summary


def send_invoice_to_client(
    invoice: Invoice,
    contact: ContactInfo,
    *,
    recipient_email: str | None = None,
    company: CompanyInfo | None = None,
    template_source: str | None = None,
    now: datetime | date | None = None,
) -> dict:
    """
    Render the invoice, turn it into a PDF and email it to the client.

    A DRAFT invoice moves to SENT (or OVERDUE, if already past due) once the
    email has gone out. Resending a sent invoice leaves its status alone.
    """
    recipient = recipient_email or contact.email
    if not recipient:
        raise BillingValidationError(f"No email address for {contact.name}")

    company = company or CompanyInfo.from_settings()

    try:
        html_content = render_invoice_html(
            invoice, contact, company=company, template_source=template_source, now=now
        )
        pdf_path = generate_pdf(html_content, invoice.invoiceNumber, prefix="invoice")

        subject = email_subject("Invoice", invoice.invoiceNumber, company)
        body = render_email_body(INVOICE_EMAIL_TEMPLATE, {
            "contactName": contact.name,
            "companyName": company.name,
            "companyEmail": company.email,
            "invoiceNumber": invoice.invoiceNumber,
            "invoiceDate": format_document_date(invoice.issueDate),
            "dueDate": format_document_date(invoice.dueDate),
            "total": format_currency(invoice.total),
            "balanceDue": format_currency(invoice.balance_due),
        })

        send_email(
            recipient_email=recipient,
            subject=subject,
            html_body=body,
            attachments=[pdf_path],
        )
    except Exception as e:
        logger.error(f"❌ Failed to send invoice {invoice.invoiceNumber}: {e}")
        raise

    sent = invoice
    if invoice.status == InvoiceStatus.DRAFT:
        sent = advance_invoice_status(invoice, InvoiceStatus.SENT, now)

    logger.info(f"✅ Invoice {invoice.invoiceNumber} sent to {recipient}")
    return {"invoice": sent, "invoice_number": invoice.invoiceNumber, "email": recipient, "pdf": pdf_path}
