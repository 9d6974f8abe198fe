# services/payment_service.py
"""
Payment ledger for invoices.

Every function takes the invoice and its current list of payments and
returns new objects; nothing is stored here. ``paidAmount`` on an invoice
is always derived from the PAID payments recorded against it, so callers
must persist the returned invoice together with the payment change and
serialize ledger updates per invoice.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Tuple

from models.billing_models import (
    CompanyInfo,
    ContactInfo,
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentEdits,
    PaymentStatus,
)
from services.document_lifecycle import effective_invoice_status, settled_status
from services.mailer_service import send_email
from services.pdf_service import generate_pdf
from services.render_service import email_subject, render_email_body, render_receipt_html
from utils.date_utils import current_date, format_document_date
from utils.document_numbers import generate_payment_number
from utils.exceptions import (
    BillingValidationError,
    MissingTdsAmountError,
    OverpaymentError,
    PaymentNotFoundError,
    PaymentRejectedError,
)
from utils.logger import get_logger
from utils.money import ZERO, add, format_currency, round_currency, subtract

logger = get_logger(__name__)

RECEIPT_EMAIL_TEMPLATE = "receipt-email.html"

PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.OVERDUE)


def _as_edits(edits) -> PaymentEdits:
    if isinstance(edits, PaymentEdits):
        return edits
    return PaymentEdits.model_validate(edits or {})


def _payments_for(invoice: Invoice, payments: Iterable[Payment]) -> List[Payment]:
    return [payment for payment in payments if payment.invoiceId == invoice.id]


def _find_payment(invoice: Invoice, payments: Iterable[Payment], payment_id: str) -> Payment:
    for payment in _payments_for(invoice, payments):
        if payment.id == payment_id:
            return payment
    raise PaymentNotFoundError(payment_id, invoice.id)


def paid_total(invoice: Invoice, payments: Iterable[Payment], exclude_id: str | None = None) -> Decimal:
    """Sum of PAID payments recorded against ``invoice``."""
    total = ZERO
    for payment in _payments_for(invoice, payments):
        if payment.status == PaymentStatus.PAID and payment.id != exclude_id:
            total = add(total, payment.amountReceived)
    return total


def _validate_tds(tax_deducted: bool, tds_amount) -> None:
    if tax_deducted and (tds_amount is None or tds_amount <= ZERO):
        logger.warning("Payment rejected: tax deducted without a TDS amount")
        raise MissingTdsAmountError("TDS amount is required when tax is deducted")


def _validate_amount(invoice: Invoice, amount: Decimal, already_paid: Decimal) -> None:
    balance_due = round_currency(subtract(invoice.total, already_paid))
    if amount > balance_due:
        logger.warning(
            f"Payment of {amount} rejected on invoice {invoice.invoiceNumber}: balance due is {balance_due}"
        )
        raise OverpaymentError(f"Amount received cannot exceed balance due ({format_currency(balance_due)})")


def recompute_invoice(
    invoice: Invoice,
    payments: Iterable[Payment],
    now: datetime | date | None = None,
) -> Invoice:
    """
    Rebuild ``paidAmount`` and status from the payment ledger.

    PAID once the invoice is covered, otherwise SENT or OVERDUE depending on
    the due date. A DRAFT invoice stays DRAFT.
    """
    paid_amount = paid_total(invoice, payments)

    if invoice.status == InvoiceStatus.DRAFT:
        status = InvoiceStatus.DRAFT
    else:
        status = settled_status(invoice, paid_amount, now)

    if status != invoice.status:
        logger.info(f"Invoice {invoice.invoiceNumber}: {invoice.status.value} -> {status.value}")

    return invoice.model_copy(update={"paidAmount": paid_amount, "status": status})


def apply_payment(
    invoice: Invoice,
    payments: Iterable[Payment],
    edits,
    *,
    payment_id: str | None = None,
    payment_count: int | None = None,
    now: datetime | date | None = None,
) -> Tuple[Invoice, Payment]:
    """
    Record a new payment against a SENT or OVERDUE invoice.

    The payment starts as DRAFT unless ``edits`` marks it PAID, in which
    case the invoice's paidAmount and status are recomputed. Returns the
    (possibly unchanged) invoice and the new payment. Without a
    ``paymentNumber`` in ``edits`` the next PAY-nnnnnn number after
    ``payment_count`` (default: the payments passed in) is assigned.
    """
    edits = _as_edits(edits)
    payments = list(payments)

    if invoice.id is None:
        raise BillingValidationError("Invoice must be saved before payments can be recorded")

    status = effective_invoice_status(invoice, now)
    if status not in PAYABLE_STATUSES:
        logger.warning(f"Payment rejected on invoice {invoice.invoiceNumber}: invoice is {status.value}")
        raise PaymentRejectedError(
            f"Payments can only be recorded against sent or overdue invoices (invoice is {status.value})"
        )

    if edits.amountReceived is None:
        raise PaymentRejectedError("Amount received is required")

    _validate_amount(invoice, edits.amountReceived, invoice.paidAmount)
    _validate_tds(bool(edits.taxDeducted), edits.tdsAmount)

    fields = edits.model_dump(exclude_none=True)
    fields.setdefault("status", PaymentStatus.DRAFT)
    fields.setdefault("paymentDate", current_date(now))
    if payment_count is None:
        payment_count = len(payments)
    fields.setdefault("paymentNumber", generate_payment_number(payment_count))

    payment = Payment(id=payment_id or str(uuid.uuid4()), invoiceId=invoice.id, **fields)
    logger.info(
        f"Recorded {payment.status.value} payment {payment.paymentNumber or payment.id} "
        f"of {payment.amountReceived} on invoice {invoice.invoiceNumber}"
    )

    if payment.status == PaymentStatus.PAID:
        invoice = recompute_invoice(invoice, payments + [payment], now)
    return invoice, payment


def update_payment(
    invoice: Invoice,
    payments: Iterable[Payment],
    payment_id: str,
    edits,
    now: datetime | date | None = None,
) -> Tuple[Invoice, Payment]:
    """
    Edit a recorded payment.

    DRAFT payments may be changed freely or marked PAID. A PAID payment can
    only be moved back to DRAFT. The invoice is always recomputed from the
    whole ledger afterwards.
    """
    edits = _as_edits(edits)
    payments = list(payments)
    existing = _find_payment(invoice, payments, payment_id)

    changes = {
        field: value
        for field, value in edits.model_dump(exclude_none=True).items()
        if getattr(existing, field) != value
    }

    if existing.status == PaymentStatus.PAID and changes and changes != {"status": PaymentStatus.DRAFT}:
        logger.warning(f"Edit rejected on paid payment {payment_id}")
        raise PaymentRejectedError("A paid payment can only be moved back to draft")

    updated = existing.model_copy(update=changes)
    _validate_tds(updated.taxDeducted, updated.tdsAmount)

    if updated.status == PaymentStatus.PAID:
        _validate_amount(invoice, updated.amountReceived, paid_total(invoice, payments, exclude_id=payment_id))

    ledger = [updated if payment.id == payment_id else payment for payment in payments]
    logger.info(f"Updated payment {updated.paymentNumber or updated.id} ({updated.status.value})")
    return recompute_invoice(invoice, ledger, now), updated


def remove_payment(
    invoice: Invoice,
    payments: Iterable[Payment],
    payment_id: str,
    now: datetime | date | None = None,
) -> Invoice:
    """Delete a payment from the ledger and return the recomputed invoice."""
    payments = list(payments)
    removed = _find_payment(invoice, payments, payment_id)

    remaining = [payment for payment in payments if payment.id != removed.id]
    logger.info(f"Removed payment {removed.paymentNumber or removed.id} from invoice {invoice.invoiceNumber}")
    return recompute_invoice(invoice, remaining, now)


def generate_payment_receipt(
    invoice: Invoice,
    payment: Payment,
    contact: ContactInfo,
    *,
    recipient_email: str | None = None,
    company: CompanyInfo | None = None,
    template_source: str | None = None,
) -> dict:
    """
    Generates a payment receipt PDF and emails it to the client.
    Reuses the generic PDF and mailer services.
    """
    if payment.status != PaymentStatus.PAID:
        raise PaymentRejectedError("Receipts are only issued for paid payments")

    recipient = recipient_email or contact.email
    if not recipient:
        raise BillingValidationError(f"No email address for {contact.name}")

    company = company or CompanyInfo.from_settings()
    receipt_number = payment.paymentNumber or payment.id

    logger.info(f"📄 Generating receipt {receipt_number} for invoice {invoice.invoiceNumber}")

    try:
        html_content = render_receipt_html(
            invoice, payment, contact, company=company, template_source=template_source
        )
        pdf_path = generate_pdf(html_content, receipt_number, prefix="receipt")

        body = render_email_body(RECEIPT_EMAIL_TEMPLATE, {
            "contactName": contact.name,
            "companyName": company.name,
            "companyEmail": company.email,
            "invoiceNumber": invoice.invoiceNumber,
            "receiptNumber": receipt_number,
            "amountPaid": format_currency(payment.amountReceived),
            "paymentMode": payment.paymentMode.value,
            "paymentDate": format_document_date(payment.paymentDate),
        })

        send_email(
            recipient_email=recipient,
            subject=email_subject("Payment Receipt", receipt_number, company),
            html_body=body,
            attachments=[pdf_path],
        )
    except Exception as e:
        logger.error(f"❌ Failed to send payment receipt {receipt_number}: {e}")
        raise

    logger.info(f"✅ Payment receipt {receipt_number} emailed to {recipient}")
    return {"status": "success", "receipt_number": receipt_number, "receipt_pdf": pdf_path, "email": recipient}
