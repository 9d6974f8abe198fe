"""
Status rules for quotes and invoices.

Quote:   DRAFT -> SENT -> ACCEPTED | REJECTED
         SENT -> INVOICED (one way, links the produced invoice)
Invoice: DRAFT -> SENT -> OVERDUE (automatic once the due date has passed)
         SENT | OVERDUE -> PAID (only when fully paid)
         PAID -> SENT | OVERDUE (only when a payment is reduced or removed)

Only DRAFT documents may have their items edited, and only DRAFT invoices
may be deleted.
"""

from datetime import date, datetime
from decimal import Decimal

from models.billing_models import Invoice, InvoiceStatus, Quote, QuoteStatus
from utils.date_utils import is_past_due
from utils.exceptions import DocumentNotEditableError, InvalidStatusTransitionError
from utils.money import round_currency

QUOTE_TRANSITIONS = {
    QuoteStatus.DRAFT: {QuoteStatus.SENT},
    QuoteStatus.SENT: {QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.INVOICED},
    QuoteStatus.ACCEPTED: set(),
    QuoteStatus.REJECTED: set(),
    QuoteStatus.INVOICED: set(),
}

INVOICE_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT},
    InvoiceStatus.SENT: {InvoiceStatus.OVERDUE, InvoiceStatus.PAID},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID},
    InvoiceStatus.PAID: {InvoiceStatus.SENT, InvoiceStatus.OVERDUE},
}


def resolve_unpaid_status(due_date: date | None, now: datetime | date | None = None) -> InvoiceStatus:
    """SENT or OVERDUE for an invoice that is out of draft and not fully paid."""
    return InvoiceStatus.OVERDUE if is_past_due(due_date, now) else InvoiceStatus.SENT


def is_fully_paid(invoice: Invoice, paid_amount: Decimal | None = None) -> bool:
    """True once payments cover the total as printed, i.e. rounded to the paisa."""
    paid = invoice.paidAmount if paid_amount is None else paid_amount
    return paid >= round_currency(invoice.total)


def settled_status(
    invoice: Invoice,
    paid_amount: Decimal | None = None,
    now: datetime | date | None = None,
) -> InvoiceStatus:
    """PAID when fully paid, otherwise SENT or OVERDUE by due date."""
    if is_fully_paid(invoice, paid_amount):
        return InvoiceStatus.PAID
    return resolve_unpaid_status(invoice.dueDate, now)


def effective_invoice_status(invoice: Invoice, now: datetime | date | None = None) -> InvoiceStatus:
    """The status an invoice has right now; a SENT invoice past its due date is OVERDUE."""
    if invoice.status == InvoiceStatus.SENT:
        return resolve_unpaid_status(invoice.dueDate, now)
    return invoice.status


def check_quote_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    if target not in QUOTE_TRANSITIONS[current]:
        raise InvalidStatusTransitionError("quote", current.value, target.value)


def check_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    if target not in INVOICE_TRANSITIONS[current]:
        raise InvalidStatusTransitionError("invoice", current.value, target.value)


def ensure_quote_editable(quote: Quote) -> None:
    if quote.status != QuoteStatus.DRAFT:
        raise DocumentNotEditableError(
            f"Quote {quote.quoteNumber or quote.id} is {quote.status.value}; only draft quotes can be edited"
        )


def ensure_invoice_editable(invoice: Invoice) -> None:
    if invoice.status != InvoiceStatus.DRAFT:
        raise DocumentNotEditableError(
            f"Invoice {invoice.invoiceNumber or invoice.id} is {invoice.status.value}; only draft invoices can be edited"
        )


def ensure_invoice_deletable(invoice: Invoice) -> None:
    if invoice.status != InvoiceStatus.DRAFT:
        raise DocumentNotEditableError("Cannot delete invoice that has been sent or paid")
