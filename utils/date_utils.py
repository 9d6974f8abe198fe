import pendulum
from datetime import date, datetime

from configs.settings import TIMEZONE

DOCUMENT_DATE_FORMAT = "DD/MM/YYYY"

# Days added to the issue date for each payment term. "Custom" has no entry.
PAYMENT_TERM_DAYS = {
    "Due on Receipt": 0,
    "Net 15": 15,
    "Net 30": 30,
    "Net 45": 45,
    "Net 60": 60,
}


def current_date(now: datetime | date | None = None) -> date:
    """
    The business date used for overdue checks.
    Defaults to today in the configured timezone.
    """
    if now is None:
        return pendulum.now(TIMEZONE).date()
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            return pendulum.instance(now).in_timezone(TIMEZONE).date()
        return now.date()
    return now


def is_past_due(due_date: date | None, now: datetime | date | None = None) -> bool:
    """A document with no due date is never past due. The due date itself is not overdue."""
    if due_date is None:
        return False
    return due_date < current_date(now)


def calculate_due_date(issue_date: date, payment_terms: str | None = None, provided: date | None = None) -> date | None:
    """
    Resolve a due (or expiry) date.
    An explicitly provided date always wins; otherwise payment terms decide.
    """
    if provided is not None:
        return provided

    if not payment_terms or payment_terms not in PAYMENT_TERM_DAYS:
        return None

    issued = pendulum.date(issue_date.year, issue_date.month, issue_date.day)
    due = issued.add(days=PAYMENT_TERM_DAYS[payment_terms])
    return date(due.year, due.month, due.day)


def format_document_date(value: date | datetime | str | None) -> str:
    """Format a date the way it is printed on documents (DD/MM/YYYY)."""
    if value is None or value == "":
        return ""

    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value, tz=TIMEZONE)
        except Exception:
            # Not a date string; print it untouched
            return value
        return parsed.format(DOCUMENT_DATE_FORMAT)

    if isinstance(value, datetime):
        return pendulum.instance(value).format(DOCUMENT_DATE_FORMAT)

    return pendulum.date(value.year, value.month, value.day).format(DOCUMENT_DATE_FORMAT)
