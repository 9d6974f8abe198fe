from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from configs.settings import CURRENCY_SYMBOL, TIMESHEET_SECTION_TITLE
from models.billing_models import DocumentTotals, LineItem, LineItemKind, TimesheetEntry
from utils.date_utils import format_document_date
from utils.exceptions import BillingValidationError, EmptyDocumentError
from utils.logger import get_logger
from utils.money import ZERO, add, multiply, percentage_of, round_currency, safe_divide, to_decimal

logger = get_logger(__name__)


@dataclass(frozen=True)
class BillableHoursSummary:
    total_hours: Decimal
    billable_hours: Decimal
    billable_cost: Decimal
    billable_share: Decimal   # billable_hours / total_hours, 0 when nothing was logged
    hourly_rate: Decimal


def line_amount(item: LineItem) -> Decimal:
    """Unrounded ``quantity × unitRate``; zero for headers."""
    if item.is_header:
        return ZERO
    return multiply(item.quantity, item.unitRate)


def line_tax(item: LineItem) -> Decimal:
    if item.is_header:
        return ZERO
    return percentage_of(line_amount(item), item.taxRatePercent)


def compute_totals(items: Iterable[LineItem]) -> DocumentTotals:
    """
    Subtotal, tax and total for a list of line items.

    Header rows are skipped. Sums keep full precision, so
    ``total == subtotal + taxAmount`` holds exactly.
    """
    subtotal = ZERO
    tax_amount = ZERO

    for item in items:
        if item.is_header:
            continue
        subtotal = add(subtotal, line_amount(item))
        tax_amount = add(tax_amount, line_tax(item))

    return DocumentTotals(subtotal=subtotal, taxAmount=tax_amount, total=add(subtotal, tax_amount))


def has_timesheet_entries(items: Iterable[LineItem]) -> bool:
    return any(item.kind == LineItemKind.TIMESHEET for item in items)


def _bucket_hours_by_date(timesheets: Iterable[TimesheetEntry]) -> dict:
    buckets = {}
    for entry in timesheets:
        if not entry.billable or entry.hours <= ZERO:
            continue
        bucket = buckets.setdefault(entry.workDate, {"hours": ZERO, "descriptions": []})
        bucket["hours"] = add(bucket["hours"], entry.hours)
        if entry.description:
            bucket["descriptions"].append(entry.description)
    return dict(sorted(buckets.items()))


def expand_with_timesheet_entries(
    items: Sequence[LineItem],
    timesheets: Iterable[TimesheetEntry],
    hourly_rate,
) -> List[LineItem]:
    """
    Append a "Timesheet Hours" header and one TIMESHEET row per work date.

    Does nothing when the items already contain a TIMESHEET row, so retrying
    a document build never bills the same hours twice.
    """
    expanded = list(items)

    if has_timesheet_entries(expanded):
        logger.debug("Timesheet rows already present; skipping expansion")
        return expanded

    buckets = _bucket_hours_by_date(timesheets)
    if not buckets:
        return expanded

    rate = to_decimal(hourly_rate)
    expanded.append(LineItem(kind=LineItemKind.HEADER, name=TIMESHEET_SECTION_TITLE))

    for work_date, bucket in buckets.items():
        hours = bucket["hours"]
        description = "; ".join(bucket["descriptions"]) or f"{hours} hours @ {CURRENCY_SYMBOL}{rate}/hr"
        expanded.append(LineItem(
            kind=LineItemKind.TIMESHEET,
            name=f"Work on {format_document_date(work_date)}",
            description=description,
            quantity=hours,
            unitRate=rate,
            taxRatePercent=ZERO,
        ))

    logger.info(f"Added {len(buckets)} timesheet row(s) at {rate}/hr")
    return expanded


def build_line_items(
    items: Iterable,
    timesheets: Optional[Iterable[TimesheetEntry]] = None,
    hourly_rate=None,
    document: str = "invoice",
) -> List[LineItem]:
    """
    Validate the rows of a new or edited document, adding timesheet rows
    when a time source is given. Raw dicts are accepted in place of LineItem.
    """
    rows = [item if isinstance(item, LineItem) else LineItem.model_validate(item) for item in items]

    if timesheets is not None:
        if hourly_rate is None:
            raise BillingValidationError(f"An hourly rate is required to bill timesheet hours on a {document}")
        rows = expand_with_timesheet_entries(rows, timesheets, hourly_rate)

    if not rows:
        raise EmptyDocumentError(f"A {document} needs at least one line item")
    return rows


def summarize_billable_hours(timesheets: Iterable[TimesheetEntry], hourly_rate) -> BillableHoursSummary:
    """Hours logged for a project and the share of them that can be billed."""
    total_hours = ZERO
    billable_hours = ZERO
    for entry in timesheets:
        total_hours = add(total_hours, entry.hours)
        if entry.billable:
            billable_hours = add(billable_hours, entry.hours)

    rate = to_decimal(hourly_rate)
    return BillableHoursSummary(
        total_hours=total_hours,
        billable_hours=billable_hours,
        billable_cost=multiply(billable_hours, rate),
        billable_share=safe_divide(billable_hours, total_hours),
        hourly_rate=rate,
    )


def convert_number_to_words(amount) -> str:
    """
    Convert an amount to Indian numbering system words.
    Returns format: "Indian Rupee One Thousand Five Hundred Only"
    """
    ones = ['', 'One', 'Two', 'Three', 'Four', 'Five', 'Six', 'Seven', 'Eight', 'Nine']
    teens = ['Ten', 'Eleven', 'Twelve', 'Thirteen', 'Fourteen', 'Fifteen',
             'Sixteen', 'Seventeen', 'Eighteen', 'Nineteen']
    tens = ['', '', 'Twenty', 'Thirty', 'Forty', 'Fifty', 'Sixty', 'Seventy', 'Eighty', 'Ninety']

    def convert_hundreds(n: int) -> str:
        result = ''
        if n >= 100:
            result += ones[n // 100] + ' Hundred '
            n %= 100
        if n >= 20:
            result += tens[n // 10] + ' '
            n %= 10
        elif n >= 10:
            result += teens[n - 10] + ' '
            return result.strip()
        if n > 0:
            result += ones[n] + ' '
        return result.strip()

    def convert_integer(n: int) -> str:
        result = ''

        crores = n // 10000000
        if crores > 0:
            # Past 99 crore the crore count is itself spelled out
            result += convert_integer(crores) + ' Crore '
            n %= 10000000

        lakhs = n // 100000
        if lakhs > 0:
            result += convert_hundreds(lakhs) + ' Lakh '
            n %= 100000

        thousands = n // 1000
        if thousands > 0:
            result += convert_hundreds(thousands) + ' Thousand '
            n %= 1000

        if n > 0:
            result += convert_hundreds(n) + ' '

        return result.strip()

    value = abs(round_currency(amount))
    integer_part = int(value)
    paise = int((value - integer_part) * 100)

    words = convert_integer(integer_part) or 'Zero'
    words = 'Indian Rupee ' + words

    if paise > 0:
        words += ' and ' + convert_hundreds(paise) + ' Paise'

    return words + ' Only'
