#!/usr/bin/env python3
"""
Command line entry points for the billing core.

    billing_cli.py [-v] totals ITEMS.json
    billing_cli.py render invoice DOC.json [--template FILE] [--out FILE] [--pdf]
    billing_cli.py render quote DOC.json [--template FILE] [--out FILE] [--pdf]
    billing_cli.py sweep INVOICES.json [--today YYYY-MM-DD] [--write]

DOC.json holds {"invoice": {...}} or {"quote": {...}} next to a "contact"
object and, optionally, a "company" object.
"""

import argparse
import json
import sys
from collections.abc import Sequence

import pendulum
from pydantic import ValidationError

from models.billing_models import CompanyInfo, ContactInfo, Invoice, LineItem, Quote
from services.billing_service import compute_totals
from services.pdf_service import generate_pdf
from services.render_service import render_invoice_html, render_quote_html
from services.scheduler_service import update_overdue_invoices_job
from utils.exceptions import BillingError
from utils.logger import get_logger, set_log_level
from utils.money import round_currency

logger = get_logger(__name__)


def _read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_output(content: str, out_path: str | None) -> None:
    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(content)
        print(f"✅ Wrote {out_path}")
    else:
        print(content)


def _cmd_totals(args: argparse.Namespace) -> int:
    items = [LineItem.model_validate(item) for item in _read_json(args.items_file)]
    totals = compute_totals(items)
    print(json.dumps({
        "subtotal": str(round_currency(totals.subtotal)),
        "taxAmount": str(round_currency(totals.taxAmount)),
        "total": str(round_currency(totals.total)),
    }, indent=2))
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    document = _read_json(args.document_file)
    contact = ContactInfo.model_validate(document["contact"])
    company = CompanyInfo.model_validate(document["company"]) if document.get("company") else None

    template_source = None
    if args.template:
        with open(args.template, "r", encoding="utf-8") as f:
            template_source = f.read()

    if args.kind == "invoice":
        invoice = Invoice.model_validate(document["invoice"])
        html_content = render_invoice_html(invoice, contact, company=company, template_source=template_source)
        number = invoice.invoiceNumber
    else:
        quote = Quote.model_validate(document["quote"])
        html_content = render_quote_html(quote, contact, company=company, template_source=template_source)
        number = quote.quoteNumber

    if args.pdf:
        pdf_path = generate_pdf(html_content, number, prefix=args.kind)
        print(f"✅ PDF generated: {pdf_path}")
        return 0

    _write_output(html_content, args.out)
    return 0


def _cmd_sweep(args: argparse.Namespace) -> int:
    records = _read_json(args.invoices_file)
    invoices = [Invoice.model_validate(record) for record in records]
    changed = {}

    def save_invoice(invoice: Invoice) -> None:
        changed[invoice.id] = invoice

    today = pendulum.parse(args.today).date() if args.today else None
    summary = update_overdue_invoices_job(lambda: invoices, save_invoice, now=today)

    if args.write and changed:
        updated = [changed.get(invoice.id, invoice).model_dump(mode="json") for invoice in invoices]
        with open(args.invoices_file, "w", encoding="utf-8") as f:
            json.dump(updated, f, indent=2)

    print(json.dumps(summary, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quote, invoice and payment document tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    totals_parser = subparsers.add_parser("totals", help="Compute subtotal, tax and total for line items")
    totals_parser.add_argument("items_file", help="JSON file with a list of line items")

    render_parser = subparsers.add_parser("render", help="Render an invoice or quote to HTML or PDF")
    render_parser.add_argument("kind", choices=["invoice", "quote"])
    render_parser.add_argument("document_file", help="JSON file with the document and its contact")
    render_parser.add_argument("--template", help="Template file to use instead of the configured one")
    render_parser.add_argument("--out", help="Write HTML here instead of stdout")
    render_parser.add_argument("--pdf", action="store_true", help="Write a PDF to OUTPUT_DIR")

    sweep_parser = subparsers.add_parser("sweep", help="Mark sent invoices past their due date as overdue")
    sweep_parser.add_argument("invoices_file", help="JSON file with a list of invoices")
    sweep_parser.add_argument("--today", help="Business date to sweep as of (YYYY-MM-DD)")
    sweep_parser.add_argument("--write", action="store_true", help="Save updated invoices back to the file")

    return parser


COMMANDS = {
    "totals": _cmd_totals,
    "render": _cmd_render,
    "sweep": _cmd_sweep,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level("DEBUG")

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except (BillingError, ValidationError, ValueError, KeyError, OSError, RuntimeError) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
