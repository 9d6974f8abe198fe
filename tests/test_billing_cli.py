"""Tests for the command line entry points."""

import json
import logging

from billing_cli import main
from utils.logger import NAMESPACE, set_log_level


def _write_json(path, payload) -> str:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _invoice_record(invoice_id="inv-1", due_date="2026-02-09", status="SENT") -> dict:
    return {
        "id": invoice_id,
        "invoiceNumber": f"INV-{invoice_id}",
        "issueDate": "2026-01-10",
        "dueDate": due_date,
        "status": status,
        "items": [{"type": "ITEM", "name": "Widget", "quantity": "2", "rate": "100", "taxRate": "10"}],
        "subtotal": "200",
        "taxAmount": "20",
        "total": "220",
    }


def test_no_command_prints_help(capsys) -> None:
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_totals(tmp_path, capsys) -> None:
    items_file = _write_json(tmp_path / "items.json", [
        {"type": "HEADER", "name": "Goods"},
        {"type": "ITEM", "name": "Widget", "quantity": 2, "rate": 100, "taxRate": 10},
    ])

    assert main(["totals", items_file]) == 0
    assert json.loads(capsys.readouterr().out) == {"subtotal": "200.00", "taxAmount": "20.00", "total": "220.00"}


def test_totals_reports_bad_input(tmp_path, capsys) -> None:
    items_file = _write_json(tmp_path / "items.json", [{"name": "Widget", "quantity": -1}])
    assert main(["totals", items_file]) == 1
    assert "Error" in capsys.readouterr().err


def test_render_invoice_with_custom_template(tmp_path) -> None:
    document = _write_json(tmp_path / "invoice.json", {
        "invoice": _invoice_record(),
        "contact": {"name": "Acme Traders"},
        "company": {"name": "Test Studio"},
    })
    template = tmp_path / "mini.html"
    template.write_text("{{companyName}} bills {{contactName}} {{total}}", encoding="utf-8")
    out = tmp_path / "invoice.html"

    assert main(["render", "invoice", document, "--template", str(template), "--out", str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "Test Studio bills Acme Traders ₹220.00"


def test_render_quote_to_stdout(tmp_path, capsys) -> None:
    record = _invoice_record()
    record.pop("dueDate")
    record["quoteNumber"] = "QUO-0001"
    record.pop("invoiceNumber")
    document = _write_json(tmp_path / "quote.json", {"quote": record, "contact": {"name": "Acme Traders"}})

    assert main(["render", "quote", document]) == 0
    assert "QUO-0001" in capsys.readouterr().out


def test_render_missing_contact_fails(tmp_path) -> None:
    document = _write_json(tmp_path / "invoice.json", {"invoice": _invoice_record()})
    assert main(["render", "invoice", document]) == 1


def test_sweep_updates_file(tmp_path, capsys) -> None:
    invoices_file = _write_json(tmp_path / "invoices.json", [
        _invoice_record("inv-1", due_date="2026-02-09"),
        _invoice_record("inv-2", due_date="2026-03-31"),
        _invoice_record("inv-3", due_date="2026-01-01", status="PAID"),
    ])

    assert main(["sweep", invoices_file, "--today", "2026-02-20", "--write"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["updated"] == 1
    assert summary["saved"] == 1

    stored = json.loads((tmp_path / "invoices.json").read_text(encoding="utf-8"))
    assert [record["status"] for record in stored] == ["OVERDUE", "SENT", "PAID"]


def test_verbose_flag_turns_on_debug_logging(tmp_path) -> None:
    namespace = logging.getLogger(NAMESPACE)
    previous = namespace.level
    items_file = _write_json(tmp_path / "items.json", [{"name": "Widget", "quantity": 1, "rate": 5}])
    try:
        assert main(["--verbose", "totals", items_file]) == 0
        assert namespace.level == logging.DEBUG
    finally:
        set_log_level(previous)
