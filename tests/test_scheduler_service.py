"""Tests for the overdue sweep job and scheduler lifecycle."""

from datetime import date

import pytest

from models.billing_models import InvoiceStatus
from services import scheduler_service
from services.scheduler_service import (
    get_scheduler_status,
    start_scheduler,
    stop_scheduler,
    update_overdue_invoices_job,
)


@pytest.fixture
def scheduler_cleanup():
    yield
    if scheduler_service.scheduler is not None:
        stop_scheduler()


def test_job_saves_only_changed_invoices(sent_invoice) -> None:
    current = sent_invoice.model_copy(update={"id": "inv-2", "dueDate": date(2026, 12, 31)})
    saved = []

    summary = update_overdue_invoices_job(lambda: [sent_invoice, current], saved.append, now=date(2026, 2, 10))

    assert [invoice.id for invoice in saved] == ["inv-1"]
    assert saved[0].status == InvoiceStatus.OVERDUE
    assert summary["updated"] == 1
    assert summary["skipped"] == 1
    assert summary["saved"] == 1


def test_job_keeps_going_when_a_save_fails(sent_invoice) -> None:
    other = sent_invoice.model_copy(update={"id": "inv-2", "invoiceNumber": "INV-0002"})
    saved = []

    def flaky_save(invoice):
        if invoice.id == "inv-1":
            raise OSError("disk full")
        saved.append(invoice)

    summary = update_overdue_invoices_job(lambda: [sent_invoice, other], flaky_save, now=date(2026, 2, 10))

    assert [invoice.id for invoice in saved] == ["inv-2"]
    assert summary["updated"] == 2
    assert summary["saved"] == 1


def test_job_reports_loader_failures() -> None:
    def broken_loader():
        raise RuntimeError("store offline")

    summary = update_overdue_invoices_job(broken_loader, lambda invoice: None)
    assert summary["updated"] == 0
    assert "store offline" in summary["message"]


def test_scheduler_start_status_stop(scheduler_cleanup) -> None:
    assert get_scheduler_status() == {"status": "stopped", "jobs": []}

    started = start_scheduler(lambda: [], lambda invoice: None)
    assert start_scheduler(lambda: [], lambda invoice: None) is started

    status = get_scheduler_status()
    assert status["status"] == "running"
    assert [job["id"] for job in status["jobs"]] == ["update_overdue_invoices"]
    assert "Asia/Kolkata" in status["timezone"]

    stop_scheduler()
    assert scheduler_service.scheduler is None
