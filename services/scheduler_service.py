"""
Background Scheduler Service for Invoice Management

This service runs scheduled tasks automatically:
- Moves SENT invoices past their due date to OVERDUE, daily at OVERDUE_SWEEP_HOUR

Invoices are not stored here. The caller hands in two callables:
``load_invoices()`` returning the invoices to check, and
``save_invoice(invoice)`` persisting one that changed.
"""

from datetime import date, datetime
from typing import Callable, Iterable

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from configs.settings import OVERDUE_SWEEP_HOUR, TIMEZONE
from models.billing_models import Invoice
from services.invoice_service import refresh_overdue_invoices
from utils.logger import get_logger

logger = get_logger(__name__)

OVERDUE_JOB_ID = "update_overdue_invoices"

# Global scheduler instance
scheduler = None


def update_overdue_invoices_job(
    load_invoices: Callable[[], Iterable[Invoice]],
    save_invoice: Callable[[Invoice], None],
    now: datetime | date | None = None,
) -> dict:
    """
    Scheduled job that runs daily to update all overdue invoices.
    Errors are logged, not raised, so one bad run does not stop the scheduler.
    """
    logger.info("🕐 Running scheduled task: Update Overdue Invoices")
    try:
        updated, summary = refresh_overdue_invoices(load_invoices(), now)

        saved = 0
        for invoice in updated:
            try:
                save_invoice(invoice)
                saved += 1
            except Exception as e:
                logger.error(f"❌ Could not save overdue invoice {invoice.invoiceNumber}: {e}")

        summary["saved"] = saved
        logger.info(f"✅ Scheduled task completed: {summary['updated']} updated, {summary['skipped']} skipped")
        return summary

    except Exception as e:
        logger.exception(f"❌ Error in scheduled task 'update_overdue_invoices_job': {e}")
        return {"updated": 0, "skipped": 0, "saved": 0, "message": f"Overdue sweep failed: {e}"}


def start_scheduler(
    load_invoices: Callable[[], Iterable[Invoice]],
    save_invoice: Callable[[Invoice], None],
    run_on_startup: bool = False,
):
    """
    Initializes and starts the background scheduler.
    Schedules the overdue invoice update to run daily at OVERDUE_SWEEP_HOUR in TIMEZONE.

    Args:
        load_invoices: Returns the invoices to check.
        save_invoice: Persists one updated invoice.
        run_on_startup: If True, runs the update job immediately on startup.
    """
    global scheduler

    if scheduler is not None:
        logger.warning("⚠️ Scheduler already running")
        return scheduler

    if run_on_startup:
        logger.info("Running overdue invoice update on startup...")
        update_overdue_invoices_job(load_invoices, save_invoice)

    scheduler = BackgroundScheduler(timezone=pytz.timezone(TIMEZONE))

    scheduler.add_job(
        func=update_overdue_invoices_job,
        args=[load_invoices, save_invoice],
        trigger=CronTrigger(hour=OVERDUE_SWEEP_HOUR, minute=0, timezone=TIMEZONE),
        id=OVERDUE_JOB_ID,
        name="Update Overdue Invoices",
        replace_existing=True,
        misfire_grace_time=3600,  # If missed, can run within 1 hour
    )

    scheduler.start()

    logger.info("✅ Background Scheduler Started Successfully")
    for job in scheduler.get_jobs():
        logger.info(f"   - {job.name}: Next run at {job.next_run_time}")

    return scheduler


def stop_scheduler():
    """
    Gracefully stops the background scheduler.
    Should be called on application shutdown.
    """
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=True)
        scheduler = None
        logger.info("✅ Background Scheduler stopped")
    else:
        logger.warning("⚠️ Scheduler was not running")


def get_scheduler_status():
    """
    Returns the current status of the scheduler and scheduled jobs.
    Useful for health checks and monitoring.
    """
    if scheduler is None:
        return {
            "status": "stopped",
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": str(job.next_run_time),
            "trigger": str(job.trigger)
        })

    return {
        "status": "running",
        "timezone": str(scheduler.timezone),
        "jobs": jobs
    }
