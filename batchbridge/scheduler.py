from datetime import UTC, date, datetime
import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from batchbridge.config import Settings
from batchbridge.pipeline import build_runner
from batchbridge.schemas import PipelineResult


logger = logging.getLogger(__name__)

DAILY_IMPORT_JOB_ID = "daily_batch_import"


def scheduled_run_key(run_date: date) -> str:
    return f"scheduled-{run_date.isoformat()}"


def run_scheduled_import(
    settings: Settings,
    session_factory: sessionmaker[Session],
    *,
    run_date: date | None = None,
) -> PipelineResult:
    """Run one import for the given UTC day and log the batch totals."""
    run_key = scheduled_run_key(run_date or datetime.now(UTC).date())
    result = build_runner(settings, session_factory=session_factory).run(run_key=run_key)

    report = result.report
    if report is None:
        logger.error("scheduled import aborted", extra={"run_key": run_key, "error": result.error})
        return result

    summary = {
        "run_key": run_key,
        "status": result.status,
        "total_records": report.total_records,
        "total_batches": report.total_batches,
        "succeeded_batches": report.succeeded_batches,
        "failed_batches": report.failed_batches,
    }
    if report.failed_batches:
        summary["failed_batch_numbers"] = [outcome.batch_number for outcome in report.failures]
        logger.warning("scheduled import finished with failed batches", extra=summary)
    else:
        logger.info("scheduled import finished", extra=summary)
    return result


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        run_scheduled_import,
        "cron",
        args=[settings, session_factory],
        hour=settings.schedule_hour_utc,
        minute=settings.schedule_minute_utc,
        id=DAILY_IMPORT_JOB_ID,
        replace_existing=True,
        # A day's import runs at most once at a time.
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        "batch import scheduled",
        extra={
            "job_id": DAILY_IMPORT_JOB_ID,
            "batch_size": settings.batch_size,
            "at_utc": f"{settings.schedule_hour_utc:02d}:{settings.schedule_minute_utc:02d}",
        },
    )

    if run_now:
        run_scheduled_import(settings, session_factory)

    scheduler.start()
