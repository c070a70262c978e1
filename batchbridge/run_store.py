from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from batchbridge.db_models import BatchResult, ImportRun, utc_now
from batchbridge.schemas import RUN_FAILED, ImportReport


def get_run_by_key(db: Session, run_key: str) -> ImportRun | None:
    stmt = select(ImportRun).where(ImportRun.run_key == run_key)
    return db.execute(stmt).scalar_one_or_none()


def _reset_run(db: Session, run_key: str) -> ImportRun:
    run = get_run_by_key(db, run_key)
    if run is None:
        run = ImportRun(run_key=run_key, status="queued")
        db.add(run)
        db.flush()
        return run

    # Recording the same run key again replaces the earlier outcome.
    db.execute(delete(BatchResult).where(BatchResult.run_id == run.id))
    db.expire(run, ["batches"])
    run.error = None
    run.total_records = 0
    run.total_batches = 0
    run.succeeded_batches = 0
    run.failed_batches = 0
    return run


def record_report(db: Session, *, run_key: str, status: str, report: ImportReport) -> ImportRun:
    run = _reset_run(db, run_key)
    run.status = status
    run.recorded_at = utc_now()
    run.total_records = report.total_records
    run.total_batches = report.total_batches
    run.succeeded_batches = report.succeeded_batches
    run.failed_batches = report.failed_batches

    for outcome in report.outcomes:
        db.add(
            BatchResult(
                run_id=run.id,
                batch_number=outcome.batch_number,
                record_count=outcome.record_count,
                status=outcome.status,
                artifact=outcome.artifact,
                error_message=outcome.error_message,
            )
        )
    db.commit()
    return run


def record_failure(db: Session, *, run_key: str, error: str) -> ImportRun:
    run = _reset_run(db, run_key)
    run.status = RUN_FAILED
    run.recorded_at = utc_now()
    run.error = error
    db.commit()
    return run


def list_batch_results(db: Session, run_key: str) -> list[BatchResult]:
    stmt = (
        select(BatchResult)
        .join(ImportRun, BatchResult.run_id == ImportRun.id)
        .where(ImportRun.run_key == run_key)
        .order_by(BatchResult.batch_number)
    )
    return list(db.execute(stmt).scalars().all())
