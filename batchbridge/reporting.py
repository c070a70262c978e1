import logging
import sys
from typing import Protocol, TextIO

from sqlalchemy.orm import Session, sessionmaker

from batchbridge.run_store import record_failure, record_report
from batchbridge.schemas import ImportReport


logger = logging.getLogger(__name__)


class ReportSink(Protocol):
    def emit_report(self, run_key: str, status: str, report: ImportReport) -> None: ...

    def emit_failure(self, run_key: str, error: Exception) -> None: ...


def render_report(report: ImportReport) -> str:
    lines = [
        "===== IMPORT REPORT =====",
        f"Total records processed: {report.total_records}",
        f"Total batches: {report.total_batches}",
        f"Successful batches: {report.succeeded_batches}",
        f"Failed batches: {report.failed_batches}",
    ]
    failures = report.failures
    if failures:
        lines.append("")
        lines.append("Failed batch details:")
        lines.extend(f"- Batch {outcome.batch_number}: {outcome.error_message}" for outcome in failures)
    return "\n".join(lines)


class ConsoleReportSink:
    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def _write(self, text: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(text)
        stream.write("\n")

    def emit_report(self, run_key: str, status: str, report: ImportReport) -> None:
        logger.info(
            "import report",
            extra={
                "run_key": run_key,
                "status": status,
                "total_records": report.total_records,
                "total_batches": report.total_batches,
                "succeeded_batches": report.succeeded_batches,
                "failed_batches": report.failed_batches,
            },
        )
        self._write(render_report(report))

    def emit_failure(self, run_key: str, error: Exception) -> None:
        logger.error("import aborted", extra={"run_key": run_key, "error": str(error)})
        self._write(f"Import aborted ({type(error).__name__}): {error}")


class DatabaseReportSink:
    """Keeps a history of runs and their batch outcomes in the run ledger."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def emit_report(self, run_key: str, status: str, report: ImportReport) -> None:
        with self.session_factory() as db:
            record_report(db, run_key=run_key, status=status, report=report)

    def emit_failure(self, run_key: str, error: Exception) -> None:
        with self.session_factory() as db:
            record_failure(db, run_key=run_key, error=str(error))
