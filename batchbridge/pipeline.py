from collections.abc import Callable, Sequence
from enum import Enum
import logging
import threading

from sqlalchemy.orm import Session, sessionmaker

from batchbridge.batching import split_into_batches
from batchbridge.clock import Clock, SystemClock
from batchbridge.config import Settings, validate_settings
from batchbridge.errors import ExtractionError
from batchbridge.extract import Extractor, JsonlExtractor, SyntheticExtractor
from batchbridge.mapping import FieldMapping, transform_records
from batchbridge.reporting import ConsoleReportSink, DatabaseReportSink, ReportSink
from batchbridge.schemas import (
    RUN_CANCELLED,
    RUN_FAILED,
    RUN_SUCCEEDED,
    BatchOutcome,
    ImportReport,
    PipelineResult,
)
from batchbridge.submitter import BatchSubmitter, JsonFileChannel, SimulatedChannel, SubmissionChannel


logger = logging.getLogger(__name__)


class RunStage(str, Enum):
    START = "start"
    EXTRACT = "extract"
    TRANSFORM = "transform"
    BATCH = "batch"
    SUBMIT_LOOP = "submit_loop"
    REPORT = "report"
    END = "end"


def build_report(total_records: int, total_batches: int, outcomes: Sequence[BatchOutcome]) -> ImportReport:
    succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
    return ImportReport(
        total_records=total_records,
        total_batches=total_batches,
        succeeded_batches=succeeded,
        failed_batches=len(outcomes) - succeeded,
        outcomes=tuple(outcomes),
    )


class PipelineRunner:
    """Runs one extract, transform, batch and submit pass and reports the outcome.

    Batches are submitted one at a time in order, with a fixed pause between
    them. A failed batch is recorded and the run moves on; only a failed
    extraction aborts the run.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: Extractor,
        submitter: BatchSubmitter,
        *,
        clock: Clock | None = None,
        sinks: Sequence[ReportSink] = (),
        mapping: FieldMapping | None = None,
    ) -> None:
        validate_settings(settings)
        self.settings = settings
        self.extractor = extractor
        self.submitter = submitter
        self.clock = clock or SystemClock()
        self.sinks = tuple(sinks)
        self.mapping = mapping or settings.field_mapping

    def run(self, *, run_key: str, cancel_event: threading.Event | None = None) -> PipelineResult:
        self._enter(RunStage.START, run_key)

        self._enter(RunStage.EXTRACT, run_key)
        try:
            source_records = self._extract()
        except ExtractionError as exc:
            logger.exception("extraction failed, aborting run", extra={"run_key": run_key})
            self._emit(run_key, lambda sink: sink.emit_failure(run_key, exc))
            self._enter(RunStage.END, run_key)
            return PipelineResult(run_key=run_key, status=RUN_FAILED, report=None, error=str(exc))

        self._enter(RunStage.TRANSFORM, run_key)
        transformed = transform_records(
            source_records,
            self.mapping,
            origin_tag=self.settings.origin_tag,
            clock=self.clock,
        )

        self._enter(RunStage.BATCH, run_key)
        batches = split_into_batches(transformed, self.settings.batch_size)
        logger.info(
            "records split into batches",
            extra={"run_key": run_key, "batches": len(batches), "batch_size": self.settings.batch_size},
        )

        self._enter(RunStage.SUBMIT_LOOP, run_key)
        outcomes, cancelled = self._submit_all(run_key, batches, cancel_event)

        self._enter(RunStage.REPORT, run_key)
        status = RUN_CANCELLED if cancelled else RUN_SUCCEEDED
        report = build_report(len(source_records), len(batches), outcomes)
        self._emit(run_key, lambda sink: sink.emit_report(run_key, status, report))

        self._enter(RunStage.END, run_key)
        return PipelineResult(run_key=run_key, status=status, report=report)

    def _extract(self) -> list[dict[str, object]]:
        try:
            records = list(self.extractor.extract())
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"failed to extract source records: {exc}") from exc

        logger.info("source records extracted", extra={"count": len(records)})
        return records

    def _submit_all(
        self,
        run_key: str,
        batches: list[list[dict[str, object]]],
        cancel_event: threading.Event | None,
    ) -> tuple[list[BatchOutcome], bool]:
        outcomes: list[BatchOutcome] = []
        for index, batch in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "run cancelled between batches",
                    extra={"run_key": run_key, "submitted_batches": len(outcomes)},
                )
                return outcomes, True

            outcomes.append(self.submitter.submit(batch, index + 1))

            # Throttle so the target system is not flooded.
            if index < len(batches) - 1:
                self.clock.sleep(self.settings.inter_batch_pause_seconds)

        return outcomes, False

    def _emit(self, run_key: str, deliver: Callable[[ReportSink], None]) -> None:
        for sink in self.sinks:
            try:
                deliver(sink)
            except Exception:
                # Every sink still gets the result when an earlier one fails.
                logger.exception(
                    "report sink failed",
                    extra={"run_key": run_key, "sink": type(sink).__name__},
                )

    def _enter(self, stage: RunStage, run_key: str) -> None:
        logger.debug("pipeline stage", extra={"run_key": run_key, "stage": stage.value})


def build_runner(
    settings: Settings,
    *,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> PipelineRunner:
    """Wire a runner from settings: file or synthetic source, file or simulated target."""
    clock = clock or SystemClock()

    extractor: Extractor
    if settings.input_path:
        extractor = JsonlExtractor(settings.input_path)
    else:
        extractor = SyntheticExtractor(settings.source_record_count)

    channel: SubmissionChannel
    if settings.output_dir:
        channel = JsonFileChannel(settings.output_dir)
    else:
        channel = SimulatedChannel(clock, settings.submission_latency_seconds)

    sinks: list[ReportSink] = [ConsoleReportSink()]
    if session_factory is not None:
        sinks.append(DatabaseReportSink(session_factory))

    submitter = BatchSubmitter(channel, clock, artifact_prefix=settings.artifact_prefix)
    return PipelineRunner(settings, extractor, submitter, clock=clock, sinks=sinks)
