from dataclasses import dataclass


STATUS_SUCCESS = "SUCCESS"
STATUS_ERROR = "ERROR"

RUN_SUCCEEDED = "succeeded"
RUN_FAILED = "failed"
RUN_CANCELLED = "cancelled"


@dataclass(frozen=True)
class BatchOutcome:
    batch_number: int
    record_count: int
    status: str
    artifact: str | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass(frozen=True)
class ImportReport:
    total_records: int
    total_batches: int
    succeeded_batches: int
    failed_batches: int
    outcomes: tuple[BatchOutcome, ...]

    @property
    def failures(self) -> tuple[BatchOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.status == STATUS_ERROR)


@dataclass(frozen=True)
class PipelineResult:
    run_key: str
    status: str
    report: ImportReport | None
    error: str | None = None
