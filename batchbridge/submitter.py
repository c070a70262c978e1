import json
import logging
from pathlib import Path
from typing import Protocol

from batchbridge.clock import Clock, isoformat_utc
from batchbridge.schemas import STATUS_ERROR, STATUS_SUCCESS, BatchOutcome


logger = logging.getLogger(__name__)


class SubmissionChannel(Protocol):
    def submit(self, artifact_name: str, payload: dict[str, object]) -> str: ...


class SimulatedChannel:
    """Stands in for the target system's import API by waiting a fixed latency."""

    def __init__(self, clock: Clock, latency_seconds: float) -> None:
        self.clock = clock
        self.latency_seconds = latency_seconds

    def submit(self, artifact_name: str, payload: dict[str, object]) -> str:
        self.clock.sleep(self.latency_seconds)
        return artifact_name


class JsonFileChannel:
    """Writes each batch payload as a JSON file in the output directory."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def submit(self, artifact_name: str, payload: dict[str, object]) -> str:
        path = self.output_dir / artifact_name
        write_json(path, payload)
        return str(path)


def write_json(path: Path, payload: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as outfile:
        json.dump(payload, outfile, indent=2, sort_keys=True, ensure_ascii=False)
        outfile.write("\n")


def artifact_name_for(prefix: str, batch_number: int) -> str:
    return f"{prefix}_{batch_number:03d}.json"


class BatchSubmitter:
    def __init__(self, channel: SubmissionChannel, clock: Clock, *, artifact_prefix: str) -> None:
        self.channel = channel
        self.clock = clock
        self.artifact_prefix = artifact_prefix

    def submit(self, batch: list[dict[str, object]], batch_number: int) -> BatchOutcome:
        """Send one batch to the channel and record the outcome.

        Any exception raised while building or sending the payload is turned
        into an ERROR outcome, so a bad batch never stops the remaining ones.
        """
        record_count = len(batch)
        logger.info("submitting batch", extra={"batch_number": batch_number, "record_count": record_count})

        try:
            payload: dict[str, object] = {
                "meta": {
                    "batch": batch_number,
                    "processed_at": isoformat_utc(self.clock.now()),
                    "total_records": record_count,
                },
                "records": batch,
            }
            artifact = self.channel.submit(artifact_name_for(self.artifact_prefix, batch_number), payload)
        except Exception as exc:
            logger.exception("batch submission failed", extra={"batch_number": batch_number})
            return BatchOutcome(
                batch_number=batch_number,
                record_count=record_count,
                status=STATUS_ERROR,
                error_message=str(exc) or type(exc).__name__,
            )

        return BatchOutcome(
            batch_number=batch_number,
            record_count=record_count,
            status=STATUS_SUCCESS,
            artifact=artifact,
        )
