from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from batchbridge.config import Settings
from batchbridge.errors import SubmissionError
from batchbridge.mapping import DEFAULT_FIELD_MAPPING


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


class RecordingChannel:
    """Accepts every batch unless its number is listed in ``fail_batches``."""

    def __init__(self, fail_batches: dict[int, str] | None = None) -> None:
        self.fail_batches = fail_batches or {}
        self.calls: list[tuple[str, dict[str, object]]] = []

    def submit(self, artifact_name: str, payload: dict[str, object]) -> str:
        self.calls.append((artifact_name, payload))
        batch_number = payload["meta"]["batch"]
        if batch_number in self.fail_batches:
            raise SubmissionError(self.fail_batches[batch_number])
        return artifact_name


class ListExtractor:
    def __init__(self, records: list[dict[str, object]]) -> None:
        self.records = records
        self.calls = 0

    def extract(self) -> list[dict[str, object]]:
        self.calls += 1
        return self.records


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data" / "input").mkdir(parents=True, exist_ok=True)
    (tmp_path / "outputs").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        app_name="batchbridge",
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        batch_size=100,
        origin_tag="JAVA_APP",
        field_mapping=DEFAULT_FIELD_MAPPING,
        inter_batch_pause_seconds=0.2,
        submission_latency_seconds=0.5,
        source_record_count=250,
        input_path=None,
        output_dir=None,
        artifact_prefix="lote_nasajon",
        schedule_hour_utc=2,
        schedule_minute_utc=0,
    )


def make_source_records(count: int) -> list[dict[str, object]]:
    return [
        {
            "id_java": f"J{index:05d}",
            "nome_completo": f"Usuário Exemplo {index}",
            "data_nascimento": "5/7/1990",
            "valor": float(index),
            "status": "ATIVO",
        }
        for index in range(1, count + 1)
    ]


@pytest.fixture()
def channel_factory() -> type[RecordingChannel]:
    return RecordingChannel


@pytest.fixture()
def extractor_factory() -> type[ListExtractor]:
    return ListExtractor


@pytest.fixture()
def source_records():
    return make_source_records
