from dataclasses import dataclass
import os

from dotenv import load_dotenv

from batchbridge.errors import ConfigurationError
from batchbridge.mapping import DEFAULT_BIRTH_DATE_FIELD, DEFAULT_FIELD_PAIRS, FieldMapping


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    batch_size: int
    origin_tag: str
    field_mapping: FieldMapping
    inter_batch_pause_seconds: float
    submission_latency_seconds: float
    source_record_count: int
    input_path: str | None
    output_dir: str | None
    artifact_prefix: str
    schedule_hour_utc: int
    schedule_minute_utc: int


def parse_field_mapping(raw: str, birth_date_field: str | None = DEFAULT_BIRTH_DATE_FIELD) -> FieldMapping:
    """Parse ``source:target,source:target`` into a FieldMapping."""
    pairs: list[tuple[str, str]] = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        source, separator, target = entry.partition(":")
        if not separator:
            raise ConfigurationError(f"field mapping entry must look like 'source:target', got '{entry}'")
        pairs.append((source.strip(), target.strip()))
    return FieldMapping(tuple(pairs), birth_date_field=birth_date_field or None)


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from exc


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from exc


def validate_settings(settings: Settings) -> None:
    if isinstance(settings.batch_size, bool) or not isinstance(settings.batch_size, int) or settings.batch_size <= 0:
        raise ConfigurationError(f"batch size must be a positive integer, got {settings.batch_size!r}")
    if settings.inter_batch_pause_seconds < 0:
        raise ConfigurationError("inter-batch pause must not be negative")
    if settings.submission_latency_seconds < 0:
        raise ConfigurationError("submission latency must not be negative")
    if settings.source_record_count < 0:
        raise ConfigurationError("source record count must not be negative")
    if not settings.origin_tag.strip():
        raise ConfigurationError("origin tag must not be blank")
    if not isinstance(settings.field_mapping, FieldMapping):
        raise ConfigurationError("field mapping must be a FieldMapping")


def get_settings() -> Settings:
    raw_mapping = os.getenv("FIELD_MAPPING")
    birth_date_field = os.getenv("BIRTH_DATE_FIELD", DEFAULT_BIRTH_DATE_FIELD)
    if raw_mapping:
        field_mapping = parse_field_mapping(raw_mapping, birth_date_field)
    else:
        field_mapping = FieldMapping(DEFAULT_FIELD_PAIRS, birth_date_field=birth_date_field or None)

    settings = Settings(
        app_name=os.getenv("APP_NAME", "batchbridge"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./batchbridge.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        batch_size=_env_int("BATCH_SIZE", "100"),
        origin_tag=os.getenv("ORIGIN_TAG", "JAVA_APP"),
        field_mapping=field_mapping,
        inter_batch_pause_seconds=_env_float("INTER_BATCH_PAUSE_SECONDS", "0.2"),
        submission_latency_seconds=_env_float("SUBMISSION_LATENCY_SECONDS", "0.5"),
        source_record_count=_env_int("SOURCE_RECORD_COUNT", "350"),
        input_path=os.getenv("INPUT_PATH") or None,
        output_dir=os.getenv("OUTPUT_DIR") or None,
        artifact_prefix=os.getenv("ARTIFACT_PREFIX", "lote_nasajon"),
        schedule_hour_utc=_env_int("SCHEDULE_HOUR_UTC", "2"),
        schedule_minute_utc=_env_int("SCHEDULE_MINUTE_UTC", "0"),
    )
    validate_settings(settings)
    return settings
