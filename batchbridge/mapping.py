from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from batchbridge.clock import Clock, isoformat_utc
from batchbridge.errors import ConfigurationError


IMPORTED_AT_FIELD = "data_importacao"
ORIGIN_FIELD = "sistema_origem"
INJECTED_FIELDS = (IMPORTED_AT_FIELD, ORIGIN_FIELD)

DEFAULT_FIELD_PAIRS: tuple[tuple[str, str], ...] = (
    ("id_java", "codigo_nasajon"),
    ("nome_completo", "nome"),
    ("data_nascimento", "dt_nascimento"),
    ("valor", "valor_total"),
)
DEFAULT_BIRTH_DATE_FIELD = "dt_nascimento"


@dataclass(frozen=True)
class FieldMapping:
    """Ordered source-to-target field names, validated on construction.

    The table must be a bijection over the fields it covers, and the
    birth-date field (when given) must be one of the target names.
    """

    pairs: tuple[tuple[str, str], ...]
    birth_date_field: str | None = DEFAULT_BIRTH_DATE_FIELD

    def __post_init__(self) -> None:
        for pair in self.pairs:
            if (
                not isinstance(pair, (tuple, list))
                or len(pair) != 2
                or not all(isinstance(name, str) and name.strip() for name in pair)
            ):
                raise ConfigurationError(f"field mapping entry is malformed: {pair!r}")

        pairs = tuple((source, target) for source, target in self.pairs)
        object.__setattr__(self, "pairs", pairs)

        if not pairs:
            raise ConfigurationError("field mapping must not be empty")

        sources = [source for source, _ in pairs]
        targets = [target for _, target in pairs]
        if len(set(sources)) != len(sources):
            raise ConfigurationError("field mapping has duplicate source fields")
        if len(set(targets)) != len(targets):
            raise ConfigurationError("field mapping has duplicate target fields")

        reserved = sorted(set(targets) & set(INJECTED_FIELDS))
        if reserved:
            raise ConfigurationError(f"field mapping targets reserved fields: {', '.join(reserved)}")

        if self.birth_date_field is not None and self.birth_date_field not in targets:
            raise ConfigurationError(
                f"birth date field '{self.birth_date_field}' is not a mapped target field"
            )

    @property
    def target_fields(self) -> tuple[str, ...]:
        return tuple(target for _, target in self.pairs)


DEFAULT_FIELD_MAPPING = FieldMapping(DEFAULT_FIELD_PAIRS)


def reformat_birth_date(value: object) -> object:
    """Rewrite ``D/M/Y`` as ``YYYY-MM-DD``; anything else is returned as-is."""
    if not isinstance(value, str) or not value:
        return value

    parts = value.split("/")
    if len(parts) != 3:
        return value

    day, month, year = parts
    return f"{year.zfill(4)}-{month.zfill(2)}-{day.zfill(2)}"


def map_record(
    record: object,
    mapping: FieldMapping,
    *,
    origin_tag: str,
    imported_at: str,
) -> dict[str, object]:
    source: Mapping[str, object] = record if isinstance(record, Mapping) else {}

    mapped: dict[str, object] = {}
    for source_field, target_field in mapping.pairs:
        # Missing source fields stay in the output as None.
        mapped[target_field] = source.get(source_field)

    mapped[IMPORTED_AT_FIELD] = imported_at
    mapped[ORIGIN_FIELD] = origin_tag

    if mapping.birth_date_field is not None:
        mapped[mapping.birth_date_field] = reformat_birth_date(mapped[mapping.birth_date_field])

    return mapped


def transform_records(
    records: Iterable[object],
    mapping: FieldMapping,
    *,
    origin_tag: str,
    clock: Clock,
) -> list[dict[str, object]]:
    return [
        map_record(record, mapping, origin_tag=origin_tag, imported_at=isoformat_utc(clock.now()))
        for record in records
    ]
