import json
import logging
from pathlib import Path
import random
from typing import Protocol

from batchbridge.errors import ExtractionError


logger = logging.getLogger(__name__)


class Extractor(Protocol):
    def extract(self) -> list[dict[str, object]]: ...


class SyntheticExtractor:
    """Generates records shaped like the legacy Java application's export."""

    def __init__(self, count: int, *, seed: int | None = None) -> None:
        self.count = count
        self.seed = seed

    def extract(self) -> list[dict[str, object]]:
        rng = random.Random(self.seed)
        logger.info("generating synthetic source records", extra={"count": self.count})

        records: list[dict[str, object]] = []
        for index in range(1, self.count + 1):
            records.append(
                {
                    "id_java": f"J{index:05d}",
                    "nome_completo": f"Usuário Exemplo {index}",
                    "data_nascimento": f"{rng.randint(1, 28)}/{rng.randint(1, 12)}/{rng.randint(1970, 1999)}",
                    "valor": round(rng.random() * 10000, 2),
                    "status": "ATIVO" if rng.random() > 0.2 else "INATIVO",
                }
            )
        return records


class JsonlExtractor:
    """Reads one JSON object per line from an export file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def extract(self) -> list[dict[str, object]]:
        if not self.path.exists():
            raise ExtractionError(f"input file not found: {self.path}")

        records: list[dict[str, object]] = []
        with self.path.open("r", encoding="utf-8") as infile:
            for line_number, line in enumerate(infile, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError as exc:
                    raise ExtractionError(f"invalid JSON on line {line_number} of {self.path}: {exc}") from exc
        return records
