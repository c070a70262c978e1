import json
from pathlib import Path
import re

import pytest

from batchbridge.errors import ExtractionError
from batchbridge.extract import JsonlExtractor, SyntheticExtractor


def test_synthetic_records_look_like_legacy_export() -> None:
    records = SyntheticExtractor(25, seed=7).extract()

    assert len(records) == 25
    assert records[0]["id_java"] == "J00001"
    assert records[-1]["id_java"] == "J00025"
    for record in records:
        day, month, year = (int(part) for part in record["data_nascimento"].split("/"))
        assert 1 <= day <= 28
        assert 1 <= month <= 12
        assert 1970 <= year <= 1999
        assert 0 <= record["valor"] < 10000
        assert record["status"] in {"ATIVO", "INATIVO"}
        assert re.fullmatch(r"Usuário Exemplo \d+", record["nome_completo"])


def test_synthetic_records_are_reproducible_with_seed() -> None:
    assert SyntheticExtractor(10, seed=3).extract() == SyntheticExtractor(10, seed=3).extract()


def test_jsonl_extractor_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "export.jsonl"
    path.write_text(
        json.dumps({"id_java": "J1"}) + "\n\n" + json.dumps({"id_java": "J2"}) + "\n",
        encoding="utf-8",
    )

    assert JsonlExtractor(path).extract() == [{"id_java": "J1"}, {"id_java": "J2"}]


def test_jsonl_extractor_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="input file not found"):
        JsonlExtractor(tmp_path / "missing.jsonl").extract()


def test_jsonl_extractor_bad_json(tmp_path: Path) -> None:
    path = tmp_path / "export.jsonl"
    path.write_text('{"id_java": "J1"}\n{broken\n', encoding="utf-8")

    with pytest.raises(ExtractionError, match="line 2"):
        JsonlExtractor(path).extract()
