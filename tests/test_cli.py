import json
import os
from pathlib import Path
import subprocess
import sys


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    env["BATCH_SIZE"] = "100"
    env["SOURCE_RECORD_COUNT"] = "250"
    env["INTER_BATCH_PAUSE_SECONDS"] = "0"
    env["SUBMISSION_LATENCY_SECONDS"] = "0"
    for name in ("INPUT_PATH", "OUTPUT_DIR", "FIELD_MAPPING", "BIRTH_DATE_FIELD"):
        env.pop(name, None)
    return env


def _run_cli(env: dict[str, str], *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "batchbridge.main", "run", *args],
        cwd=Path(__file__).resolve().parents[1],
        env=env,
        check=False,
        capture_output=True,
        text=True,
    )


def test_cli_returns_zero_on_success(tmp_path: Path) -> None:
    proc = _run_cli(_base_env(tmp_path), "--run-key", "manual-1")

    assert proc.returncode == 0
    assert "run_key=manual-1 status=succeeded total=250 batches=3 succeeded=3 failed=0" in proc.stdout
    assert "===== IMPORT REPORT =====" in proc.stdout


def test_cli_returns_nonzero_when_extraction_fails(tmp_path: Path) -> None:
    env = _base_env(tmp_path)
    env["INPUT_PATH"] = str(tmp_path / "missing.jsonl")

    proc = _run_cli(env, "--run-key", "manual-2")

    assert proc.returncode == 1
    assert "status=failed" in proc.stdout
    assert "Import aborted (ExtractionError)" in proc.stdout
    assert "IMPORT REPORT" not in proc.stdout


def test_cli_writes_batch_files_when_output_dir_is_set(tmp_path: Path) -> None:
    input_path = tmp_path / "export.jsonl"
    with input_path.open("w", encoding="utf-8") as outfile:
        for index in range(1, 4):
            outfile.write(json.dumps({"id_java": f"J{index}", "data_nascimento": "5/7/1990"}))
            outfile.write("\n")

    env = _base_env(tmp_path)
    env["INPUT_PATH"] = str(input_path)
    env["OUTPUT_DIR"] = str(tmp_path / "outputs")
    env["BATCH_SIZE"] = "2"

    proc = _run_cli(env, "--run-key", "manual-3")

    assert proc.returncode == 0
    first = json.loads((tmp_path / "outputs" / "lote_nasajon_001.json").read_text(encoding="utf-8"))
    second = json.loads((tmp_path / "outputs" / "lote_nasajon_002.json").read_text(encoding="utf-8"))
    assert first["meta"]["total_records"] == 2
    assert second["meta"]["total_records"] == 1
    assert first["records"][0]["dt_nascimento"] == "1990-07-05"


def test_cli_rejects_invalid_batch_size(tmp_path: Path) -> None:
    env = _base_env(tmp_path)
    env["BATCH_SIZE"] = "0"

    proc = _run_cli(env)

    assert proc.returncode == 2
    assert "configuration error" in proc.stdout
