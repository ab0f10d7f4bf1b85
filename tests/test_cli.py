import json
import sqlite3

import pytest

from formulaopt.cli import build_parser, main
from formulaopt.storage import FormulationStore


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    path = tmp_path / "data"
    monkeypatch.setenv("FORMULAOPT_DATA_DIR", str(path))
    monkeypatch.setenv("FORMULAOPT_LOG_LEVEL", "WARNING")
    return path


def _write_request(tmp_path, apis, **extra):
    path = tmp_path / "request.json"
    path.write_text(json.dumps({
        "apis": [{"name": n, "strength": s} for n, s in apis],
        **extra,
    }))
    return str(path)


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_rejects_unknown_algorithm(tmp_path):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["optimize", "-i", "x.json", "-a", "bruteforce"])


def test_optimize_passing_request(tmp_path, capsys):
    path = _write_request(tmp_path, [("paracetamol", 500)])
    out_path = tmp_path / "report.json"

    code = main(["optimize", "--input", path, "--no-save", "--output", str(out_path)])

    assert code == 0
    out = capsys.readouterr().out
    assert "Formulation 1: " in out
    assert "Recommendations:" in out
    assert json.loads(out_path.read_text())["run"]["algorithm"] == "variants"


def test_optimize_failing_constraints_returns_1(tmp_path, capsys):
    path = _write_request(tmp_path, [("omeprazole", 20)])
    assert main(["optimize", "-i", path, "--no-save"]) == 1
    assert "Cost too low for viable production" in capsys.readouterr().err


def test_optimize_invalid_request_returns_2(tmp_path, capsys):
    path = _write_request(tmp_path, [("aspirin", 100)])
    assert main(["optimize", "-i", path]) == 2
    assert "validation error" in capsys.readouterr().err


def test_optimize_missing_file_returns_2(tmp_path):
    assert main(["optimize", "-i", str(tmp_path / "missing.json")]) == 2


def test_optimize_bad_json_returns_2(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{")
    assert main(["optimize", "-i", str(path)]) == 2


def test_missing_settings_file_returns_2(tmp_path):
    assert main(["--settings", str(tmp_path / "nope.json"), "catalog"]) == 2


def test_optimize_saves_then_history_and_sync(tmp_path, data_dir, capsys):
    path = _write_request(tmp_path, [("paracetamol", 500)])
    assert main(["optimize", "-i", path, "-a", "annealing", "--seed", "5"]) == 0
    assert (data_dir / "formulations.db").exists()
    assert (data_dir / "session.json").exists()
    capsys.readouterr()

    assert main(["history", "--limit", "5"]) == 0
    assert "annealing" in capsys.readouterr().out

    assert main(["sync"]) == 0
    assert "Successfully synced 1 formulation(s)" in capsys.readouterr().out


def test_history_empty(capsys):
    assert main(["history"]) == 0
    assert "No saved results." in capsys.readouterr().out


def test_catalog(capsys):
    assert main(["catalog"]) == 0
    out = capsys.readouterr().out
    for key in ("paracetamol", "ibuprofen", "amoxicillin", "metformin", "omeprazole"):
        assert key in out


def test_history_with_corrupt_store_returns_2(data_dir, capsys):
    FormulationStore(data_dir / "formulations.db")
    conn = sqlite3.connect(data_dir / "formulations.db")
    with conn:
        conn.execute(
            "INSERT INTO results (payload, synced, created_at) VALUES ('{', 0, '2024-01-01')"
        )
    conn.close()

    assert main(["history"]) == 2
    assert "Corrupt payload" in capsys.readouterr().err
