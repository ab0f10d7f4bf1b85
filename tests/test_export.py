import json

import pandas as pd
import pytest

from formulaopt import __version__
from formulaopt.export import (
    build_report,
    create_metadata,
    export_ingredients_csv,
    export_results_csv,
    export_run_to_json,
    ingredients_frame,
    results_frame,
)
from formulaopt.optimization import run_optimization


@pytest.fixture
def run(combination_request, fast_settings):
    return run_optimization(combination_request, "variants", fast_settings)


def test_metadata():
    meta = create_metadata()
    assert meta["version"] == __version__
    assert "DEMONSTRATION" in meta["disclaimer"]
    assert meta["limitations"]


def test_build_report(run):
    report = build_report(run)
    assert set(report) == {"metadata", "run"}
    assert "Paracetamol (Acetaminophen) + Ibuprofen" in report["metadata"]["description"]
    assert len(report["run"]["results"]) == 3


def test_export_json(run, tmp_path):
    path = export_run_to_json(run, str(tmp_path / "out" / "report.json"))
    data = json.loads(open(path, encoding="utf-8").read())
    assert data["run"]["batch_number"] == run.batch_number


def test_results_frame(run):
    df = results_frame(run)
    assert list(df["rank"]) == [1, 2, 3]
    assert {"overall_score", "cost_efficiency", "total_cost", "constraints_passed"} <= set(df.columns)


def test_ingredients_frame_percentages(run):
    df = ingredients_frame(run.best)
    assert df["percentage"].sum() == pytest.approx(100, abs=0.5)
    assert (df["type"] == "api").sum() == 2


def test_csv_exports(run, tmp_path):
    results_path = export_results_csv(run, str(tmp_path / "results.csv"))
    assert len(pd.read_csv(results_path)) == 3

    ingredients_path = export_ingredients_csv(run.best, str(tmp_path / "ingredients.csv"))
    assert len(pd.read_csv(ingredients_path)) == len(run.best.ingredients)
