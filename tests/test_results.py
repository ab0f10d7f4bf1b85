import random
from datetime import datetime, timezone

from formulaopt.optimization.formulation import build_formulation
from formulaopt.optimization.results import (
    evaluate,
    formulation_description,
    formulation_name,
    generate_batch_number,
    metric_class,
    rank_results,
)

from conftest import make_request


def test_metric_class_bands():
    assert metric_class(80) == "high"
    assert metric_class(79) == "medium"
    assert metric_class(60) == "medium"
    assert metric_class(59) == "low"


def test_formulation_name(combination_request):
    assert formulation_name(combination_request, "Economy") == \
        "Economy Paracetamol + Ibuprofen Capsule"


def test_description_mentions_goal():
    req = make_request(primary_goal="stability")
    assert formulation_description(req, 0) == "Balanced formulation optimized for stability"
    assert formulation_description(req, 7) == formulation_description(req, 0)


def test_batch_number_format():
    now = datetime(2024, 3, 9, tzinfo=timezone.utc)
    assert generate_batch_number(now, random.Random(1)).startswith("CF-20240309-")
    assert len(generate_batch_number(now)) == len("CF-20240309-000")


def test_evaluate_uses_goal_weights(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    balanced = evaluate(f, "Standard", "")
    stability = evaluate(build_formulation(make_request(primary_goal="stability"), 0), "Standard", "")
    assert balanced.fitness != stability.fitness
    assert balanced.total_weight == 572
    assert balanced.manufacturing_process == "Direct Compression"
    assert balanced.short_name == "Standard Paracetamol Tablet"


def test_rank_results_numbers_names():
    req = make_request(("paracetamol", 100))
    results = [evaluate(build_formulation(req, v), label, "") for v, label in
               enumerate(["Standard", "Enhanced", "Economy"])]
    ranked = rank_results(results)
    assert [r.name.split(":")[0] for r in ranked] == [
        "Formulation 1", "Formulation 2", "Formulation 3"
    ]
    keys = [(r.overall_score, r.fitness) for r in ranked]
    assert keys == sorted(keys, reverse=True)
