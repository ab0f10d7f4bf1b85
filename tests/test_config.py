import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from formulaopt.config import (
    FITNESS_WEIGHTS,
    GOAL_WEIGHTS,
    FitnessWeights,
    AppSettings,
    ConstraintLimits,
    ScoreWeights,
    apply_preferences,
    load_settings,
    preferences_of,
    weights_for_goal,
)
from formulaopt.models import OptimizationGoal


def test_goal_weights_sum_to_one():
    for weights in GOAL_WEIGHTS.values():
        total = weights.cost + weights.performance + weights.stability + weights.compliance
        assert total == pytest.approx(1.0)


def test_weights_for_goal():
    w = weights_for_goal(OptimizationGoal.COST)
    assert (w.cost, w.performance, w.stability, w.compliance) == (0.5, 0.2, 0.2, 0.1)


def test_score_weights_must_sum_to_one():
    with pytest.raises(ValidationError):
        ScoreWeights(cost=0.5, performance=0.5, stability=0.5, compliance=0.1)


def test_constraint_limits_range():
    with pytest.raises(ValidationError):
        ConstraintLimits(min_cost=600, max_cost=500)


def test_defaults():
    s = AppSettings()
    assert s.default_algorithm == "variants"
    assert s.genetic.population_size == 100
    assert s.genetic.generations == 50
    assert s.annealing.cooling_rate == 0.95
    assert s.simulated_latency_sec == 0


def test_paths_follow_data_dir(tmp_path):
    s = AppSettings(data_dir=tmp_path)
    assert s.store_path == tmp_path / "formulations.db"
    assert s.session_path == tmp_path / "session.json"


def test_load_settings_file_and_env(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"default_algorithm": "genetic", "log_level": "INFO"}))

    s = load_settings(str(path), env={
        "FORMULAOPT_DATA_DIR": str(tmp_path / "data"),
        "FORMULAOPT_LOG_LEVEL": "DEBUG",
    })
    assert s.default_algorithm == "genetic"
    assert s.log_level == "DEBUG"
    assert Path(s.data_dir) == tmp_path / "data"


def test_load_settings_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "missing.json"), env={})


def test_load_settings_rejects_unknown_algorithm(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"default_algorithm": "bruteforce"}))
    with pytest.raises(ValidationError):
        load_settings(str(path), env={})


def test_fitness_weights_cover_every_goal():
    assert set(FITNESS_WEIGHTS) == set(OptimizationGoal)
    for w in FITNESS_WEIGHTS.values():
        total = w.cost + w.performance + w.stability + w.manufacturability + w.compliance
        assert total == pytest.approx(1.0)
        assert w.manufacturability > 0


def test_fitness_weights_must_sum_to_one():
    with pytest.raises(ValidationError):
        FitnessWeights(manufacturability=0.5)


def test_apply_preferences_overrides_strategy_and_seed():
    s = apply_preferences(AppSettings(), {"default_algorithm": "annealing", "seed": 0, "theme": "dark"})
    assert s.default_algorithm == "annealing"
    assert s.seed == 0
    assert preferences_of(s) == {"default_algorithm": "annealing", "seed": 0}


def test_apply_preferences_ignores_invalid_values():
    base = AppSettings(default_algorithm="genetic")
    assert apply_preferences(base, {"default_algorithm": "bruteforce"}) is base
    assert apply_preferences(base, None) is base
