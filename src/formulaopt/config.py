from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, ValidationError, confloat, model_validator

from .models import OptimizationGoal

logger = logging.getLogger(__name__)

ENV_DATA_DIR = "FORMULAOPT_DATA_DIR"
ENV_LOG_LEVEL = "FORMULAOPT_LOG_LEVEL"

DEFAULT_DATA_DIR = Path.home() / ".formulaopt"

# Settings the UI remembers between sessions
PREFERENCE_KEYS = ("default_algorithm", "seed")


class GeneticSettings(BaseModel):
    population_size: PositiveInt = Field(100, description="Individuals per generation.")
    generations: PositiveInt = Field(50, description="Maximum number of generations.")
    mutation_rate: confloat(ge=0, le=1) = Field(0.1, description="Per-individual mutation probability.")
    crossover_rate: confloat(ge=0, le=1) = Field(0.8, description="Probability a child mixes both parents.")
    tournament_size: PositiveInt = Field(5, description="Candidates drawn per tournament.")
    elite_fraction: confloat(ge=0, lt=1) = Field(0.2, description="Share of best individuals copied unchanged.")
    convergence_tolerance: confloat(ge=0) = Field(
        0.01, description="Stop when best - worst fitness in a generation falls below this."
    )


class AnnealingSettings(BaseModel):
    initial_temperature: confloat(gt=0) = Field(1000.0, description="Starting temperature.")
    cooling_rate: confloat(gt=0, lt=1) = Field(0.95, description="Geometric cooling factor per iteration.")
    iterations: PositiveInt = Field(1000, description="Number of neighbour evaluations.")


class ScoreWeights(BaseModel):
    cost: confloat(ge=0, le=1) = 0.4
    performance: confloat(ge=0, le=1) = 0.3
    stability: confloat(ge=0, le=1) = 0.2
    compliance: confloat(ge=0, le=1) = 0.1

    @model_validator(mode="after")
    def _sum_to_one(self) -> "ScoreWeights":
        s = float(self.cost) + float(self.performance) + float(self.stability) + float(self.compliance)
        if abs(s - 1.0) > 1e-6:
            raise ValueError("cost + performance + stability + compliance weights must equal 1.0")
        return self


GOAL_WEIGHTS: Dict[OptimizationGoal, ScoreWeights] = {
    OptimizationGoal.BALANCED: ScoreWeights(cost=0.4, performance=0.3, stability=0.2, compliance=0.1),
    OptimizationGoal.COST: ScoreWeights(cost=0.5, performance=0.2, stability=0.2, compliance=0.1),
    OptimizationGoal.PERFORMANCE: ScoreWeights(cost=0.2, performance=0.5, stability=0.2, compliance=0.1),
    OptimizationGoal.STABILITY: ScoreWeights(cost=0.2, performance=0.2, stability=0.5, compliance=0.1),
}


def weights_for_goal(goal: OptimizationGoal) -> ScoreWeights:
    return GOAL_WEIGHTS.get(goal, GOAL_WEIGHTS[OptimizationGoal.BALANCED])


class FitnessWeights(BaseModel):
    """Search objective weights; unlike ScoreWeights these include manufacturability."""
    cost: confloat(ge=0, le=1) = 0.25
    performance: confloat(ge=0, le=1) = 0.25
    stability: confloat(ge=0, le=1) = 0.2
    manufacturability: confloat(ge=0, le=1) = 0.2
    compliance: confloat(ge=0, le=1) = 0.1

    @model_validator(mode="after")
    def _sum_to_one(self) -> "FitnessWeights":
        s = (
            float(self.cost) + float(self.performance) + float(self.stability)
            + float(self.manufacturability) + float(self.compliance)
        )
        if abs(s - 1.0) > 1e-6:
            raise ValueError("fitness weights must sum to 1.0")
        return self


FITNESS_WEIGHTS: Dict[OptimizationGoal, FitnessWeights] = {
    OptimizationGoal.BALANCED: FitnessWeights(),
    OptimizationGoal.COST: FitnessWeights(
        cost=0.5, performance=0.2, stability=0.1, manufacturability=0.1, compliance=0.1
    ),
    OptimizationGoal.PERFORMANCE: FitnessWeights(
        cost=0.1, performance=0.6, stability=0.1, manufacturability=0.1, compliance=0.1
    ),
    OptimizationGoal.STABILITY: FitnessWeights(
        cost=0.1, performance=0.2, stability=0.5, manufacturability=0.1, compliance=0.1
    ),
}


def fitness_weights_for_goal(goal: OptimizationGoal) -> FitnessWeights:
    return FITNESS_WEIGHTS.get(goal, FITNESS_WEIGHTS[OptimizationGoal.BALANCED])


class ConstraintLimits(BaseModel):
    min_cost: confloat(ge=0) = Field(50.0, description="Minimum viable batch cost (USD).")
    max_cost: confloat(gt=0) = Field(500.0, description="Maximum batch cost (USD).")
    min_performance: confloat(ge=0, le=100) = 60.0
    min_stability: confloat(ge=0, le=100) = 70.0
    min_compliance: confloat(ge=0, le=100) = 90.0

    @model_validator(mode="after")
    def _cost_range(self) -> "ConstraintLimits":
        if self.min_cost > self.max_cost:
            raise ValueError("min_cost must not exceed max_cost")
        return self


class AppSettings(BaseModel):
    data_dir: Path = Field(DEFAULT_DATA_DIR, description="Directory for the record store and session file.")
    log_level: str = Field("INFO", description="Logging level name.")
    log_file: Optional[str] = Field(None, description="Optional log file path.")
    default_algorithm: Literal["variants", "genetic", "annealing"] = "variants"
    seed: Optional[int] = Field(None, description="Random seed for reproducible searches.")
    simulated_latency_sec: confloat(ge=0, le=30) = Field(
        0.0, description="Artificial delay before optimizing, mimicking a remote call."
    )
    genetic: GeneticSettings = Field(default_factory=GeneticSettings)
    annealing: AnnealingSettings = Field(default_factory=AnnealingSettings)
    constraints: ConstraintLimits = Field(default_factory=ConstraintLimits)

    @property
    def store_path(self) -> Path:
        return Path(self.data_dir) / "formulations.db"

    @property
    def session_path(self) -> Path:
        return Path(self.data_dir) / "session.json"


def load_settings(path: str | None = None, env: Optional[Dict[str, str]] = None) -> AppSettings:
    """
    Build settings from an optional JSON file, then apply environment overrides.
    """
    data: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        data = json.loads(p.read_text())

    env = os.environ if env is None else env
    if env.get(ENV_DATA_DIR):
        data["data_dir"] = env[ENV_DATA_DIR]
    if env.get(ENV_LOG_LEVEL):
        data["log_level"] = env[ENV_LOG_LEVEL]

    return AppSettings.model_validate(data)


def apply_preferences(settings: AppSettings, preferences: Optional[Dict[str, Any]]) -> AppSettings:
    """
    Overlay saved UI preferences (strategy, seed) on the loaded settings.

    Invalid saved values are logged and ignored.
    """
    if not preferences:
        return settings
    update = {k: preferences[k] for k in PREFERENCE_KEYS if k in preferences}
    try:
        return AppSettings.model_validate({**settings.model_dump(), **update})
    except ValidationError as e:
        logger.warning("Ignoring saved preferences %s: %s", update, e)
        return settings


def preferences_of(settings: AppSettings) -> Dict[str, Any]:
    return {k: getattr(settings, k) for k in PREFERENCE_KEYS}
