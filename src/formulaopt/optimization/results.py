"""
Optimization Results
====================

Structured containers for ranked formulations and the run that
produced them, with conversion to plain dictionaries for storage
and export.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..config import ConstraintLimits, weights_for_goal
from ..models import FormulationRequest
from .formulation import Formulation, Ingredient
from .scoring import (
    ConstraintReport,
    CostAnalysis,
    Metrics,
    calculate_cost_analysis,
    calculate_metrics,
    check_constraints,
    fitness,
    generate_quality_tests,
    generate_recommendations,
    overall_score,
)

VARIANT_LABELS = ("Standard", "Enhanced", "Economy")


def formulation_name(request: FormulationRequest, label: str) -> str:
    api_names = " + ".join(a.display_name.split(" ")[0] for a in request.apis)
    form = request.product_form.value.capitalize()
    return f"{label} {api_names} {form}"


def formulation_description(request: FormulationRequest, variant: int) -> str:
    descriptions = [
        f"Balanced formulation optimized for {request.primary_goal.value}",
        "High-performance formulation with enhanced stability",
        "Cost-effective formulation maintaining compliance standards",
    ]
    if 0 <= variant < len(descriptions):
        return descriptions[variant]
    return descriptions[0]


def metric_class(value: float) -> str:
    """Display band for a percentage score."""
    if value >= 80:
        return "high"
    if value >= 60:
        return "medium"
    return "low"


@dataclass
class FormulationResult:
    """One ranked formulation with its scores and analysis."""
    name: str
    description: str
    overall_score: int
    fitness: float
    metrics: Metrics
    ingredients: List[Ingredient]
    cost_analysis: CostAnalysis
    constraints: ConstraintReport
    recommendations: List[str]
    quality_tests: List[dict]
    manufacturing_process: str
    total_weight: float
    formulation: Optional[Formulation] = None

    @property
    def short_name(self) -> str:
        """Name without the 'Formulation N:' prefix."""
        return self.name.split(":", 1)[1].strip() if ":" in self.name else self.name

    def to_dict(self) -> dict:
        return {
            "formulation_name": self.name,
            "description": self.description,
            "overall_score": self.overall_score,
            "fitness": round(self.fitness, 4),
            "metrics": self.metrics.to_dict(),
            "ingredients": [i.to_dict() for i in self.ingredients],
            "cost_analysis": self.cost_analysis.to_dict(),
            "constraints": self.constraints.to_dict(),
            "recommendations": list(self.recommendations),
            "quality_tests": list(self.quality_tests),
            "manufacturing_process": self.manufacturing_process,
            "total_weight_mg": self.total_weight,
        }


def evaluate(
    formulation: Formulation,
    label: str,
    description: str,
    limits: Optional[ConstraintLimits] = None,
) -> FormulationResult:
    """Score a formulation and wrap it in a result record."""
    request = formulation.request
    metrics = calculate_metrics(formulation)
    weights = weights_for_goal(request.primary_goal)

    return FormulationResult(
        name=formulation_name(request, label),
        description=description,
        overall_score=overall_score(metrics, weights),
        fitness=fitness(formulation),
        metrics=metrics,
        ingredients=formulation.ingredients,
        cost_analysis=calculate_cost_analysis(formulation),
        constraints=check_constraints(formulation, metrics, limits),
        recommendations=generate_recommendations(metrics),
        quality_tests=generate_quality_tests(formulation),
        manufacturing_process=formulation.manufacturing_process,
        total_weight=formulation.total_weight,
        formulation=formulation,
    )


def rank_results(results: List[FormulationResult]) -> List[FormulationResult]:
    """Sort by overall score (then fitness) and number the names."""
    ranked = sorted(results, key=lambda r: (r.overall_score, r.fitness), reverse=True)
    for i, r in enumerate(ranked):
        base = r.short_name
        r.name = f"Formulation {i + 1}: {base}"
    return ranked


def generate_batch_number(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    return f"CF-{now:%Y%m%d}-{rng.randrange(1000):03d}"


@dataclass
class OptimizationRun:
    """
    Complete optimization run.

    Contains:
    - The validated request
    - Ranked formulations (best first)
    - Score history of the search (empty for variants)
    - Run metadata (algorithm, convergence, fallback, timing)
    """
    request: FormulationRequest
    algorithm: str
    results: List[FormulationResult] = field(default_factory=list)
    history: List[float] = field(default_factory=list)
    generations: int = 0
    converged: bool = False
    fallback_used: bool = False
    elapsed_sec: float = 0.0
    batch_number: str = ""
    timestamp: str = ""

    @property
    def best(self) -> Optional[FormulationResult]:
        return self.results[0] if self.results else None

    def get_summary(self) -> dict:
        best = self.best
        return {
            "algorithm": self.algorithm,
            "n_results": len(self.results),
            "best_name": best.name if best else None,
            "best_score": best.overall_score if best else None,
            "best_passes_constraints": best.constraints.passed if best else False,
            "generations": self.generations,
            "converged": self.converged,
            "fallback_used": self.fallback_used,
            "elapsed_sec": round(self.elapsed_sec, 4),
        }

    def to_dict(self) -> dict:
        return {
            "batch_number": self.batch_number,
            "timestamp": self.timestamp,
            "algorithm": self.algorithm,
            "request": self.request.model_dump(mode="json"),
            "summary": self.get_summary(),
            "history": [round(h, 4) for h in self.history],
            "results": [r.to_dict() for r in self.results],
        }
