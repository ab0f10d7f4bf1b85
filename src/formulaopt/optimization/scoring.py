"""
Formulation Scoring
===================

Heuristic multi-criteria scores on a 0-100 scale:
- Cost efficiency relative to the target budget
- Performance (dose window, binder/disintegrant presence)
- Stability (API stability notes, excipient compatibility)
- Compliance (multi-API penalty, prohibited excipients)
- Manufacturability (informational only)

The overall score is a weighted blend of the first four.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..catalog import COMPLEX_EXCIPIENTS, PROHIBITED_EXCIPIENTS, ExcipientRole, get_api
from ..config import ConstraintLimits, ScoreWeights, fitness_weights_for_goal
from .formulation import Formulation, round_half_up

TYPICAL_COST_FACTOR = 1.3


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return min(hi, max(lo, value))


@dataclass
class Metrics:
    """Percentage scores for one formulation."""
    cost: int
    performance: int
    stability: int
    compliance: int
    manufacturability: int = 0

    def to_dict(self) -> dict:
        return {
            "cost": self.cost,
            "performance": self.performance,
            "stability": self.stability,
            "compliance": self.compliance,
            "manufacturability": self.manufacturability,
        }


@dataclass
class CostAnalysis:
    material: float
    manufacturing: float
    total: float
    typical: float
    savings: float
    efficiency: int

    def to_dict(self) -> dict:
        return {
            "material": round(self.material, 4),
            "manufacturing": round(self.manufacturing, 4),
            "total": round(self.total, 4),
            "typical": round(self.typical, 4),
            "savings": round(self.savings, 4),
            "efficiency": self.efficiency,
        }


@dataclass
class ConstraintReport:
    passed: bool
    violations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"passed": self.passed, "violations": list(self.violations)}


def cost_efficiency(formulation: Formulation) -> float:
    """Unrounded cost efficiency (0-100) against the request budget."""
    budget = float(formulation.request.budget)
    cost_ratio = min(formulation.material_cost / budget, 1.0)
    return clamp((1 - cost_ratio) * 100)


def cost_score(formulation: Formulation) -> int:
    return int(clamp(round_half_up(cost_efficiency(formulation))))


def performance_score(formulation: Formulation) -> int:
    score = 80
    for api in formulation.apis:
        if get_api(api.key).in_dose_range(api.strength):
            score += 10
        else:
            score -= 20

    if formulation.has_role(ExcipientRole.BINDER) and formulation.has_role(ExcipientRole.DISINTEGRANT):
        score += 10

    return int(clamp(score))


def stability_score(formulation: Formulation) -> int:
    score = 85
    for api in formulation.apis:
        note = get_api(api.key).stability
        if "Stable" in note:
            score += 5
        if "sensitive" in note:
            score -= 10

    keys = [a.key for a in formulation.apis]
    incompatible = sum(
        1 for e in formulation.excipients if not any(k in e.compatibility for k in keys)
    )
    score -= incompatible * 15

    return int(clamp(score))


def compliance_score(formulation: Formulation) -> int:
    score = 95
    if len(formulation.apis) > 1:
        score -= 5
    if any(e.name in PROHIBITED_EXCIPIENTS for e in formulation.excipients):
        score = 0
    return int(clamp(score))


def manufacturability_score(formulation: Formulation) -> int:
    score = 80
    n = formulation.component_count
    if n <= 5:
        score += 10
    if n > 8:
        score -= 15
    if not any(e.name in COMPLEX_EXCIPIENTS for e in formulation.excipients):
        score += 5
    return int(clamp(score))


def calculate_metrics(formulation: Formulation) -> Metrics:
    return Metrics(
        cost=cost_score(formulation),
        performance=performance_score(formulation),
        stability=stability_score(formulation),
        compliance=compliance_score(formulation),
        manufacturability=manufacturability_score(formulation),
    )


def weighted_score(metrics: Metrics, weights: ScoreWeights) -> float:
    """Unrounded blend of the four primary metrics."""
    return (
        metrics.cost * weights.cost
        + metrics.performance * weights.performance
        + metrics.stability * weights.stability
        + metrics.compliance * weights.compliance
    )


def overall_score(metrics: Metrics, weights: Optional[ScoreWeights] = None) -> int:
    weights = weights or ScoreWeights()
    return int(clamp(round_half_up(weighted_score(metrics, weights))))


def fitness(formulation: Formulation) -> float:
    """
    Search objective for the genetic and annealing strategies.

    Goal-weighted blend of all five metrics, with the cost term taken
    from the unrounded cost efficiency.
    """
    metrics = calculate_metrics(formulation)
    weights = fitness_weights_for_goal(formulation.request.primary_goal)
    return (
        cost_efficiency(formulation) * weights.cost
        + metrics.performance * weights.performance
        + metrics.stability * weights.stability
        + metrics.manufacturability * weights.manufacturability
        + metrics.compliance * weights.compliance
    )


def calculate_cost_analysis(formulation: Formulation) -> CostAnalysis:
    material = formulation.material_cost
    manufacturing = formulation.manufacturing_cost or material * 0.3
    total = material + manufacturing

    typical = total * TYPICAL_COST_FACTOR
    savings = typical - total
    efficiency = min(100.0, (savings / typical) * 100) if typical > 0 else 0.0

    return CostAnalysis(
        material=material,
        manufacturing=manufacturing,
        total=total,
        typical=typical,
        savings=savings,
        efficiency=round_half_up(efficiency),
    )


def check_constraints(
    formulation: Formulation,
    metrics: Metrics,
    limits: Optional[ConstraintLimits] = None,
) -> ConstraintReport:
    """
    Screen a formulation against cost and score thresholds.

    Cost limits apply to the total batch cost (material + manufacturing).
    """
    limits = limits or ConstraintLimits()
    violations: List[str] = []

    # The browser app compared material cost only; unit material cost never reaches min_cost
    total = calculate_cost_analysis(formulation).total
    if total < limits.min_cost:
        violations.append("Cost too low for viable production")
    if total > limits.max_cost:
        violations.append(f"Exceeds maximum cost of ${limits.max_cost:.0f}")

    if metrics.performance < limits.min_performance:
        violations.append(f"Performance below minimum threshold ({limits.min_performance:.0f}%)")
    if metrics.stability < limits.min_stability:
        violations.append(f"Stability below minimum threshold ({limits.min_stability:.0f}%)")
    if metrics.compliance < limits.min_compliance:
        violations.append(f"Compliance below minimum threshold ({limits.min_compliance:.0f}%)")

    return ConstraintReport(passed=not violations, violations=violations)


def generate_recommendations(metrics: Metrics) -> List[str]:
    recommendations = []

    if metrics.cost < 70:
        recommendations.append("Consider alternative excipients to reduce costs")
    if metrics.performance < 75:
        recommendations.append("Review API ratios for optimal therapeutic effect")
    if metrics.stability < 80:
        recommendations.append("Add stabilizers or consider different packaging")
    if metrics.compliance < 95:
        recommendations.append("Verify excipient regulatory status for target markets")

    if not recommendations:
        recommendations.append("Formulation meets all optimization criteria")

    return recommendations


QUALITY_TESTS = (
    ("Identification", "HPLC", "Must match reference standard"),
    ("Assay", "BP/USP Monograph", "95.0% - 105.0%"),
    ("Dissolution", "USP Apparatus 2", "Q = 80% in 30 min"),
    ("Uniformity of Dosage Units", "Content Uniformity", "AV <= 15.0"),
)


def generate_quality_tests(formulation: Formulation) -> List[dict]:
    # Release tests are fixed; status assumes the batch meets specification
    return [
        {"test": test, "method": method, "specification": spec, "status": "pass"}
        for test, method, spec in QUALITY_TESTS
    ]
