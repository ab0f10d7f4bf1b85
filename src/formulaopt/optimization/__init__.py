"""
Optimization Module
===================

Heuristic formulation search:
- Deterministic variants (Standard / Enhanced / Economy)
- Genetic algorithm over excipient genomes
- Simulated annealing
- Shared scoring, constraint screening and ranking
"""

from .formulation import Formulation, Genome, Ingredient, assemble_formulation, build_formulation
from .scoring import Metrics, calculate_metrics, overall_score
from .results import FormulationResult, OptimizationRun
from .engine import available_algorithms, get_optimizer, run_optimization

__all__ = [
    "Formulation",
    "Genome",
    "Ingredient",
    "assemble_formulation",
    "build_formulation",
    "Metrics",
    "calculate_metrics",
    "overall_score",
    "FormulationResult",
    "OptimizationRun",
    "available_algorithms",
    "get_optimizer",
    "run_optimization",
]
