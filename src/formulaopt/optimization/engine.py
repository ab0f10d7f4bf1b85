"""
Optimization Engine
===================

Entry point used by the UI and CLI: picks a strategy, runs it, scores
and ranks the candidates. A failing search is logged and replaced by the
deterministic variants so the caller always gets formulations back.
"""

import logging
import random
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import numpy as np

from ..config import AppSettings
from ..errors import FormulaOptimizerError, OptimizationError
from ..models import FormulationRequest
from .annealing import SimulatedAnnealingOptimizer
from .base import FormulationOptimizer, SearchOutcome
from .genetic import GeneticOptimizer
from .results import OptimizationRun, evaluate, generate_batch_number, rank_results
from .variants import VariantOptimizer

logger = logging.getLogger(__name__)

OptimizerFactory = Callable[[AppSettings, np.random.Generator], FormulationOptimizer]

OPTIMIZERS: Dict[str, OptimizerFactory] = {
    "variants": lambda settings, rng: VariantOptimizer(),
    "genetic": lambda settings, rng: GeneticOptimizer(settings.genetic, rng),
    "annealing": lambda settings, rng: SimulatedAnnealingOptimizer(settings.annealing, rng),
}


def available_algorithms() -> list:
    return list(OPTIMIZERS)


def get_optimizer(
    name: str,
    settings: Optional[AppSettings] = None,
    rng: Optional[np.random.Generator] = None
) -> FormulationOptimizer:
    """
    Factory function to get a search strategy.

    Args:
        name: Strategy identifier ('variants', 'genetic', 'annealing')
        settings: Application settings (algorithm parameters)
        rng: Random generator shared by stochastic strategies

    Returns:
        FormulationOptimizer instance
    """
    factory = OPTIMIZERS.get(name.strip().lower())
    if factory is None:
        raise OptimizationError(
            f"Unknown algorithm '{name}' (expected one of: {', '.join(OPTIMIZERS)})"
        )
    settings = settings or AppSettings()
    rng = rng if rng is not None else np.random.default_rng(settings.seed)
    return factory(settings, rng)


def _search(optimizer: FormulationOptimizer, request: FormulationRequest) -> SearchOutcome:
    outcome = optimizer.search(request)
    if not outcome.candidates:
        raise OptimizationError(f"{optimizer.name} search produced no formulations")
    return outcome


def run_optimization(
    request: FormulationRequest,
    algorithm: Optional[str] = None,
    settings: Optional[AppSettings] = None,
) -> OptimizationRun:
    """
    Optimize a formulation request.

    Args:
        request: Validated formulation request
        algorithm: Strategy name; defaults to settings.default_algorithm
        settings: Application settings

    Returns:
        OptimizationRun with ranked results (best first)
    """
    settings = settings or AppSettings()
    algorithm = (algorithm or settings.default_algorithm).strip().lower()
    optimizer = get_optimizer(algorithm, settings)

    logger.info(
        "Optimizing %s for %s (%s, goal=%s)",
        request.product_form.value,
        ", ".join(request.api_keys),
        algorithm,
        request.primary_goal.value,
    )

    if settings.simulated_latency_sec > 0:
        time.sleep(settings.simulated_latency_sec)

    start_time = time.perf_counter()
    fallback_used = False
    try:
        outcome = _search(optimizer, request)
    except (FormulaOptimizerError, ValueError, ArithmeticError):
        if algorithm == "variants":
            raise
        logger.exception("%s search failed; falling back to variant formulations", algorithm)
        outcome = _search(VariantOptimizer(), request)
        fallback_used = True

    results = rank_results([
        evaluate(c.formulation, c.label, c.description, settings.constraints)
        for c in outcome.candidates
    ])
    elapsed = time.perf_counter() - start_time

    now = datetime.now(timezone.utc)
    run = OptimizationRun(
        request=request,
        algorithm=algorithm,
        results=results,
        history=list(outcome.history),
        generations=outcome.generations,
        converged=outcome.converged,
        fallback_used=fallback_used,
        elapsed_sec=elapsed,
        batch_number=generate_batch_number(now, random.Random(settings.seed)),
        timestamp=now.isoformat(),
    )

    logger.info(
        "Best: %s (score %d) in %.3fs",
        run.best.name, run.best.overall_score, elapsed
    )
    return run
