"""
Simulated Annealing
===================

Single-trajectory search with Metropolis acceptance and geometric
cooling. Energy is the negated fitness, so lower is better.
"""

import logging
import math
from typing import Dict, List, Optional

import numpy as np

from ..config import AnnealingSettings
from ..models import FormulationRequest
from .base import GenomeSearch, SearchOutcome
from .formulation import Genome

logger = logging.getLogger(__name__)


class SimulatedAnnealingOptimizer(GenomeSearch):

    def __init__(
        self,
        settings: Optional[AnnealingSettings] = None,
        rng: Optional[np.random.Generator] = None
    ):
        super().__init__(rng)
        self.settings = settings or AnnealingSettings()

    @property
    def name(self) -> str:
        return "annealing"

    def accept(self, delta: float, temperature: float) -> bool:
        if delta <= 0:
            return True
        if temperature <= 0:
            return False
        return bool(self.rng.random() < math.exp(-delta / temperature))

    def search(self, request: FormulationRequest) -> SearchOutcome:
        self._prepare(request)

        current = Genome.for_variant(0)
        current_energy = -self.evaluate(current)
        best, best_energy = current, current_energy

        visited: Dict[Genome, float] = {current: current_energy}
        history: List[float] = []
        temperature = float(self.settings.initial_temperature)

        for _ in range(self.settings.iterations):
            neighbor = self.mutate_genome(current)
            neighbor_energy = -self.evaluate(neighbor)
            visited[neighbor] = neighbor_energy

            if self.accept(neighbor_energy - current_energy, temperature):
                current, current_energy = neighbor, neighbor_energy

            if current_energy < best_energy:
                best, best_energy = current, current_energy

            history.append(-best_energy)
            temperature *= self.settings.cooling_rate

        logger.debug("Annealing finished at T=%.3g, best fitness %.2f", temperature, -best_energy)

        ranked = sorted(visited, key=lambda g: visited[g])
        if best in ranked:
            ranked.remove(best)
        ranked.insert(0, best)

        return SearchOutcome(
            candidates=self.top_candidates(ranked, "Simulated annealing"),
            history=history,
            generations=self.settings.iterations,
            converged=True,
        )
