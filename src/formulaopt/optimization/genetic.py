"""
Genetic Search
==============

Generational genetic algorithm over excipient genomes:
- Tournament selection
- Uniform crossover of excipient choices and weight scale
- One-gene mutation
- Elitism (best individuals carried over unchanged)
- Early stop when the population's fitness spread collapses
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..config import GeneticSettings
from ..errors import OptimizationError
from ..models import FormulationRequest
from .base import GenomeSearch, SearchOutcome
from .formulation import Genome

logger = logging.getLogger(__name__)

Scored = List[Tuple[Genome, float]]


class GeneticOptimizer(GenomeSearch):

    def __init__(
        self,
        settings: Optional[GeneticSettings] = None,
        rng: Optional[np.random.Generator] = None
    ):
        super().__init__(rng)
        self.settings = settings or GeneticSettings()

    @property
    def name(self) -> str:
        return "genetic"

    def initialize_population(self) -> List[Genome]:
        return [self.random_genome() for _ in range(self.settings.population_size)]

    def rank(self, population: List[Genome]) -> Scored:
        scored = [(g, self.evaluate(g)) for g in population]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored

    def has_converged(self, scored: Scored) -> bool:
        if len(scored) < 2:
            return True
        return (scored[0][1] - scored[-1][1]) < self.settings.convergence_tolerance

    def select_parent(self, scored: Scored) -> Genome:
        idx = self.rng.integers(0, len(scored), size=self.settings.tournament_size)
        best = max(idx, key=lambda i: scored[int(i)][1])
        return scored[int(best)][0]

    def crossover(self, parent1: Genome, parent2: Genome) -> Genome:
        if self.rng.random() >= self.settings.crossover_rate:
            return parent1
        choices = tuple(
            a if self.rng.random() < 0.5 else b
            for a, b in zip(parent1.choices, parent2.choices)
        )
        scale = parent1.scale if self.rng.random() < 0.5 else parent2.scale
        return Genome(choices=choices, scale=scale)

    def mutate(self, genome: Genome) -> Genome:
        if self.rng.random() < self.settings.mutation_rate:
            return self.mutate_genome(genome)
        return genome

    def next_generation(self, scored: Scored) -> List[Genome]:
        size = len(scored)
        elite_count = max(1, int(size * self.settings.elite_fraction))
        population = [g for g, _ in scored[:elite_count]]

        while len(population) < size:
            child = self.crossover(self.select_parent(scored), self.select_parent(scored))
            population.append(self.mutate(child))

        return population

    def search(self, request: FormulationRequest) -> SearchOutcome:
        self._prepare(request)

        population = self.initialize_population()
        if not population:
            raise OptimizationError("Genetic search started with an empty population")

        history: List[float] = []
        converged = False
        generation = 0

        for generation in range(1, self.settings.generations + 1):
            scored = self.rank(population)
            history.append(scored[0][1])

            if generation % 10 == 0:
                logger.debug("Generation %d: best fitness = %.2f", generation, scored[0][1])

            if self.has_converged(scored):
                converged = True
                logger.info("Converged at generation %d", generation)
                break

            population = self.next_generation(scored)

        scored = self.rank(population)
        ranked = [g for g, _ in scored]
        candidates = self.top_candidates(ranked, f"Genetic search, {generation} generations")

        return SearchOutcome(
            candidates=candidates,
            history=history,
            generations=generation,
            converged=converged,
        )
