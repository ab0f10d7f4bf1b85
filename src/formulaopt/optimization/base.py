"""
Base Optimizer
==============

Abstract interface shared by all search strategies, plus the genome
operators (random draw, one-gene mutation) they have in common.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..models import FormulationRequest
from .formulation import Formulation, Genome, assemble_formulation, choice_counts
from .scoring import fitness

MAX_RESULTS = 3


@dataclass
class Candidate:
    """Formulation proposed by a strategy, with display label."""
    formulation: Formulation
    label: str
    description: str


@dataclass
class SearchOutcome:
    """What a strategy hands back to the engine."""
    candidates: List[Candidate] = field(default_factory=list)
    history: List[float] = field(default_factory=list)
    generations: int = 0
    converged: bool = False


class FormulationOptimizer(ABC):
    """
    Abstract base class for search strategies.

    Each strategy must implement:
    - A short identifier
    - search(): propose ranked candidate formulations for a request
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier (e.g., 'genetic')"""
        pass

    @abstractmethod
    def search(self, request: FormulationRequest) -> SearchOutcome:
        """Propose candidate formulations for the request."""
        pass


class GenomeSearch(FormulationOptimizer):
    """Shared state for strategies that explore the genome space."""

    labels: Tuple[str, ...] = ("Optimized", "Runner-up", "Alternative")

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self._request: Optional[FormulationRequest] = None
        self._counts: Tuple[int, ...] = ()
        self._cache: Dict[Genome, float] = {}

    def _prepare(self, request: FormulationRequest) -> None:
        self._request = request
        self._counts = choice_counts(request.api_keys)
        self._cache = {}

    def evaluate(self, genome: Genome) -> float:
        """Fitness of a genome, memoised for the current request."""
        if genome not in self._cache:
            self._cache[genome] = fitness(assemble_formulation(self._request, genome))
        return self._cache[genome]

    def random_genome(self) -> Genome:
        choices = tuple(int(self.rng.integers(0, max(1, n))) for n in self._counts)
        return Genome(choices=choices, scale=float(self.rng.uniform(0.8, 1.2)))

    def mutate_genome(self, genome: Genome) -> Genome:
        """Re-draw one excipient choice or nudge the weight scale by up to 10%."""
        free_roles = [i for i, n in enumerate(self._counts) if n > 1]
        if free_roles and self.rng.random() < 0.5:
            idx = free_roles[int(self.rng.integers(0, len(free_roles)))]
            return genome.with_choice(idx, int(self.rng.integers(0, self._counts[idx])))
        change = float(self.rng.uniform(-0.1, 0.1))
        return genome.with_scale(genome.scale * (1 + change))

    def top_candidates(self, ranked: Sequence[Genome], describe: str) -> List[Candidate]:
        """Up to MAX_RESULTS distinct formulations from genomes ordered best first."""
        seen = set()
        candidates: List[Candidate] = []
        for genome in ranked:
            formulation = assemble_formulation(self._request, genome)
            sig = formulation.signature()
            if sig in seen:
                continue
            seen.add(sig)
            label = self.labels[len(candidates)]
            candidates.append(Candidate(
                formulation=formulation,
                label=label,
                description=f"{describe} (fitness {self.evaluate(genome):.1f})",
            ))
            if len(candidates) >= MAX_RESULTS:
                break
        return candidates
