"""
Variant Generator
=================

Deterministic three-way comparison (Standard, Enhanced, Economy). Also
the fallback when a search strategy fails.
"""

from ..models import FormulationRequest
from .base import Candidate, FormulationOptimizer, SearchOutcome
from .formulation import build_formulation
from .results import VARIANT_LABELS, formulation_description


class VariantOptimizer(FormulationOptimizer):

    def __init__(self, n_variants: int = len(VARIANT_LABELS)):
        self.n_variants = max(1, min(n_variants, len(VARIANT_LABELS)))

    @property
    def name(self) -> str:
        return "variants"

    def search(self, request: FormulationRequest) -> SearchOutcome:
        candidates = [
            Candidate(
                formulation=build_formulation(request, variant),
                label=VARIANT_LABELS[variant],
                description=formulation_description(request, variant),
            )
            for variant in range(self.n_variants)
        ]
        return SearchOutcome(candidates=candidates, generations=0, converged=True)
