"""
Formulation Assembly
====================

Turns a request plus a genome (one excipient choice per role and a weight
scale factor) into a concrete formulation with weights and costs.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..catalog import ROLE_ORDER, ExcipientRole, compatible_excipients, get_api
from ..models import FormulationRequest, ProductForm

# Excipient weight as a fraction of total API weight
EXCIPIENT_RATIOS: Dict[ExcipientRole, float] = {
    ExcipientRole.BINDER: 0.02,
    ExcipientRole.DISINTEGRANT: 0.05,
    ExcipientRole.LUBRICANT: 0.01,
    ExcipientRole.FILLER: 0.10,
}

MANUFACTURING_PROCESS: Dict[ProductForm, str] = {
    ProductForm.TABLET: "Direct Compression",
    ProductForm.CAPSULE: "Encapsulation",
    ProductForm.SYRUP: "Liquid Mixing",
}

# USD per mg of batch weight
MANUFACTURING_BASE_COST: Dict[ProductForm, float] = {
    ProductForm.TABLET: 0.50,
    ProductForm.CAPSULE: 0.75,
    ProductForm.SYRUP: 1.00,
}

SCALE_BOUNDS: Tuple[float, float] = (0.5, 1.5)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Genome:
    """Excipient choice index per role (in ROLE_ORDER) and a weight scale."""
    choices: Tuple[int, ...]
    scale: float

    @classmethod
    def for_variant(cls, variant: int) -> "Genome":
        return cls(choices=tuple(variant for _ in ROLE_ORDER), scale=round(0.8 + 0.1 * variant, 6))

    def with_choice(self, role_index: int, choice: int) -> "Genome":
        choices = list(self.choices)
        choices[role_index] = choice
        return Genome(choices=tuple(choices), scale=self.scale)

    def with_scale(self, scale: float) -> "Genome":
        lo, hi = SCALE_BOUNDS
        return Genome(choices=self.choices, scale=min(hi, max(lo, scale)))


@dataclass
class Ingredient:
    """Single line of the ingredient list."""
    name: str
    amount: float
    unit: str
    cost: float
    type: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "amount": self.amount,
            "unit": self.unit,
            "cost": round(self.cost, 4),
            "type": self.type,
        }


@dataclass
class ApiComponent:
    key: str
    display_name: str
    strength: float
    cost: float

    @property
    def weight(self) -> float:
        return self.strength


@dataclass
class ExcipientComponent:
    name: str
    role: ExcipientRole
    weight: float
    cost: float
    compatibility: Tuple[str, ...] = ()


@dataclass
class Formulation:
    """
    Concrete formulation for one product unit.

    Weights are in mg, costs in USD.
    """
    request: FormulationRequest
    genome: Genome
    apis: List[ApiComponent] = field(default_factory=list)
    excipients: List[ExcipientComponent] = field(default_factory=list)
    manufacturing_process: str = ""

    @property
    def api_weight(self) -> float:
        return sum(a.weight for a in self.apis)

    @property
    def excipient_weight(self) -> float:
        return sum(e.weight for e in self.excipients)

    @property
    def total_weight(self) -> float:
        return self.api_weight + self.excipient_weight

    @property
    def api_cost(self) -> float:
        return sum(a.cost for a in self.apis)

    @property
    def excipient_cost(self) -> float:
        return sum(e.cost for e in self.excipients)

    @property
    def material_cost(self) -> float:
        return self.api_cost + self.excipient_cost

    @property
    def manufacturing_cost(self) -> float:
        return MANUFACTURING_BASE_COST[self.request.product_form] * self.total_weight

    @property
    def component_count(self) -> int:
        return len(self.apis) + len(self.excipients)

    def has_role(self, role: ExcipientRole) -> bool:
        return any(e.role == role for e in self.excipients)

    @property
    def ingredients(self) -> List[Ingredient]:
        items = [
            Ingredient(name=a.display_name, amount=a.strength, unit="mg", cost=a.cost, type="api")
            for a in self.apis
        ]
        items.extend(
            Ingredient(name=e.name, amount=e.weight, unit="mg", cost=e.cost, type=e.role.value)
            for e in self.excipients
        )
        return items

    def signature(self) -> Tuple:
        """Identity used to tell formulations apart when ranking."""
        return tuple((e.name, e.weight) for e in self.excipients)

    def to_dict(self) -> dict:
        return {
            "product_form": self.request.product_form.value,
            "manufacturing_process": self.manufacturing_process,
            "total_weight_mg": self.total_weight,
            "material_cost": round(self.material_cost, 4),
            "manufacturing_cost": round(self.manufacturing_cost, 4),
            "genome": {"choices": list(self.genome.choices), "scale": self.genome.scale},
            "ingredients": [i.to_dict() for i in self.ingredients],
        }


def choice_counts(api_keys: Sequence[str]) -> Tuple[int, ...]:
    """Number of compatible excipients per role, in ROLE_ORDER."""
    return tuple(len(compatible_excipients(role, api_keys)) for role in ROLE_ORDER)


def excipient_weight(role: ExcipientRole, api_weight: float, scale: float) -> int:
    return round_half_up(api_weight * EXCIPIENT_RATIOS.get(role, 0.05) * scale)


def assemble_formulation(request: FormulationRequest, genome: Genome) -> Formulation:
    """Build the formulation a genome describes for the given request."""
    formulation = Formulation(
        request=request,
        genome=genome,
        manufacturing_process=MANUFACTURING_PROCESS.get(request.product_form, "Direct Compression"),
    )

    for api in request.apis:
        record = get_api(api.name)
        formulation.apis.append(ApiComponent(
            key=record.key,
            display_name=record.display_name,
            strength=float(api.strength),
            cost=api.strength * record.cost_per_mg,
        ))

    api_weight = formulation.api_weight
    keys = request.api_keys
    for idx, role in enumerate(ROLE_ORDER):
        available = compatible_excipients(role, keys)
        if not available:
            continue
        selected = available[genome.choices[idx] % len(available)]
        weight = excipient_weight(role, api_weight, genome.scale)
        formulation.excipients.append(ExcipientComponent(
            name=selected.name,
            role=role,
            weight=float(weight),
            cost=weight * selected.cost_per_mg,
            compatibility=selected.compatibility,
        ))

    return formulation


def build_formulation(request: FormulationRequest, variant: int) -> Formulation:
    """Deterministic variant: same choice index in every role, scale 0.8 + 0.1 * variant."""
    return assemble_formulation(request, Genome.for_variant(variant))
