"""
Excipient Catalog
=================

Functional additives grouped by role. Costs are USD per gram; the
compatibility list names the API keys each excipient is known to work with.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple


class ExcipientRole(Enum):
    """Functional role of an excipient in the blend."""
    BINDER = "binder"
    DISINTEGRANT = "disintegrant"
    LUBRICANT = "lubricant"
    FILLER = "filler"


# Selection order used when assembling a formulation
ROLE_ORDER: Tuple[ExcipientRole, ...] = (
    ExcipientRole.BINDER,
    ExcipientRole.DISINTEGRANT,
    ExcipientRole.LUBRICANT,
    ExcipientRole.FILLER,
)

# Excipients considered harder to process (manufacturability penalty)
COMPLEX_EXCIPIENTS = frozenset({"HPMC", "Croscarmellose sodium"})

PROHIBITED_EXCIPIENTS = frozenset({"Prohibited Substance"})

_ALL_APIS = ("paracetamol", "ibuprofen", "amoxicillin", "metformin", "omeprazole")


@dataclass(frozen=True)
class ExcipientRecord:
    name: str
    role: ExcipientRole
    cost_per_g: float
    compatibility: Tuple[str, ...]

    @property
    def cost_per_mg(self) -> float:
        return self.cost_per_g / 1000.0

    def is_compatible_with(self, api_keys: Iterable[str]) -> bool:
        return any(k in self.compatibility for k in api_keys)


def _dedupe(records: List[ExcipientRecord]) -> List[ExcipientRecord]:
    seen = set()
    unique = []
    for r in records:
        if (r.role, r.name) in seen:
            continue
        seen.add((r.role, r.name))
        unique.append(r)
    return unique


EXCIPIENT_CATALOG: Dict[ExcipientRole, List[ExcipientRecord]] = {
    ExcipientRole.BINDER: _dedupe([
        ExcipientRecord("Povidone", ExcipientRole.BINDER, 0.05, _ALL_APIS),
        ExcipientRecord("HPMC", ExcipientRole.BINDER, 0.08, _ALL_APIS),
        ExcipientRecord("Gelatin", ExcipientRole.BINDER, 0.04, ("paracetamol", "amoxicillin")),
    ]),
    ExcipientRole.DISINTEGRANT: _dedupe([
        ExcipientRecord(
            "Sodium starch glycolate", ExcipientRole.DISINTEGRANT, 0.07,
            ("paracetamol", "ibuprofen", "amoxicillin", "metformin"),
        ),
        ExcipientRecord("Croscarmellose sodium", ExcipientRole.DISINTEGRANT, 0.09, _ALL_APIS),
        ExcipientRecord("Croscarmellose sodium", ExcipientRole.DISINTEGRANT, 0.09, _ALL_APIS),
    ]),
    ExcipientRole.LUBRICANT: _dedupe([
        ExcipientRecord("Magnesium stearate", ExcipientRole.LUBRICANT, 0.03, _ALL_APIS),
        ExcipientRecord("Talc", ExcipientRole.LUBRICANT, 0.02, ("ibuprofen", "omeprazole")),
        ExcipientRecord("Stearic acid", ExcipientRole.LUBRICANT, 0.04, ("paracetamol", "amoxicillin")),
    ]),
    ExcipientRole.FILLER: _dedupe([
        ExcipientRecord("Microcrystalline cellulose", ExcipientRole.FILLER, 0.02, _ALL_APIS),
        ExcipientRecord("Lactose", ExcipientRole.FILLER, 0.015, ("paracetamol", "amoxicillin")),
        ExcipientRecord("Dibasic calcium phosphate", ExcipientRole.FILLER, 0.025, ("ibuprofen",)),
        ExcipientRecord("Mannitol", ExcipientRole.FILLER, 0.06, ("omeprazole",)),
    ]),
}


def excipients_for(role: ExcipientRole) -> List[ExcipientRecord]:
    return list(EXCIPIENT_CATALOG[role])


def compatible_excipients(role: ExcipientRole, api_keys: Iterable[str]) -> List[ExcipientRecord]:
    """Excipients of ``role`` compatible with at least one of ``api_keys``, in catalog order."""
    keys = list(api_keys)
    return [e for e in EXCIPIENT_CATALOG[role] if e.is_compatible_with(keys)]


def find_excipient(name: str) -> ExcipientRecord:
    for records in EXCIPIENT_CATALOG.values():
        for r in records:
            if r.name == name:
                return r
    raise KeyError(name)
