"""
API Catalog
===========

Static reference data for the active pharmaceutical ingredients the
optimizer knows about. Costs and dose windows drive scoring; the
physico-chemical fields are display-only.
"""

from dataclasses import dataclass
from typing import Dict, List

from ..errors import UnknownIngredientError


@dataclass(frozen=True)
class ApiRecord:
    """
    Active pharmaceutical ingredient.

    Attributes:
        key: Catalog key used in requests
        display_name: Name shown in forms and reports
        category: Therapeutic class
        solubility: Qualitative aqueous solubility
        stability: Qualitative stability note (scored by keyword)
        compatibility: Excipients reported compatible
        preferred_excipients: Suggested excipients per role
        cost_per_mg: Material cost (USD/mg)
        min_dose: Lower bound of the usual strength (mg)
        max_dose: Upper bound of the usual strength (mg)
    """
    key: str
    display_name: str
    category: str
    solubility: str
    stability: str
    compatibility: List[str]
    preferred_excipients: Dict[str, List[str]]
    cost_per_mg: float
    min_dose: float
    max_dose: float

    # Reference data
    chemical_name: str = ""
    formula: str = ""
    molecular_weight: float = 0.0
    aqueous_solubility: str = ""
    price_per_kg: float = 0.0
    storage: str = "Room temperature"
    typical_dose: float = 100.0

    @property
    def short_name(self) -> str:
        return self.display_name.split(" ")[0]

    def in_dose_range(self, strength: float) -> bool:
        return self.min_dose <= strength <= self.max_dose

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "display_name": self.display_name,
            "category": self.category,
            "chemical_name": self.chemical_name,
            "formula": self.formula,
            "molecular_weight": self.molecular_weight,
            "solubility": self.solubility,
            "aqueous_solubility": self.aqueous_solubility,
            "stability": self.stability,
            "storage": self.storage,
            "cost_per_mg": self.cost_per_mg,
            "price_per_kg": self.price_per_kg,
            "min_dose": self.min_dose,
            "max_dose": self.max_dose,
            "typical_dose": self.typical_dose,
        }


API_CATALOG: Dict[str, ApiRecord] = {
    "paracetamol": ApiRecord(
        key="paracetamol",
        display_name="Paracetamol (Acetaminophen)",
        category="Analgesic",
        solubility="Sparingly soluble in water",
        stability="Stable under normal conditions",
        compatibility=["Starch", "Povidone", "Magnesium stearate"],
        preferred_excipients={
            "binder": ["Povidone", "HPMC"],
            "disintegrant": ["Sodium starch glycolate", "Croscarmellose sodium"],
            "lubricant": ["Magnesium stearate", "Stearic acid"],
            "filler": ["Microcrystalline cellulose", "Lactose"],
        },
        cost_per_mg=0.0012,
        min_dose=250,
        max_dose=1000,
        chemical_name="Acetaminophen",
        formula="C8H9NO2",
        molecular_weight=151.16,
        aqueous_solubility="14 mg/mL (25°C)",
        price_per_kg=45.00,
        typical_dose=500,
    ),
    "ibuprofen": ApiRecord(
        key="ibuprofen",
        display_name="Ibuprofen",
        category="NSAID",
        solubility="Practically insoluble in water",
        stability="Light sensitive",
        compatibility=["Microcrystalline cellulose", "Colloidal silicon dioxide"],
        preferred_excipients={
            "binder": ["Povidone", "HPMC"],
            "disintegrant": ["Croscarmellose sodium", "Sodium starch glycolate"],
            "lubricant": ["Magnesium stearate", "Talc"],
            "filler": ["Microcrystalline cellulose", "Dibasic calcium phosphate"],
        },
        cost_per_mg=0.0015,
        min_dose=200,
        max_dose=800,
        chemical_name="2-(4-isobutylphenyl)propanoic acid",
        formula="C13H18O2",
        molecular_weight=206.28,
        aqueous_solubility="0.021 mg/mL (25°C)",
        price_per_kg=62.00,
        typical_dose=400,
    ),
    "amoxicillin": ApiRecord(
        key="amoxicillin",
        display_name="Amoxicillin Trihydrate",
        category="Antibiotic",
        solubility="Slightly soluble in water",
        stability="Moisture sensitive",
        compatibility=["Microcrystalline cellulose", "Magnesium stearate"],
        preferred_excipients={
            "binder": ["Povidone", "HPMC"],
            "disintegrant": ["Sodium starch glycolate", "Croscarmellose sodium"],
            "lubricant": ["Magnesium stearate", "Stearic acid"],
            "filler": ["Microcrystalline cellulose", "Lactose"],
        },
        cost_per_mg=0.002,
        min_dose=250,
        max_dose=1000,
        chemical_name="Amoxicillin Trihydrate",
        formula="C16H19N3O5S·3H2O",
        molecular_weight=419.45,
        aqueous_solubility="3.4 mg/mL (25°C)",
        price_per_kg=120.00,
        storage="2-8°C",
        typical_dose=500,
    ),
    "metformin": ApiRecord(
        key="metformin",
        display_name="Metformin HCl",
        category="Antidiabetic",
        solubility="Freely soluble in water",
        stability="Stable",
        compatibility=["Povidone", "Magnesium stearate"],
        preferred_excipients={
            "binder": ["Povidone", "HPMC"],
            "disintegrant": ["Croscarmellose sodium"],
            "lubricant": ["Magnesium stearate"],
            "filler": ["Microcrystalline cellulose"],
        },
        cost_per_mg=0.0008,
        min_dose=500,
        max_dose=1000,
        chemical_name="Metformin Hydrochloride",
        formula="C4H11N5·HCl",
        molecular_weight=165.62,
        aqueous_solubility="300 mg/mL (25°C)",
        price_per_kg=28.00,
        typical_dose=850,
    ),
    "omeprazole": ApiRecord(
        key="omeprazole",
        display_name="Omeprazole",
        category="PPI",
        solubility="Very slightly soluble in water",
        stability="Acid labile",
        compatibility=["Mannitol", "Sodium lauryl sulfate"],
        preferred_excipients={
            "binder": ["HPMC", "Povidone"],
            "disintegrant": ["Croscarmellose sodium"],
            "lubricant": ["Magnesium stearate", "Talc"],
            "filler": ["Mannitol", "Microcrystalline cellulose"],
        },
        cost_per_mg=0.003,
        min_dose=10,
        max_dose=40,
        chemical_name="5-methoxy-2-[(4-methoxy-3,5-dimethylpyridin-2-yl)methylsulfinyl]-1H-benzimidazole",
        formula="C17H19N3O3S",
        molecular_weight=345.42,
        aqueous_solubility="0.5 mg/mL (25°C)",
        price_per_kg=85.00,
        storage="Protect from light",
        typical_dose=20,
    ),
}


def get_api(key: str) -> ApiRecord:
    """Look up an API by catalog key (case-insensitive)."""
    record = API_CATALOG.get(key.strip().lower())
    if record is None:
        raise UnknownIngredientError(key)
    return record


def list_apis() -> List[ApiRecord]:
    return list(API_CATALOG.values())
