from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, Field, conint, confloat, field_validator

from .catalog import API_CATALOG

MIN_STRENGTH_MG = 1
MAX_STRENGTH_MG = 2000
MIN_BUDGET = 50
MAX_BUDGET = 500


class ProductForm(str, Enum):
    TABLET = "tablet"
    CAPSULE = "capsule"
    SYRUP = "syrup"


class OptimizationGoal(str, Enum):
    BALANCED = "balanced"
    COST = "cost"
    PERFORMANCE = "performance"
    STABILITY = "stability"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ApiInput(BaseModel):
    name: str = Field(..., description="Catalog key of the active ingredient (e.g. 'paracetamol').")
    strength: conint(ge=MIN_STRENGTH_MG, le=MAX_STRENGTH_MG) = Field(
        ..., description="Strength per dosage unit (mg)."
    )
    unit: Literal["mg"] = Field("mg", description="Strength unit.")

    @field_validator("name")
    @classmethod
    def _known_api(cls, v: str) -> str:
        key = v.strip().lower()
        if key not in API_CATALOG:
            known = ", ".join(sorted(API_CATALOG))
            raise ValueError(f"unknown API '{v}' (expected one of: {known})")
        return key

    @property
    def display_name(self) -> str:
        return API_CATALOG[self.name].display_name


class FormulationRequest(BaseModel):
    apis: List[ApiInput] = Field(..., min_length=1, description="Active ingredients, at least one.")
    budget: confloat(ge=MIN_BUDGET, le=MAX_BUDGET) = Field(
        250.0, description="Target budget (USD) used for cost efficiency."
    )
    product_form: ProductForm = Field(ProductForm.TABLET, description="Physical delivery format.")
    primary_goal: OptimizationGoal = Field(OptimizationGoal.BALANCED, description="Score weighting profile.")
    timestamp: str = Field(default_factory=_utc_now, description="Submission time (ISO 8601).")

    @property
    def api_keys(self) -> List[str]:
        return [a.name for a in self.apis]

    @property
    def total_api_weight(self) -> float:
        return float(sum(a.strength for a in self.apis))
