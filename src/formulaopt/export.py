"""
Result Export
=============

Exports optimization runs as a JSON report or as CSV tables.

OUTPUT SCHEMA (JSON):
{
    "metadata": {
        "version": "...",
        "generated": "ISO timestamp",
        "disclaimer": "Heuristic demo results only",
        ...
    },
    "run": {
        "batch_number": "CF-YYYYMMDD-NNN",
        "algorithm": "variants|genetic|annealing",
        "request": {...},
        "summary": {...},
        "history": [...],
        "results": [
            {
                "formulation_name": "...",
                "overall_score": 0-100,
                "metrics": {...},
                "ingredients": [...],
                "cost_analysis": {...},
                "constraints": {...},
                "recommendations": [...]
            },
            ...
        ]
    }
}
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict

import pandas as pd

from . import __version__
from .optimization.results import FormulationResult, OptimizationRun


def create_metadata(
    name: str = "Formulation Optimization Report",
    description: str = "Heuristic formulation screening results"
) -> Dict[str, Any]:
    """
    Create metadata block for export.

    Args:
        name: Report name
        description: Report description

    Returns:
        Metadata dictionary
    """
    return {
        "version": __version__,
        "name": name,
        "description": description,
        "generated": datetime.now(timezone.utc).isoformat(),

        "disclaimer": (
            "DEMONSTRATION RESULTS ONLY. "
            "Scores are heuristic blends of fixed constants over a small "
            "static ingredient catalog. They are not based on solubility, "
            "compatibility or regulatory data and must not be used for "
            "formulation development decisions."
        ),

        "limitations": [
            "Static catalog of five APIs and a handful of excipients",
            "Excipient roles are the same for every product form",
            "No solubility, compatibility or stability physics",
            "No regulatory rule engine",
            "Quality tests are fixed placeholders",
        ],
    }


def build_report(run: OptimizationRun) -> Dict[str, Any]:
    names = " + ".join(a.display_name for a in run.request.apis)
    return {
        "metadata": create_metadata(
            description=f"{run.algorithm} optimization of {names} ({run.request.product_form.value})"
        ),
        "run": run.to_dict(),
    }


def report_to_json(run: OptimizationRun) -> str:
    return json.dumps(build_report(run), indent=2)


def export_run_to_json(run: OptimizationRun, output_path: str) -> str:
    """
    Write the full report to a JSON file.

    Returns:
        Path to exported file
    """
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_to_json(run))

    return output_path


def results_frame(run: OptimizationRun) -> pd.DataFrame:
    """One row per formulation with scores and costs."""
    rows = []
    for rank, r in enumerate(run.results, start=1):
        rows.append({
            "rank": rank,
            "formulation": r.short_name,
            "overall_score": r.overall_score,
            "cost_efficiency": r.metrics.cost,
            "performance": r.metrics.performance,
            "stability": r.metrics.stability,
            "compliance": r.metrics.compliance,
            "manufacturability": r.metrics.manufacturability,
            "total_weight_mg": r.total_weight,
            "total_cost": round(r.cost_analysis.total, 2),
            "savings": round(r.cost_analysis.savings, 2),
            "constraints_passed": r.constraints.passed,
        })
    return pd.DataFrame(rows)


def ingredients_frame(result: FormulationResult) -> pd.DataFrame:
    """Ingredient table with share of total mass."""
    df = pd.DataFrame([i.to_dict() for i in result.ingredients])
    if df.empty:
        return df
    total = df["amount"].sum()
    df["percentage"] = (df["amount"] / total * 100).round(1) if total else 0.0
    return df


def export_results_csv(run: OptimizationRun, output_path: str) -> str:
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    results_frame(run).to_csv(output_path, index=False)
    return output_path


def export_ingredients_csv(result: FormulationResult, output_path: str) -> str:
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    ingredients_frame(result).to_csv(output_path, index=False)
    return output_path
