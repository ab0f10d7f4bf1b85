from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from .catalog import list_apis
from .config import AppSettings, load_settings
from .errors import FormulaOptimizerError
from .export import export_run_to_json, export_results_csv
from .logging_config import setup_logging
from .models import FormulationRequest
from .optimization import available_algorithms, run_optimization
from .storage import FormulationStore, SessionStore


def load_request(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Request JSON not found: {path}")
    return json.loads(p.read_text())


def _print_run(run) -> None:
    best = run.best
    print(f"Batch: {run.batch_number} ({run.algorithm}"
          f"{', fallback' if run.fallback_used else ''})")
    if run.generations:
        print(f"Generations: {run.generations}, converged: {run.converged}")
    for r in run.results:
        m = r.metrics
        print(f"\n{r.name}  [score {r.overall_score}/100]")
        print(f"  {r.description}")
        print(f"  Cost {m.cost}% | Performance {m.performance}% | "
              f"Stability {m.stability}% | Compliance {m.compliance}%")
        for ing in r.ingredients:
            print(f"  - {ing.name}: {ing.amount:g} {ing.unit} (${ing.cost:.4f})")
        print(f"  Total cost: ${r.cost_analysis.total:.2f}, "
              f"estimated savings: ${r.cost_analysis.savings:.2f}")

    if best.constraints.violations:
        print("\nViolations:", file=sys.stderr)
        for v in best.constraints.violations:
            print(f"- {v}", file=sys.stderr)
    print("\nRecommendations:")
    for rec in best.recommendations:
        print(f"- {rec}")


def cmd_optimize(args: argparse.Namespace, settings: AppSettings) -> int:
    try:
        request = FormulationRequest.model_validate(load_request(args.input))
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Input validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    if args.seed is not None:
        settings = settings.model_copy(update={"seed": args.seed})

    try:
        run = run_optimization(request, args.algorithm, settings)
    except FormulaOptimizerError as e:
        print(f"Optimization error: {e}", file=sys.stderr)
        return 2

    if not args.no_save:
        session = SessionStore(settings.session_path)
        session.save_form_data(request.model_dump(mode="json"))
        session.save_results([r.to_dict() for r in run.results])
        formulation_id, result_id = FormulationStore(settings.store_path).save_run(run)
        print(f"Saved formulation #{formulation_id}, result #{result_id}")

    if args.output:
        export_run_to_json(run, args.output)
    if args.csv:
        export_results_csv(run, args.csv)

    _print_run(run)
    return 0 if run.best.constraints.passed else 1


def cmd_history(args: argparse.Namespace, settings: AppSettings) -> int:
    store = FormulationStore(settings.store_path)
    records = store.all("results", limit=args.limit)
    if not records:
        print("No saved results.")
        return 0
    for rec in records:
        summary = rec["data"].get("summary", {})
        print(f"#{rec['id']:>4}  {rec['created_at'][:19]}  "
              f"{summary.get('algorithm', '?'):<10} "
              f"{summary.get('best_score', '-')!s:>3}  {summary.get('best_name', '')}")
    return 0


def cmd_sync(args: argparse.Namespace, settings: AppSettings) -> int:
    n = FormulationStore(settings.store_path).sync_pending()
    print(f"Successfully synced {n} formulation(s)")
    return 0


def cmd_catalog(args: argparse.Namespace, settings: AppSettings) -> int:
    for api in list_apis():
        print(f"{api.key:<12} {api.display_name:<30} {api.category:<13} "
              f"{api.min_dose:g}-{api.max_dose:g} mg  ${api.price_per_kg:.2f}/kg")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formulaopt",
        description="Heuristic formulation optimizer (demonstration scoring only).",
    )
    parser.add_argument("--settings", help="Path to settings JSON.")
    parser.add_argument("--log-level", help="Override the logging level (DEBUG, INFO, ...).")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("optimize", help="Optimize a formulation request.")
    p.add_argument("--input", "-i", required=True, help="Path to request JSON.")
    p.add_argument(
        "--algorithm",
        "-a",
        choices=available_algorithms(),
        help="Search strategy (default from settings).",
    )
    p.add_argument("--seed", type=int, help="Random seed for reproducible searches.")
    p.add_argument("--output", "-o", help="Path to write the JSON report.")
    p.add_argument("--csv", help="Path to write the results summary CSV.")
    p.add_argument("--no-save", action="store_true", help="Do not persist the run locally.")
    p.set_defaults(func=cmd_optimize)

    p = sub.add_parser("history", help="List saved optimization results.")
    p.add_argument("--limit", type=int, default=10, help="Number of records to show.")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("sync", help="Mark pending formulations as synced.")
    p.set_defaults(func=cmd_sync)

    p = sub.add_parser("catalog", help="List known active ingredients.")
    p.set_defaults(func=cmd_catalog)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.settings)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Settings error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Settings validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    setup_logging(args.log_level or settings.log_level, settings.log_file)

    try:
        return args.func(args, settings)
    except FormulaOptimizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
