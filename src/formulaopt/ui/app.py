"""
Formula Optimizer - Streamlit UI
================================

Interactive front end for the formulation optimizer.

Sections:
1. Sidebar: search strategy and seed (remembered), saved data, history, sync
2. API database: reference table with add-to-formulation
3. Formulation form: APIs, budget, product form, goal
4. Results: ranked formulation cards, comparison charts, downloads
5. Score trend of saved runs
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from formulaopt.catalog import list_apis
from formulaopt.charts import (
    comparison_chart,
    cost_breakdown_chart,
    history_chart,
    ingredient_chart,
    radar_chart,
    score_trend_chart,
)
from formulaopt.config import AppSettings, apply_preferences, load_settings
from formulaopt.errors import FormulaOptimizerError
from formulaopt.export import ingredients_frame, report_to_json, results_frame
from formulaopt.logging_config import setup_logging
from formulaopt.models import (
    MAX_BUDGET,
    MAX_STRENGTH_MG,
    MIN_BUDGET,
    MIN_STRENGTH_MG,
    FormulationRequest,
    OptimizationGoal,
    ProductForm,
)
from formulaopt.optimization import available_algorithms, run_optimization
from formulaopt.optimization.results import FormulationResult, OptimizationRun, metric_class
from formulaopt.storage import FormulationStore, SessionStore

logger = logging.getLogger("formulaopt.ui")

# Page configuration
st.set_page_config(
    page_title="Formula Optimizer",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .metric-high { color: #28a745; font-weight: 600; }
    .metric-medium { color: #f39c12; font-weight: 600; }
    .metric-low { color: #dc3545; font-weight: 600; }
    .stPlotlyChart {
        background-color: white;
        border-radius: 5px;
        padding: 10px;
    }
</style>
""", unsafe_allow_html=True)

ALGORITHM_LABELS = {
    "variants": "Quick variants",
    "genetic": "Genetic algorithm",
    "annealing": "Simulated annealing",
}

DEFAULT_API_ROW = {"name": "paracetamol", "strength": 500}


@st.cache_resource
def get_settings() -> AppSettings:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    return settings


def get_store(settings: AppSettings) -> FormulationStore:
    return FormulationStore(settings.store_path)


def get_session(settings: AppSettings) -> SessionStore:
    return SessionStore(settings.session_path)


def init_state():
    if "api_rows" not in st.session_state:
        st.session_state["api_rows"] = [dict(DEFAULT_API_ROW)]
    st.session_state.setdefault("budget", 250)
    st.session_state.setdefault("product_form", ProductForm.TABLET.value)
    st.session_state.setdefault("primary_goal", OptimizationGoal.BALANCED.value)


def apply_form_data(form_data: Dict[str, Any]):
    """Restore a saved request into the form widgets."""
    rows = [
        {"name": a.get("name", "paracetamol"), "strength": int(a.get("strength", 500))}
        for a in form_data.get("apis", [])
    ]
    st.session_state["api_rows"] = rows or [dict(DEFAULT_API_ROW)]
    st.session_state["budget"] = int(form_data.get("budget", 250))
    st.session_state["product_form"] = form_data.get("product_form", ProductForm.TABLET.value)
    st.session_state["primary_goal"] = form_data.get("primary_goal", OptimizationGoal.BALANCED.value)
    reset_row_widgets()


def reset_row_widgets():
    # Row widgets are keyed by position; drop them so they re-read api_rows
    for key in list(st.session_state.keys()):
        if key.startswith("api_name_") or key.startswith("api_strength_"):
            del st.session_state[key]


def open_store(settings: AppSettings) -> Optional[FormulationStore]:
    """Record store, or None with an error banner when it cannot be opened."""
    try:
        return get_store(settings)
    except FormulaOptimizerError as e:
        st.error(f"Local store unavailable: {e}")
        return None


def saved_defaults(settings: AppSettings, store: Optional[FormulationStore]) -> AppSettings:
    if store is None:
        return settings
    try:
        return apply_preferences(settings, store.latest_settings())
    except FormulaOptimizerError as e:
        st.warning(f"Saved preferences not loaded: {e}")
        return settings


def render_sidebar(settings: AppSettings) -> Dict[str, Any]:
    with st.sidebar:
        store = open_store(settings)
        defaults = saved_defaults(settings, store)

        st.header("Optimizer")

        algorithms = available_algorithms()
        algorithm = st.radio(
            "Search strategy",
            algorithms,
            index=algorithms.index(defaults.default_algorithm),
            format_func=lambda a: ALGORITHM_LABELS.get(a, a),
        )
        use_seed = st.checkbox("Fixed random seed", value=defaults.seed is not None)
        seed = None
        if use_seed:
            seed = int(st.number_input(
                "Seed",
                min_value=0,
                value=42 if defaults.seed is None else defaults.seed,
                step=1,
            ))

        if store is not None:
            try:
                store.save_preferences({"default_algorithm": algorithm, "seed": seed})
            except FormulaOptimizerError as e:
                st.warning(f"Preferences not saved: {e}")

        st.divider()
        st.header("Saved Data")

        session = get_session(settings)
        if st.button("Load last submission", use_container_width=True):
            form_data = session.load_form_data()
            if form_data:
                apply_form_data(form_data)
                st.success("Previous form data loaded")
            else:
                st.info("No saved submission found")

        if store is not None:
            if st.button("🔄 Sync now", use_container_width=True):
                try:
                    n = store.sync_pending()
                    st.success(f"Successfully synced {n} formulation(s)")
                except FormulaOptimizerError as e:
                    st.error(f"Sync failed: {e}")

            with st.expander("History"):
                records = load_history(store, limit=10)
                if records:
                    st.dataframe(pd.DataFrame([
                        {
                            "id": r["id"],
                            "when": r["created_at"][:16].replace("T", " "),
                            "strategy": r["data"].get("algorithm"),
                            "best": r["data"].get("summary", {}).get("best_score"),
                        }
                        for r in records
                    ]), hide_index=True, use_container_width=True)
                else:
                    st.caption("No saved runs yet")

    return {"algorithm": algorithm, "seed": seed, "store": store}


def load_history(store: FormulationStore, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    try:
        return store.all("results", limit=limit)
    except FormulaOptimizerError as e:
        st.error(f"Could not read history: {e}")
        return []


def render_api_database():
    """Reference table of the catalog with an add-to-formulation action."""
    with st.expander("📚 API Database"):
        records = list_apis()
        df = pd.DataFrame([r.to_dict() for r in records])
        st.dataframe(
            df[[
                "display_name", "chemical_name", "formula", "molecular_weight",
                "aqueous_solubility", "stability", "storage", "price_per_kg", "typical_dose",
            ]].rename(columns={
                "display_name": "API",
                "chemical_name": "Chemical name",
                "formula": "Formula",
                "molecular_weight": "MW (g/mol)",
                "aqueous_solubility": "Solubility",
                "stability": "Stability",
                "storage": "Storage",
                "price_per_kg": "Price ($/kg)",
                "typical_dose": "Typical dose (mg)",
            }),
            hide_index=True,
            use_container_width=True,
        )

        names = {r.key: r for r in records}
        col1, col2 = st.columns([3, 1])
        with col1:
            key = st.selectbox(
                "API to add", list(names), format_func=lambda k: names[k].display_name,
                key="api_db_choice",
            )
        with col2:
            st.write("")
            if st.button("Add", key="api_db_add", use_container_width=True):
                st.session_state["api_rows"].append(
                    {"name": key, "strength": int(names[key].typical_dose)}
                )
                reset_row_widgets()
                st.rerun()


def render_form() -> Optional[Dict[str, Any]]:
    """Formulation input form. Returns the raw request on submit."""
    st.subheader("🧪 Formulation Input")

    api_keys = [a.key for a in list_apis()]
    api_names = {a.key: a.display_name for a in list_apis()}
    rows: List[Dict[str, Any]] = st.session_state["api_rows"]

    for i, row in enumerate(rows):
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            row["name"] = st.selectbox(
                f"API {i + 1}",
                api_keys,
                index=api_keys.index(row["name"]) if row["name"] in api_keys else 0,
                format_func=lambda k: api_names[k],
                key=f"api_name_{i}",
            )
        with col2:
            row["strength"] = st.number_input(
                "Strength (mg)",
                min_value=MIN_STRENGTH_MG,
                max_value=MAX_STRENGTH_MG,
                value=int(row["strength"]),
                step=5,
                key=f"api_strength_{i}",
            )
        with col3:
            st.write("")
            # At least one API row is always kept
            if len(rows) > 1 and st.button("✕", key=f"api_remove_{i}"):
                rows.pop(i)
                reset_row_widgets()
                st.rerun()

    if st.button("➕ Add API"):
        rows.append(dict(DEFAULT_API_ROW))
        st.rerun()

    col1, col2, col3 = st.columns(3)
    with col1:
        budget = st.slider("Target budget ($)", MIN_BUDGET, MAX_BUDGET, key="budget")
    with col2:
        forms = [f.value for f in ProductForm]
        product_form = st.selectbox(
            "Product form", forms, key="product_form", format_func=str.capitalize
        )
    with col3:
        goals = [g.value for g in OptimizationGoal]
        primary_goal = st.selectbox(
            "Primary goal", goals, key="primary_goal", format_func=str.capitalize
        )

    if not st.button("🚀 Optimize Formulation", type="primary", use_container_width=True):
        return None

    return {
        "apis": [{"name": r["name"], "strength": int(r["strength"]), "unit": "mg"} for r in rows],
        "budget": budget,
        "product_form": product_form,
        "primary_goal": primary_goal,
    }


def submit(raw: Dict[str, Any], options: Dict[str, Any], settings: AppSettings):
    try:
        request = FormulationRequest.model_validate(raw)
    except ValidationError as e:
        st.error("Please check the formulation input:")
        for err in e.errors():
            st.error(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        return

    run_settings = settings.model_copy(update={"seed": options["seed"]})
    session = get_session(settings)
    session.save_form_data(request.model_dump(mode="json"))

    with st.spinner("Optimizing formulation..."):
        try:
            run = run_optimization(request, options["algorithm"], run_settings)
        except FormulaOptimizerError as e:
            logger.exception("Optimization failed")
            st.error(f"Error optimizing formulation: {e}")
            return

    st.session_state["run"] = run
    session.save_results([r.to_dict() for r in run.results])
    store = options.get("store")
    if store is not None:
        try:
            store.save_run(run)
        except FormulaOptimizerError as e:
            st.warning(f"Results not saved locally: {e}")

    if run.fallback_used:
        st.warning(f"The {options['algorithm']} search failed; showing quick variants instead.")
    st.success("Formulation optimized successfully!")


def metric_html(label: str, value: int) -> str:
    return f"{label}: <span class='metric-{metric_class(value)}'>{value}%</span>"


def render_result_card(result: FormulationResult, index: int):
    with st.container(border=True):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.markdown(f"### {result.name}")
            st.caption(result.description)
        with col2:
            st.metric("Score", f"{result.overall_score}/100")

        m = result.metrics
        cols = st.columns(4)
        for col, (label, value) in zip(cols, [
            ("Cost Efficiency", m.cost),
            ("Performance", m.performance),
            ("Stability", m.stability),
            ("Compliance", m.compliance),
        ]):
            col.markdown(metric_html(label, value), unsafe_allow_html=True)

        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**Ingredients**")
            st.dataframe(ingredients_frame(result), hide_index=True, use_container_width=True)
            st.caption(f"{result.manufacturing_process}, total weight {result.total_weight:g} mg")
        with col2:
            cost = result.cost_analysis
            st.markdown("**Cost Analysis**")
            st.write(f"Material: ${cost.material:.2f}")
            st.write(f"Manufacturing: ${cost.manufacturing:.2f}")
            st.write(f"Total: ${cost.total:.2f} (typical ${cost.typical:.2f})")
            st.progress(cost.efficiency / 100, text=f"Cost efficiency {cost.efficiency}%")

        if result.constraints.passed:
            st.success("All constraints satisfied")
        else:
            for v in result.constraints.violations:
                st.error(v)

        st.markdown("**Recommendations**")
        for rec in result.recommendations:
            st.markdown(f"- {rec}")

        with st.expander("Quality tests and charts"):
            st.dataframe(pd.DataFrame(result.quality_tests), hide_index=True, use_container_width=True)
            col1, col2 = st.columns(2)
            with col1:
                st.plotly_chart(cost_breakdown_chart(result), use_container_width=True,
                                key=f"cost_{index}")
            with col2:
                st.plotly_chart(ingredient_chart(result), use_container_width=True,
                                key=f"ingredients_{index}")


def render_results(run: OptimizationRun):
    st.divider()
    st.subheader("📊 Optimization Results")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Batch", run.batch_number)
    col2.metric("Strategy", ALGORITHM_LABELS.get(run.algorithm, run.algorithm))
    col3.metric("Best score", f"{run.best.overall_score}/100")
    col4.metric("Time", f"{run.elapsed_sec:.2f} s")

    for i, result in enumerate(run.results):
        render_result_card(result, i)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(comparison_chart(run.results), use_container_width=True)
    with col2:
        st.plotly_chart(radar_chart(run.results), use_container_width=True)

    if run.history:
        x_title = "Iteration" if run.algorithm == "annealing" else "Generation"
        st.plotly_chart(history_chart(run.history, x_title), use_container_width=True)

    st.markdown("**Export**")
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "📥 Download report (JSON)",
            data=report_to_json(run),
            file_name=f"{run.batch_number}.json",
            mime="application/json",
            use_container_width=True,
        )
    with col2:
        st.download_button(
            "📥 Download summary (CSV)",
            data=results_frame(run).to_csv(index=False),
            file_name=f"{run.batch_number}.csv",
            mime="text/csv",
            use_container_width=True,
        )


def render_help():
    with st.expander("❓ Help"):
        st.markdown("""
        ### How to use

        1. Add one or more active ingredients (APIs) with their strength in mg
        2. Set the target budget and choose the product form
        3. Pick the primary goal; it sets how the four scores are weighted
        4. Click **Optimize Formulation**

        ### Search strategies

        - **Quick variants**: three fixed variants (Standard, Enhanced, Economy)
        - **Genetic algorithm**: evolves excipient choices and amounts
        - **Simulated annealing**: explores neighbouring formulations

        ### Scores

        Scores are heuristic and for demonstration only. Values of 80% or
        more are shown green, 60% or more amber, anything lower red.
        """)


def render_score_trend(store: FormulationStore):
    with st.expander("📈 Score Trend"):
        records = load_history(store, limit=50)
        if records:
            st.plotly_chart(score_trend_chart(records), use_container_width=True)
        else:
            st.caption("Run the optimizer to start a score history")


def main():
    """Main application."""
    st.title("🧪 Formula Optimizer")
    st.caption("Heuristic excipient selection and formulation scoring")

    settings = get_settings()
    init_state()
    options = render_sidebar(settings)

    render_api_database()
    raw = render_form()
    if raw is not None:
        submit(raw, options, settings)

    run = st.session_state.get("run")
    if run is not None:
        render_results(run)
    else:
        timestamp = get_session(settings).results_timestamp()
        if timestamp:
            st.info(f"Last results saved {timestamp[:16].replace('T', ' ')} UTC. "
                    "Load the last submission and optimize to view them again.")

    if options["store"] is not None:
        render_score_trend(options["store"])

    render_help()


if __name__ == "__main__":
    main()
