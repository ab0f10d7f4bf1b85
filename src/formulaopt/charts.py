"""
Chart Builders
==============

Plotly figures for the results view:
- Metric comparison across formulations (grouped bars)
- Performance radar
- Cost breakdown (doughnut)
- Ingredient composition (pie)
- Optimization score history (line)
- Best score of saved runs over time (line)
"""

from typing import Any, Dict, List, Sequence

import plotly.graph_objects as go

from .optimization.results import FormulationResult

COLORS = {
    "primary": "#3498db",
    "secondary": "#2ecc71",
    "tertiary": "#e74c3c",
    "quaternary": "#f39c12",
    "grid": "rgba(0, 0, 0, 0.1)",
    "text": "#333",
}

PALETTE = [
    "#3498db", "#2ecc71", "#e74c3c", "#f39c12",
    "#9b59b6", "#1abc9c", "#34495e", "#e67e22",
]

METRIC_LABELS = [
    ("cost", "Cost Efficiency"),
    ("performance", "Performance"),
    ("stability", "Stability"),
    ("compliance", "Compliance"),
]

_FONT = dict(family="Inter, sans-serif", size=12, color=COLORS["text"])


def color_with_opacity(index: int, opacity: float = 1.0) -> str:
    hex_color = PALETTE[index % len(PALETTE)].lstrip("#")
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {opacity})"


def comparison_chart(results: Sequence[FormulationResult]) -> go.Figure:
    """Grouped bars of the four primary metrics per formulation."""
    labels = [r.short_name for r in results]
    fig = go.Figure()

    for (key, title), color in zip(METRIC_LABELS, PALETTE):
        fig.add_trace(go.Bar(
            x=labels,
            y=[getattr(r.metrics, key) for r in results],
            name=title,
            marker_color=color,
        ))

    fig.update_layout(
        barmode="group",
        title="Formulation Comparison",
        yaxis=dict(title="Score (%)", range=[0, 100], gridcolor=COLORS["grid"]),
        legend=dict(orientation="h", yanchor="bottom", y=1.02),
        font=_FONT,
        height=400,
    )
    return fig


def radar_chart(results: Sequence[FormulationResult]) -> go.Figure:
    """Radar of the four metrics plus overall score, one trace per formulation."""
    axes = [title for _, title in METRIC_LABELS] + ["Overall Score"]
    fig = go.Figure()

    for i, r in enumerate(results):
        values = [getattr(r.metrics, key) for key, _ in METRIC_LABELS] + [r.overall_score]
        fig.add_trace(go.Scatterpolar(
            r=values + values[:1],
            theta=axes + axes[:1],
            fill="toself",
            name=f"Formulation {i + 1}",
            line=dict(color=color_with_opacity(i)),
            fillcolor=color_with_opacity(i, 0.2),
        ))

    fig.update_layout(
        title="Performance Radar Chart",
        polar=dict(radialaxis=dict(visible=True, range=[0, 100])),
        font=_FONT,
        height=400,
    )
    return fig


def cost_breakdown_chart(result: FormulationResult) -> go.Figure:
    """Doughnut of material, manufacturing and savings."""
    cost = result.cost_analysis
    fig = go.Figure(data=[
        go.Pie(
            labels=["Material Cost", "Manufacturing Cost", "Savings"],
            values=[cost.material, cost.manufacturing, cost.savings],
            hole=0.5,
            marker=dict(colors=[COLORS["primary"], COLORS["tertiary"], COLORS["secondary"]]),
            hovertemplate="%{label}: $%{value:.2f} (%{percent})<extra></extra>",
        )
    ])
    fig.update_layout(title="Cost Breakdown Analysis", font=_FONT, height=350)
    return fig


def ingredient_chart(result: FormulationResult) -> go.Figure:
    """Composition by mass, APIs first."""
    ingredients = sorted(result.ingredients, key=lambda i: i.type != "api")
    fig = go.Figure(data=[
        go.Pie(
            labels=[i.name for i in ingredients],
            values=[i.amount for i in ingredients],
            marker=dict(colors=[color_with_opacity(n, 0.8) for n in range(len(ingredients))]),
            hovertemplate="%{label}: %{value}mg (%{percent})<extra></extra>",
        )
    ])
    fig.update_layout(title="Formulation Composition", font=_FONT, height=350)
    return fig


def history_chart(history: List[float], x_title: str = "Generation") -> go.Figure:
    """Best score per generation / iteration."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(1, len(history) + 1)),
        y=list(history),
        mode="lines",
        name="Optimization Score",
        line=dict(color=COLORS["primary"], width=2),
        fill="tozeroy",
        fillcolor="rgba(52, 152, 219, 0.1)",
    ))
    fig.update_layout(
        title="Optimization Progress",
        xaxis_title=x_title,
        yaxis=dict(title="Score", gridcolor=COLORS["grid"]),
        font=_FONT,
        height=300,
    )
    return fig


def score_trend_chart(records: Sequence[Dict[str, Any]]) -> go.Figure:
    """
    Best overall score of saved runs, oldest first.

    Args:
        records: Result records as returned by FormulationStore.all("results")
    """
    points = []
    for rec in records:
        summary = rec["data"].get("summary", {})
        if summary.get("best_score") is None:
            continue
        points.append((rec["created_at"], summary["best_score"], summary.get("algorithm", "")))
    points.sort(key=lambda p: p[0])

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[p[0] for p in points],
        y=[p[1] for p in points],
        mode="lines+markers",
        name="Best Score",
        text=[p[2] for p in points],
        hovertemplate="%{x}<br>Score %{y} (%{text})<extra></extra>",
        line=dict(color=COLORS["secondary"], width=2),
    ))
    fig.update_layout(
        title="Optimization Score Trend",
        xaxis_title="Run",
        yaxis=dict(title="Best Score", range=[0, 100], gridcolor=COLORS["grid"]),
        font=_FONT,
        height=300,
    )
    return fig
