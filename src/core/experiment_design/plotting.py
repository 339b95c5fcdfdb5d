"""
Plotting utilities for experiment design allocations.

All plots use the same white-background styling and color scheme.
"""

from typing import Dict

import numpy as np
import plotly.graph_objects as go

from src.core.experiment_design.solve import DesignResult

# ==================== PLOT STYLING ====================

CRITERION_COLORS: Dict[str, str] = {
    "A-optimal": "#1f77b4",
    "E-optimal": "#ff7f0e",
    "D-optimal": "#2ca02c",
}


def apply_plot_style(fig: go.Figure) -> go.Figure:
    """
    Apply consistent formatting to plotly figures.

    Parameters
    ----------
    fig : go.Figure
        Plotly figure to style

    Returns
    -------
    go.Figure
        Styled figure with white background, black text, and grid lines
    """
    fig.update_layout(
        plot_bgcolor="white",
        paper_bgcolor="white",
        font=dict(family="Arial, sans-serif", size=11, color="#000000"),
        margin=dict(l=50, r=30, t=30, b=50, pad=5),
    )
    fig.update_xaxes(
        showgrid=False, linecolor="#000000", ticks="outside", mirror=True
    )
    fig.update_yaxes(
        showgrid=True,
        gridwidth=0.5,
        gridcolor="#e0e0e0",
        linecolor="#000000",
        ticks="outside",
        mirror=True,
    )
    return fig


# ==================== ALLOCATION PLOTS ====================


def plot_allocations(results: Dict[str, DesignResult]) -> go.Figure:
    """
    Grouped bar chart of allocations, one trace per optimal result.

    Parameters
    ----------
    results : dict
        Criterion key -> DesignResult (e.g. output of run_design_study).
        Non-optimal results are skipped.

    Returns
    -------
    go.Figure
        Bar chart with experiment index on x and allocation on y; a dashed
        line marks the largest per-experiment cap.

    Examples
    --------
    >>> results = run_design_study(vectors, budget=12, cap=3)
    >>> fig = plot_allocations(results)
    >>> fig.show()
    """
    fig = go.Figure()
    max_cap = None

    for result in results.values():
        if not result.is_optimal:
            continue

        experiments = np.arange(1, len(result.allocation) + 1)
        fig.add_trace(
            go.Bar(
                x=experiments,
                y=result.allocation,
                name=result.criterion_type,
                marker_color=CRITERION_COLORS.get(result.criterion_type, "#7f7f7f"),
                hovertemplate="Experiment %{x}<br>Allocation %{y:.3f}<extra></extra>",
            )
        )
        cap = float(np.max(result.caps))
        max_cap = cap if max_cap is None else max(max_cap, cap)

    if max_cap is not None:
        fig.add_hline(
            y=max_cap, line_dash="dash", line_color="#7f7f7f", annotation_text="cap"
        )

    fig.update_layout(
        barmode="group",
        xaxis_title="Experiment",
        yaxis_title="Allocation",
        legend_title="Criterion",
    )
    return apply_plot_style(fig)
