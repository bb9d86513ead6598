# src/visualization.py
import plotly.graph_objects as go

from config import (
    BAR_COLOR,
    CUMULATIVE_COLOR,
    EXPORT_HEIGHT,
    EXPORT_WIDTH,
    GRID_COLOR,
    TEXT_COLOR,
    THRESHOLD_COLOR,
)
from pareto import ParetoChartData


def format_threshold(value: float) -> str:
    """80.0 -> '80', 72.5 -> '72.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# --- Pareto Chart ---

def pareto_plot(chart: ParetoChartData) -> go.Figure | None:
    """
    Plot a Pareto chart: bars for each category's percentage (left axis),
    a line for the cumulative percentage (right axis) and a dashed
    reference line at the threshold.
    """
    if chart is None or not chart.results:
        return None

    labels = [r.label for r in chart.results]
    percentages = [r.percentage for r in chart.results]
    cumulative = [r.cumulative_percentage for r in chart.results]

    fig = go.Figure()

    # Bars (share of total)
    fig.add_trace(go.Bar(
        x=labels,
        y=percentages,
        name="Percentage",
        marker_color=BAR_COLOR,
        yaxis="y",
        hovertemplate="%{x}<br>Percentage: %{y:.2f}%<extra></extra>",
    ))

    # Cumulative % line (right axis)
    fig.add_trace(go.Scatter(
        x=labels,
        y=cumulative,
        name="Cumulative %",
        mode="lines+markers",
        yaxis="y2",
        line=dict(color=CUMULATIVE_COLOR, width=3, shape="spline"),
        marker=dict(color=CUMULATIVE_COLOR, size=10),
        hovertemplate="%{x}<br>Cumulative %: %{y:.2f}%<extra></extra>",
    ))

    # Threshold reference line on the cumulative axis
    fig.add_shape(
        type="line", xref="paper", x0=0, x1=1,
        yref="y2", y0=chart.threshold, y1=chart.threshold,
        line=dict(color=THRESHOLD_COLOR, width=2, dash="dash"),
    )
    fig.add_annotation(
        xref="paper", x=1, xanchor="left",
        yref="y2", y=chart.threshold,
        text=f"{format_threshold(chart.threshold)}% Threshold",
        showarrow=False,
        font=dict(color=THRESHOLD_COLOR, size=12),
    )

    upper = max(110.0, chart.threshold * 1.1)
    lower = min(0.0, chart.threshold * 1.1)

    fig.update_layout(
        width=EXPORT_WIDTH,
        height=EXPORT_HEIGHT,
        template="plotly_white",
        xaxis=dict(
            title=chart.x_label,
            tickfont=dict(color=TEXT_COLOR, size=12),
            gridcolor=GRID_COLOR,
            automargin=True,
        ),
        yaxis=dict(
            title=dict(text=f"{chart.y_label} (%)", font=dict(color=TEXT_COLOR)),
            tickfont=dict(color=TEXT_COLOR, size=12),
            gridcolor=GRID_COLOR,
            griddash="dash",
        ),
        yaxis2=dict(
            title=dict(text="Cumulative (%)", font=dict(color=CUMULATIVE_COLOR)),
            tickfont=dict(color=CUMULATIVE_COLOR, size=12),
            overlaying="y",
            side="right",
            range=[lower, upper],
            showgrid=False,
        ),
        bargap=0.2,
        margin=dict(l=80, r=140, t=40, b=80),
        legend=dict(orientation="h", yanchor="top", y=-0.15, xanchor="center", x=0.5),
    )
    return fig
