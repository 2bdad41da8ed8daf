"""Chart generation using Plotly."""

from typing import List

import plotly.graph_objects as go

from ..simulation.runner import YearRecord

THEME = {
    "text": "#1f2a1c",
    "text_secondary": "#5b6b57",
    "grid": "rgba(91, 107, 87, 0.15)",
    "bamboo": "#4c9a2a",
    "bamboo_fill": "rgba(76, 154, 42, 0.15)",
    "carbon": "#2a6f9a",
    "carbon_fill": "rgba(42, 111, 154, 0.15)",
    "earth": "#a0692b",
    "slate": "#5f6368",
}


def apply_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply the workbench layout: compact, light background, unified hover."""
    fig.update_layout(
        title={
            "text": title,
            "x": 0,
            "xanchor": "left",
            "font": {"size": 13, "color": THEME["text_secondary"]}
        },
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_white",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
        font={"color": THEME["text"], "size": 11},
        xaxis=dict(gridcolor=THEME["grid"]),
        yaxis=dict(gridcolor=THEME["grid"])
    )


def create_fund_chart(year_series: List[YearRecord]) -> go.Figure:
    """Fund cash at year end against outstanding loans."""
    years = [r.year for r in year_series]

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=years,
        y=[r.fund_balance_end for r in year_series],
        name='Fund cash (end of year)',
        mode='lines+markers',
        line=dict(color=THEME["bamboo"], width=2),
        fill='tozeroy',
        fillcolor=THEME["bamboo_fill"]
    ))

    fig.add_trace(go.Scatter(
        x=years,
        y=[r.outstanding_loans for r in year_series],
        name='Outstanding loans',
        mode='lines',
        line=dict(color=THEME["earth"], width=2, dash='dot')
    ))
    apply_layout(fig, "Revolving Fund", "Year", "Amount")

    return fig


def create_farmers_chart(year_series: List[YearRecord]) -> go.Figure:
    """New farmers per year (bars) with the cumulative total (line)."""
    years = [r.year for r in year_series]

    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=years,
        y=[r.new_farmers for r in year_series],
        name='New farmers',
        marker_color=THEME["bamboo_fill"],
        marker_line_color=THEME["bamboo"],
        marker_line_width=1
    ))

    fig.add_trace(go.Scatter(
        x=years,
        y=[r.total_farmers for r in year_series],
        name='Total farmers',
        mode='lines+markers',
        line=dict(color=THEME["bamboo"], width=2)
    ))
    apply_layout(fig, "Farmers Financed", "Year", "Farmers")

    return fig


def create_revenue_chart(year_series: List[YearRecord]) -> go.Figure:
    """Stacked carbon and bamboo revenue with repayments overlaid."""
    years = [r.year for r in year_series]

    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=years,
        y=[r.carbon_revenue for r in year_series],
        name='Carbon revenue',
        marker_color=THEME["carbon"]
    ))

    fig.add_trace(go.Bar(
        x=years,
        y=[r.bamboo_revenue for r in year_series],
        name='Bamboo revenue',
        marker_color=THEME["bamboo"]
    ))

    fig.add_trace(go.Scatter(
        x=years,
        y=[r.total_repayments for r in year_series],
        name='Repayments',
        mode='lines+markers',
        line=dict(color=THEME["earth"], width=2)
    ))
    fig.update_layout(barmode='stack')
    apply_layout(fig, "Revenue and Repayments", "Year", "Amount")

    return fig
