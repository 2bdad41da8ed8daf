"""
Streamlit application for the Bamboo Fund Workbench.

Interactive front end for the revolving-fund simulation: every input change
re-runs the engine and refreshes the impact metrics, charts and yearly table.

Run locally with: streamlit run streamlit_app.py
"""

from pathlib import Path
from typing import Any, Dict

import pandas as pd
import streamlit as st

from bamboofund.analysis.scenarios import SCENARIO_LIBRARY, ScenarioRunner
from bamboofund.analysis.sensitivity import SensitivityAnalyzer, compute_parameter_importance
from bamboofund.config.loader import config_from_flat_dict, load_config
from bamboofund.config.options import INPUT_LABELS, INPUT_OPTIONS, closest_option
from bamboofund.config.schema import Config, InvalidConfiguration
from bamboofund.reporting.charts import create_farmers_chart, create_fund_chart, create_revenue_chart
from bamboofund.reporting.export import export_csv, export_json
from bamboofund.reporting.formatting import format_summary, format_year_series
from bamboofund.simulation.runner import SimulationRunner
from bamboofund.validation.sanity_checks import validate_simulation_results

st.set_page_config(
    page_title="Bamboo Fund Workbench",
    page_icon="🎋",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    """Seed the input record from the packaged defaults."""
    if "inputs" not in st.session_state:
        defaults = load_config().to_flat_dict()
        st.session_state.inputs = {
            key: closest_option(key, value) for key, value in defaults.items()
        }


@st.cache_data(show_spinner=False)
def _run_simulation_cached(inputs: Dict[str, Any]):
    """Run the engine for one input record."""
    config = config_from_flat_dict(inputs)
    result = SimulationRunner(config).run()
    return result, validate_simulation_results(result)


@st.cache_data(show_spinner=False)
def _run_tornado_cached(config_dict: Dict[str, Any], metric: str):
    """Compute tornado chart data with caching."""
    analyzer = SensitivityAnalyzer(Config.from_dict(config_dict))
    return analyzer.compute_tornado(target_metric=metric)


def render_inputs():
    """Dropdown inputs, one per configuration field."""
    with st.sidebar:
        st.markdown("## Inputs")
        for key, options in INPUT_OPTIONS.items():
            current = st.session_state.inputs[key]
            st.session_state.inputs[key] = st.selectbox(
                INPUT_LABELS[key],
                options,
                index=options.index(current) if current in options else 0,
                key=f"input_{key}"
            )


def render_summary(result):
    """Program impact metrics."""
    st.markdown("## Program Impact")
    items = list(format_summary(result.summary).items())
    for start in range(0, len(items), 5):
        cols = st.columns(5)
        for col, (label, value) in zip(cols, items[start:start + 5]):
            col.metric(label, value)


def render_validation_panel(warnings):
    """Render validation warnings and errors if any exist."""
    if not warnings:
        return

    errors = [w for w in warnings if w.severity == "error"]
    warns = [w for w in warnings if w.severity == "warning"]
    with st.expander(f"Validation Issues ({len(errors)} errors, {len(warns)} warnings)", expanded=bool(errors)):
        for w in errors + warns:
            text = f"**{w.category.upper()}:** {w.message}"
            if w.details:
                text += f"  \n{w.details}"
            if w.severity == "error":
                st.error(text)
            else:
                st.warning(text)


def render_timeline(result):
    """Charts and the chronological table."""
    st.markdown("## Timeline")
    tab_fund, tab_farmers, tab_revenue = st.tabs(["Fund", "Farmers", "Revenue"])
    with tab_fund:
        st.plotly_chart(create_fund_chart(result.year_series), width="stretch")
    with tab_farmers:
        st.plotly_chart(create_farmers_chart(result.year_series), width="stretch")
    with tab_revenue:
        st.plotly_chart(create_revenue_chart(result.year_series), width="stretch")

    st.markdown("### Chronological Table")
    st.dataframe(pd.DataFrame(format_year_series(result.year_series)), hide_index=True, width="stretch")


def render_compare(config: Config):
    """Scenario Comparison tab."""
    st.markdown("## Scenario Comparison")

    scenario_options = {key: f"{sc.name}: {sc.description}" for key, sc in SCENARIO_LIBRARY.items()}
    selected = st.multiselect(
        "Scenarios to compare",
        list(scenario_options.keys()),
        format_func=lambda k: scenario_options[k],
        default=["low_prices", "high_prices"]
    )

    if not selected:
        st.caption("Select one or more scenarios to compare with the current inputs.")
        return

    comparison = ScenarioRunner(config).compare_scenarios(selected, include_base=True)
    rows = []
    for name, summary in comparison.summary.items():
        scenario = comparison.scenarios.get(name)
        rows.append({
            "Scenario": scenario.name if scenario else name,
            "Farmers": summary["total_farmers"],
            "Surface (ha)": summary["total_cultivated_surface"],
            "Jobs": summary["jobs_created"],
            "Fund value (M)": summary["final_fund_value"] / 1e6,
            "Fund multiple": summary["fund_multiple"],
            "Operator balance (M)": summary["operator_final_balance"] / 1e6,
        })
    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")


def render_sensitivity(config: Config):
    """Tornado ranking for a selected outcome metric."""
    st.markdown("## Sensitivity")

    metric = st.selectbox("Outcome metric", SensitivityAnalyzer.CORE_METRICS)
    entries = _run_tornado_cached(config.to_dict(), metric)
    importance = compute_parameter_importance(entries)

    rows = [
        {
            "Parameter": e.parameter_label,
            "Low": e.low_value,
            "High": e.high_value,
            "Metric at low": e.metric_at_low,
            "Metric at high": e.metric_at_high,
            "Relative importance": importance[e.parameter_name],
        }
        for e in entries
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")


def render_export(result):
    """Export panel in sidebar."""
    st.markdown("### Export")

    output_dir = st.text_input("Export folder", value="exports")
    if st.button("Write CSV + JSON"):
        export_path = Path(output_dir)
        export_path.mkdir(parents=True, exist_ok=True)
        export_csv(result, str(export_path / "bamboo_fund_timeline.csv"))
        export_json(result, str(export_path / "bamboo_fund_result.json"))
        st.success(f"Saved exports to {export_path}")


def main():
    """Main application entry point."""
    init_session_state()
    st.title("Bamboo Fund Impact Calculator")

    render_inputs()

    try:
        result, warnings = _run_simulation_cached(dict(st.session_state.inputs))
    except InvalidConfiguration as exc:
        st.error(str(exc))
        return

    with st.sidebar:
        st.markdown("---")
        render_export(result)

    render_summary(result)
    render_validation_panel(warnings)

    tab_timeline, tab_compare, tab_sensitivity = st.tabs(["Timeline", "Compare", "Sensitivity"])
    with tab_timeline:
        render_timeline(result)
    with tab_compare:
        render_compare(result.config)
    with tab_sensitivity:
        render_sensitivity(result.config)


if __name__ == "__main__":
    main()
