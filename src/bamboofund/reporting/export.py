"""Export functionality for CSV, JSON, and HTML."""

import json
from typing import List

import pandas as pd

from ..engine.impact import ImpactSummary
from ..simulation.runner import SimulationResult, YearRecord
from .formatting import format_summary


def year_series_to_dataframe(year_series: List[YearRecord]) -> pd.DataFrame:
    """Convert the year series to a DataFrame indexed by year."""
    df = pd.DataFrame([record.to_dict() for record in year_series])
    if df.empty:
        return df
    return df.set_index('year')


def summary_to_dataframe(summary: ImpactSummary) -> pd.DataFrame:
    """Convert the summary to a two-column metric/value DataFrame."""
    return pd.DataFrame(
        [{'metric': key, 'value': value} for key, value in summary.to_dict().items()]
    )


def cohorts_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    """Final cohort ledger as a DataFrame."""
    return pd.DataFrame([
        {
            'start_year': c.start_year,
            'farmer_count': c.farmer_count,
            'loan_remaining': c.loan_remaining,
        }
        for c in result.cohorts
    ])


def export_csv(result: SimulationResult, filepath: str):
    """Export the year series to CSV."""
    df = year_series_to_dataframe(result.year_series)
    df.to_csv(filepath)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'year_series': [record.to_dict() for record in result.year_series],
        'summary': result.summary.to_dict(),
        'final_metrics': result.final_metrics
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)


def export_html_report(result: SimulationResult, filepath: str):
    """Export HTML report with summary and yearly table."""
    summary_items = "\n".join(
        f"<li>{label}: {value}</li>"
        for label, value in format_summary(result.summary).items()
    )
    table_html = year_series_to_dataframe(result.year_series).to_html(float_format=lambda v: f"{v:,.2f}")

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Bamboo Fund Simulation Report</title>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 20px; }}
            h1 {{ color: #333; }}
            .metric {{ margin: 10px 0; padding: 10px; background: #f5f5f5; }}
            table {{ border-collapse: collapse; }}
            td, th {{ border: 1px solid #ddd; padding: 6px; text-align: right; }}
        </style>
    </head>
    <body>
        <h1>Bamboo Fund Simulation Report</h1>

        <div class="metric">
            <h2>Configuration Hash</h2>
            <p>{result.config.compute_hash()}</p>
        </div>

        <div class="metric">
            <h2>Program Impact</h2>
            <ul>
                {summary_items}
            </ul>
        </div>

        <div class="metric">
            <h2>Yearly Timeline</h2>
            {table_html}
        </div>

        <div class="metric">
            <h2>Configuration</h2>
            <pre>{json.dumps(result.config.to_dict(), indent=2)}</pre>
        </div>
    </body>
    </html>
    """

    with open(filepath, 'w') as f:
        f.write(html)

