"""Display formatting for summary metrics and the yearly table."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from ..engine.impact import PERCENTAGE_FIELDS, ImpactSummary
from ..simulation.runner import YearRecord

SUMMARY_LABELS = {
    "deforestation_reduction": "Deforestation reduction",
    "carbon_emission_reduction": "Carbon emission reduction",
    "irrigated_surface_percentage": "Irrigated surface",
    "jobs_created": "Jobs created",
    "total_cultivated_surface": "Total cultivated surface (ha)",
    "annual_carbon_sequestration": "Annual carbon sequestration (t CO2)",
    "annual_global_gdp": "Annual global GDP",
    "final_fund_value": "Final fund value",
    "operator_annual_revenue": "Operator annual revenue",
    "operator_final_balance": "Operator final balance",
}

YEAR_COLUMNS = {
    "year": "Year",
    "fund_balance_start": "Fund balance (start)",
    "fund_balance_end": "Fund balance (end)",
    "new_farmers": "New farmers",
    "total_farmers": "Total farmers",
    "total_repayments": "Repayments",
    "bamboo_revenue": "Bamboo revenue",
    "carbon_revenue": "Carbon revenue",
    "operator_revenue": "Operator cash flow",
}

# Year-table columns shown as plain counts
_COUNT_COLUMNS = {"year", "new_farmers", "total_farmers"}


def _round(value: float, places: int) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def _group_thousands(value: Decimal) -> str:
    return f"{int(value):,}".replace(",", " ")


def format_number(value: float, is_percentage: bool = False) -> str:
    """
    Format a metric for display.

    Rules:
    - value >= 1,000,000: millions, no decimals, " M" suffix
    - value < 1,000: two decimals
    - otherwise: whole number with space thousands separators

    Percentages get a "%" suffix except in the millions branch.

    Args:
        value: Number to format
        is_percentage: Whether to append "%"

    Returns:
        Display string
    """
    suffix = "%" if is_percentage else ""
    if value >= 1_000_000:
        return _group_thousands(_round(value / 1_000_000, 0)) + " M"
    if value < 1000:
        return f"{_round(value, 2)}{suffix}"
    return _group_thousands(_round(value, 0)) + suffix


def format_summary(summary: ImpactSummary) -> Dict[str, str]:
    """Map summary labels to display strings."""
    values = summary.to_dict()
    return {
        SUMMARY_LABELS[key]: format_number(value, key in PERCENTAGE_FIELDS)
        for key, value in values.items()
    }


def format_year_series(year_series: List[YearRecord]) -> List[Dict[str, str]]:
    """Display rows for the yearly table; counts are shown unformatted."""
    rows = []
    for record in year_series:
        values = record.to_dict()
        row = {}
        for key, label in YEAR_COLUMNS.items():
            if key in _COUNT_COLUMNS:
                row[label] = str(values[key])
            else:
                row[label] = format_number(values[key])
        rows.append(row)
    return rows
