"""Curated input choices offered by the presentation layer.

The engine accepts any value satisfying the schema constraints; these lists
only drive the dropdowns in the Streamlit app.
"""

from typing import Dict, List

INPUT_OPTIONS: Dict[str, List[float]] = {
    "repaymentRate": [5, 10, 15, 20, 25, 30, 35, 40, 45],
    "initialCapital": [1, 5, 10, 50, 100],
    "investmentPerHectare": [5000, 10000, 15000],
    "farmerSurfaceHectares": [50, 100, 150],
    "bambooProductionPerHectare": [30, 50, 80],
    "bambooPricePerTon": [(i + 1) * 50 for i in range(10)],
    "simulationDurationYears": [15, 25, 35],
    "carbonPricePerTon": [(i + 1) * 20 for i in range(12)],
    "commissionRate": [5, 10, 15, 20],
    "fundRecapitalizationRate": [5, 10, 15, 20, 25],
}

INPUT_LABELS: Dict[str, str] = {
    "repaymentRate": "Repayment rate (%)",
    "initialCapital": "Initial capital (M)",
    "investmentPerHectare": "Investment per hectare",
    "farmerSurfaceHectares": "Surface per farmer (ha)",
    "bambooProductionPerHectare": "Bamboo production (t/ha/yr)",
    "bambooPricePerTon": "Bamboo price per ton",
    "simulationDurationYears": "Simulation duration (years)",
    "carbonPricePerTon": "Carbon price per ton CO2",
    "commissionRate": "Operator commission (%)",
    "fundRecapitalizationRate": "Fund recapitalization rate (%)",
}


def closest_option(key: str, value: float) -> float:
    """Return the curated choice nearest to value (for preselecting a dropdown)."""
    return min(INPUT_OPTIONS[key], key=lambda option: abs(option - value))
