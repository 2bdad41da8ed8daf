"""Analysis tools for bamboo fund simulation."""

from .scenarios import (
    SCENARIO_LIBRARY,
    Scenario,
    ScenarioComparison,
    ScenarioRunner,
    format_comparison_table,
)
from .sensitivity import (
    ParameterSweep,
    SensitivityAnalyzer,
    SensitivityResult,
    TornadoEntry,
    compute_parameter_importance,
)

__all__ = [
    # Sensitivity analysis
    "SensitivityAnalyzer",
    "SensitivityResult",
    "ParameterSweep",
    "TornadoEntry",
    "compute_parameter_importance",
    # Scenario comparison
    "Scenario",
    "ScenarioComparison",
    "ScenarioRunner",
    "SCENARIO_LIBRARY",
    "format_comparison_table",
]
