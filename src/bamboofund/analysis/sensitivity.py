"""Sensitivity analysis for bamboo fund simulation parameters."""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from ..config.schema import Config
from ..simulation.runner import SimulationRunner

# Fields that must stay whole numbers when swept
INTEGER_PATHS = {'simulation.duration_years'}


@dataclass
class ParameterSweep:
    """Result of a single parameter sweep."""
    parameter_name: str
    parameter_label: str
    base_value: float
    sweep_values: List[float]
    metric_values: Dict[str, List[float]]  # metric_name -> values at each sweep point


@dataclass
class TornadoEntry:
    """Single entry in a tornado chart."""
    parameter_name: str
    parameter_label: str
    base_value: float
    low_value: float
    high_value: float
    metric_at_low: float
    metric_at_high: float
    impact_range: float  # |high - low| metric value


@dataclass
class SensitivityResult:
    """Complete sensitivity analysis result."""
    base_config: Config
    base_metrics: Dict[str, Any]
    sweeps: Dict[str, ParameterSweep]
    tornado_data: Dict[str, List[TornadoEntry]]  # metric_name -> sorted entries


class SensitivityAnalyzer:
    """Perform one-at-a-time sensitivity analysis on simulation parameters."""

    DEFAULT_PARAMETERS = {
        # (config_path, label, low_mult, high_mult)
        'repayment_rate': ('financing.repayment_rate', 'Repayment Rate', 0.5, 2.0),
        'initial_capital': ('financing.initial_capital', 'Initial Capital', 0.5, 2.0),
        'investment_per_hectare': ('financing.investment_per_hectare', 'Investment per Hectare', 0.5, 2.0),
        'farmer_surface_hectares': ('financing.farmer_surface_hectares', 'Surface per Farmer', 0.5, 2.0),
        'bamboo_production': ('production.bamboo_production_per_hectare', 'Bamboo Production', 0.5, 1.5),
        'bamboo_price': ('production.bamboo_price_per_ton', 'Bamboo Price', 0.5, 2.0),
        'carbon_price': ('production.carbon_price_per_ton', 'Carbon Price', 0.5, 2.0),
        'commission_rate': ('program.commission_rate', 'Operator Commission', 0.5, 2.0),
        'recapitalization_rate': ('program.fund_recapitalization_rate', 'Recapitalization Rate', 0.5, 1.25),
        'duration_years': ('simulation.duration_years', 'Simulation Duration', 0.67, 1.67),
    }

    CORE_METRICS = [
        'final_fund_value',
        'total_cultivated_surface',
        'operator_final_balance',
        'jobs_created',
    ]

    def __init__(self, config: Config, parameters: Dict[str, Tuple] = None):
        """
        Initialize sensitivity analyzer.

        Args:
            config: Base configuration
            parameters: Optional custom parameter definitions
                Format: {name: (config_path, label, low_mult, high_mult)}
        """
        self.config = config
        self.parameters = parameters or self.DEFAULT_PARAMETERS

    def run_sweep(self, parameter_name: str, num_points: int = 11) -> ParameterSweep:
        """
        Run one-at-a-time sweep for a single parameter.

        Args:
            parameter_name: Name of parameter to sweep
            num_points: Number of sweep points

        Returns:
            ParameterSweep result
        """
        if parameter_name not in self.parameters:
            raise ValueError(f"Unknown parameter: {parameter_name}")

        config_path, label, low_mult, high_mult = self.parameters[parameter_name]
        base_value = self._get_config_value(self.config, config_path)

        sweep_values = [
            self._coerce(config_path, v)
            for v in np.linspace(base_value * low_mult, base_value * high_mult, num_points)
        ]

        metric_values = {metric: [] for metric in self.CORE_METRICS}

        for val in sweep_values:
            result = self._run_with(config_path, val)
            for metric in self.CORE_METRICS:
                metric_values[metric].append(result.final_metrics[metric])

        return ParameterSweep(
            parameter_name=parameter_name,
            parameter_label=label,
            base_value=base_value,
            sweep_values=sweep_values,
            metric_values=metric_values
        )

    def compute_tornado(self, target_metric: str = 'final_fund_value') -> List[TornadoEntry]:
        """
        Compute tornado chart data for a target metric.

        Args:
            target_metric: Metric to analyze (default: final_fund_value)

        Returns:
            List of TornadoEntry sorted by impact (largest first)
        """
        entries = []

        for param_name, (config_path, label, low_mult, high_mult) in self.parameters.items():
            base_value = self._get_config_value(self.config, config_path)
            low_value = self._coerce(config_path, base_value * low_mult)
            high_value = self._coerce(config_path, base_value * high_mult)

            metric_at_low = self._run_with(config_path, low_value).final_metrics[target_metric]
            metric_at_high = self._run_with(config_path, high_value).final_metrics[target_metric]

            entries.append(TornadoEntry(
                parameter_name=param_name,
                parameter_label=label,
                base_value=base_value,
                low_value=low_value,
                high_value=high_value,
                metric_at_low=metric_at_low,
                metric_at_high=metric_at_high,
                impact_range=abs(metric_at_high - metric_at_low)
            ))

        entries.sort(key=lambda e: e.impact_range, reverse=True)

        return entries

    def run_full_analysis(self, num_sweep_points: int = 11) -> SensitivityResult:
        """
        Run complete sensitivity analysis.

        Args:
            num_sweep_points: Number of points per parameter sweep

        Returns:
            Complete SensitivityResult
        """
        base_result = SimulationRunner(self.config).run()
        base_metrics = {metric: base_result.final_metrics[metric] for metric in self.CORE_METRICS}

        sweeps = {}
        for param_name in self.parameters:
            sweeps[param_name] = self.run_sweep(param_name, num_sweep_points)

        tornado_data = {}
        for metric in self.CORE_METRICS:
            tornado_data[metric] = self.compute_tornado(metric)

        return SensitivityResult(
            base_config=self.config,
            base_metrics=base_metrics,
            sweeps=sweeps,
            tornado_data=tornado_data
        )

    def _run_with(self, config_path: str, value: float):
        modified_config = copy.deepcopy(self.config)
        self._set_config_value(modified_config, config_path, value)
        return SimulationRunner(modified_config).run()

    def _coerce(self, config_path: str, value: float) -> float:
        """Round integer fields and keep them at least 1."""
        if config_path in INTEGER_PATHS:
            return max(1, int(round(value)))
        return float(value)

    def _get_config_value(self, config: Config, path: str) -> float:
        """Get a value from config using dot-notation path."""
        parts = path.split('.')
        obj = config
        for part in parts:
            obj = getattr(obj, part)
        return float(obj)

    def _set_config_value(self, config: Config, path: str, value: float) -> None:
        """Set a value in config using dot-notation path."""
        parts = path.split('.')
        obj = config
        for part in parts[:-1]:
            obj = getattr(obj, part)
        setattr(obj, parts[-1], value)


def compute_parameter_importance(tornado_entries: List[TornadoEntry]) -> Dict[str, float]:
    """
    Compute normalized parameter importance scores.

    Args:
        tornado_entries: List of tornado entries

    Returns:
        Dict mapping parameter name to importance score (0-1)
    """
    if not tornado_entries:
        return {}

    max_impact = max(e.impact_range for e in tornado_entries)

    importance = {}
    for entry in tornado_entries:
        if max_impact > 0:
            importance[entry.parameter_name] = entry.impact_range / max_impact
        else:
            importance[entry.parameter_name] = 0.0

    return importance
