"""Predefined scenario library for bamboo fund simulation comparison."""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List

from ..config.schema import Config
from ..simulation.runner import SimulationResult, SimulationRunner


@dataclass
class Scenario:
    """A named scenario with configuration overrides."""
    name: str
    description: str
    category: str  # "pricing", "financing", "program", "stress_test"
    overrides: Dict[str, Any]  # Config path -> value


@dataclass
class ScenarioComparison:
    """Result of comparing multiple scenarios."""
    scenarios: Dict[str, Scenario]
    results: Dict[str, SimulationResult]
    summary: Dict[str, Dict[str, Any]]  # scenario_name -> metrics summary


# ============================================================================
# PREDEFINED SCENARIOS
# ============================================================================

SCENARIO_LIBRARY = {
    # === Price Outlook Scenarios ===
    "low_prices": Scenario(
        name="Low Prices",
        description="Depressed bamboo and carbon markets (100/t bamboo, 20/t CO2)",
        category="pricing",
        overrides={
            "production.bamboo_price_per_ton": 100,
            "production.carbon_price_per_ton": 20,
        }
    ),

    "high_prices": Scenario(
        name="High Prices",
        description="Strong bamboo demand and a mature carbon market (300/t bamboo, 100/t CO2)",
        category="pricing",
        overrides={
            "production.bamboo_price_per_ton": 300,
            "production.carbon_price_per_ton": 100,
        }
    ),

    "carbon_boom": Scenario(
        name="Carbon Boom",
        description="Carbon price at the top of the curated range (240/t CO2)",
        category="pricing",
        overrides={
            "production.carbon_price_per_ton": 240,
        }
    ),

    # === Financing Scenarios ===
    "fast_repayment": Scenario(
        name="Fast Repayment",
        description="Farmers repay with 30% of revenue",
        category="financing",
        overrides={
            "financing.repayment_rate": 30,
        }
    ),

    "large_plots": Scenario(
        name="Large Plots",
        description="150 ha per farmer: fewer farmers per unit of capital, same surface per currency",
        category="financing",
        overrides={
            "financing.farmer_surface_hectares": 150,
        }
    ),

    "seed_fund": Scenario(
        name="Seed Fund",
        description="Small 1M initial capital",
        category="financing",
        overrides={
            "financing.initial_capital": 1,
        }
    ),

    # === Program Design Scenarios ===
    "aggressive_recapitalization": Scenario(
        name="Aggressive Recapitalization",
        description="25% of revenue re-injected, operator commission kept at 5%",
        category="program",
        overrides={
            "program.fund_recapitalization_rate": 25,
            "program.commission_rate": 5,
        }
    ),

    "operator_heavy": Scenario(
        name="Operator-Heavy",
        description="20% commission with only 5% recapitalization",
        category="program",
        overrides={
            "program.commission_rate": 20,
            "program.fund_recapitalization_rate": 5,
        }
    ),

    # === Stress Test Scenarios ===
    "costly_conversion": Scenario(
        name="Costly Conversion",
        description="Conversion cost tripled to 15000/ha",
        category="stress_test",
        overrides={
            "financing.investment_per_hectare": 15000,
        }
    ),

    "no_carbon_market": Scenario(
        name="No Carbon Market",
        description="Carbon credits unsellable; loans repaid from bamboo only",
        category="stress_test",
        overrides={
            "production.carbon_price_per_ton": 0,
        }
    ),

    "poor_yields": Scenario(
        name="Poor Yields",
        description="Bamboo yields halved to 15 t/ha/year",
        category="stress_test",
        overrides={
            "production.bamboo_production_per_hectare": 15,
        }
    ),
}


class ScenarioRunner:
    """Run and compare predefined scenarios."""

    def __init__(self, base_config: Config):
        """
        Initialize scenario runner.

        Args:
            base_config: Base configuration to apply overrides to
        """
        self.base_config = base_config

    def get_available_scenarios(self) -> Dict[str, Scenario]:
        """Get all available scenarios."""
        return SCENARIO_LIBRARY.copy()

    def get_scenarios_by_category(self, category: str) -> Dict[str, Scenario]:
        """Get scenarios filtered by category."""
        return {
            name: scenario
            for name, scenario in SCENARIO_LIBRARY.items()
            if scenario.category == category
        }

    def apply_scenario(self, scenario: Scenario) -> Config:
        """
        Apply scenario overrides to base config.

        Args:
            scenario: Scenario with overrides

        Returns:
            Modified config
        """
        config = copy.deepcopy(self.base_config)

        for path, value in scenario.overrides.items():
            self._set_config_value(config, path, value)

        return config

    def run_scenario(self, scenario_name: str) -> SimulationResult:
        """
        Run a single scenario.

        Args:
            scenario_name: Name of scenario from library

        Returns:
            Simulation result
        """
        if scenario_name not in SCENARIO_LIBRARY:
            raise ValueError(f"Unknown scenario: {scenario_name}")

        scenario = SCENARIO_LIBRARY[scenario_name]
        config = self.apply_scenario(scenario)

        return SimulationRunner(config).run()

    def compare_scenarios(
        self,
        scenario_names: List[str],
        include_base: bool = True
    ) -> ScenarioComparison:
        """
        Run and compare multiple scenarios.

        Args:
            scenario_names: List of scenario names to compare
            include_base: Whether to include base case

        Returns:
            ScenarioComparison result
        """
        scenarios = {}
        results = {}
        summary = {}

        if include_base:
            scenarios["base"] = Scenario(
                name="Base Case",
                description="Default configuration without modifications",
                category="base",
                overrides={}
            )
            results["base"] = SimulationRunner(self.base_config).run()
            summary["base"] = self._extract_summary(results["base"])

        for name in scenario_names:
            if name not in SCENARIO_LIBRARY:
                continue

            scenarios[name] = SCENARIO_LIBRARY[name]
            results[name] = self.run_scenario(name)
            summary[name] = self._extract_summary(results[name])

        return ScenarioComparison(
            scenarios=scenarios,
            results=results,
            summary=summary
        )

    def compare_price_outlooks(self) -> ScenarioComparison:
        """Compare low vs high price scenarios."""
        return self.compare_scenarios(["low_prices", "high_prices"], include_base=True)

    def run_stress_tests(self) -> ScenarioComparison:
        """Run all stress test scenarios."""
        stress_scenarios = list(self.get_scenarios_by_category("stress_test").keys())
        return self.compare_scenarios(stress_scenarios, include_base=True)

    def _extract_summary(self, result: SimulationResult) -> Dict[str, Any]:
        """Extract key metrics summary from simulation result."""
        final_metrics = result.final_metrics
        initial_fund = result.config.financing.initial_fund
        fund_multiple = final_metrics['final_fund_value'] / initial_fund if initial_fund > 0 else 0.0

        return {
            'total_farmers': final_metrics['total_farmers'],
            'total_cultivated_surface': final_metrics['total_cultivated_surface'],
            'jobs_created': final_metrics['jobs_created'],
            'final_fund_value': final_metrics['final_fund_value'],
            'fund_multiple': fund_multiple,
            'operator_final_balance': final_metrics['operator_final_balance'],
            'carbon_emission_reduction': final_metrics['carbon_emission_reduction'],
        }

    def _set_config_value(self, config: Config, path: str, value: Any) -> None:
        """Set a value in config using dot-notation path."""
        parts = path.split('.')
        obj = config
        for part in parts[:-1]:
            obj = getattr(obj, part)
        setattr(obj, parts[-1], value)


def format_comparison_table(comparison: ScenarioComparison) -> str:
    """
    Format scenario comparison as a text table.

    Args:
        comparison: ScenarioComparison result

    Returns:
        Formatted table string
    """
    lines = []
    headers = ["Scenario", "Farmers", "Surface (ha)", "Fund (M)", "Fund x", "Operator (M)"]
    lines.append(" | ".join(f"{h:>12}" for h in headers))
    lines.append("-" * 85)

    for name, summary in comparison.summary.items():
        scenario = comparison.scenarios.get(name)
        display_name = scenario.name if scenario else name

        row = [
            f"{display_name[:12]:>12}",
            f"{summary['total_farmers']:>12,d}",
            f"{summary['total_cultivated_surface']:>12,.0f}",
            f"{summary['final_fund_value']/1e6:>12,.1f}",
            f"{summary['fund_multiple']:>11.2f}x",
            f"{summary['operator_final_balance']/1e6:>12,.1f}"
        ]
        lines.append(" | ".join(row))

    return "\n".join(lines)
