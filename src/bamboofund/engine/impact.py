"""Program impact summary - ecological and financial metrics from final state."""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .revenue import CARBON_FACTOR

# Reference baselines for the target region
REGIONAL_DEFORESTED_AREA = 4_000_000  # ha
DEFORESTATION_AVOIDED_PER_HECTARE = 5  # ha of forest spared per cultivated ha
REGIONAL_EMISSIONS = 16_000_000  # t CO2 / year
IRRIGABLE_AREA = 9_000_000  # ha
JOBS_PER_HECTARE = 0.13

PERCENTAGE_FIELDS = (
    "deforestation_reduction",
    "carbon_emission_reduction",
    "irrigated_surface_percentage",
)


@dataclass(frozen=True)
class ImpactSummary:
    """Aggregate impact metrics derived once, after the yearly loop."""
    deforestation_reduction: float  # % of regional deforestation avoided
    carbon_emission_reduction: float  # % of regional emissions offset
    irrigated_surface_percentage: float  # % of irrigable area under bamboo
    jobs_created: int
    total_cultivated_surface: float  # ha
    annual_carbon_sequestration: float  # t CO2 / year at full production
    annual_global_gdp: float  # bamboo + carbon value per year
    final_fund_value: float  # cash + outstanding loans
    operator_annual_revenue: float  # commission + recapitalization run-rate
    operator_final_balance: float  # cumulative operator cash + final fund value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_summary(
    total_cultivated_surface: float,
    fund_balance: float,
    outstanding_loans: float,
    operator_net_cash_flow: float,
    bamboo_production_per_hectare: float,
    bamboo_price_per_ton: float,
    carbon_price_per_ton: float,
    commission_fraction: float,
    recapitalization_fraction: float
) -> ImpactSummary:
    """
    Compute the impact summary from end-of-simulation accumulators.

    Args:
        total_cultivated_surface: Hectares converted over the whole run
        fund_balance: Final fund cash
        outstanding_loans: Sum of remaining cohort principal
        operator_net_cash_flow: Operator revenue accumulated over all years
        bamboo_production_per_hectare: t/ha/year
        bamboo_price_per_ton: Bamboo price
        carbon_price_per_ton: Carbon credit price
        commission_fraction: Operator commission as a fraction
        recapitalization_fraction: Fund recapitalization as a fraction

    Returns:
        ImpactSummary
    """
    annual_production = total_cultivated_surface * bamboo_production_per_hectare
    value_per_ton = bamboo_price_per_ton + CARBON_FACTOR * carbon_price_per_ton
    final_fund_value = fund_balance + outstanding_loans

    return ImpactSummary(
        deforestation_reduction=(
            total_cultivated_surface * DEFORESTATION_AVOIDED_PER_HECTARE / REGIONAL_DEFORESTED_AREA * 100
        ),
        carbon_emission_reduction=annual_production * CARBON_FACTOR / REGIONAL_EMISSIONS * 100,
        irrigated_surface_percentage=total_cultivated_surface / IRRIGABLE_AREA * 100,
        jobs_created=math.floor(total_cultivated_surface * JOBS_PER_HECTARE),
        total_cultivated_surface=total_cultivated_surface,
        annual_carbon_sequestration=annual_production * CARBON_FACTOR,
        annual_global_gdp=annual_production * value_per_ton,
        final_fund_value=final_fund_value,
        operator_annual_revenue=(
            annual_production * (commission_fraction + recapitalization_fraction) * value_per_ton
        ),
        operator_final_balance=operator_net_cash_flow + final_fund_value,
    )
