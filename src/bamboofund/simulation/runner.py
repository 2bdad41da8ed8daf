"""Simulation runner - Orchestrate a year-by-year revolving fund simulation.

Key Features:
- Whole-farmer financing capped by the fund balance at the start of each year
- Cohort-level loan tracking in an append-only ledger
- Age-gated carbon and bamboo revenue with revenue-linked repayment
- Fund recapitalization from a share of total revenue
- Impact summary derived once from the final state
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from ..config.schema import Config, InvalidConfiguration, validate_config
from ..engine.cohorts import CohortLedger, FarmerCohort
from ..engine.fund import RevolvingFund
from ..engine.impact import ImpactSummary, compute_summary
from ..engine.revenue import RevenueModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearRecord:
    """State and flows for one simulated year."""
    year: int
    fund_balance_start: float
    fund_balance_end: float
    new_farmers: int
    total_farmers: int
    total_repayments: float
    bamboo_revenue: float
    carbon_revenue: float
    operator_revenue: float  # Operator commission earned this year
    cultivated_surface: float = 0.0  # Cumulative hectares at year end
    outstanding_loans: float = 0.0  # Remaining principal at year end

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    year_series: List[YearRecord]
    summary: ImpactSummary
    cohorts: List[FarmerCohort] = field(default_factory=list)
    final_metrics: Dict[str, Any] = field(default_factory=dict)


class SimulationRunner:
    """Runs the revolving fund simulation for one configuration."""

    def __init__(self, config: Config):
        """
        Initialize simulation runner.

        Args:
            config: Simulation configuration (validated again on run)
        """
        self.config = config

    def run(self) -> SimulationResult:
        """
        Run the simulation.

        Returns:
            Simulation result

        Raises:
            InvalidConfiguration: before any step if the config is invalid
        """
        config = validate_config(self.config)
        financing = config.financing
        production = config.production
        program = config.program
        num_years = config.simulation.duration_years

        logger.debug(
            "Starting %d-year simulation (config %s)", num_years, config.compute_hash()
        )

        fund = RevolvingFund(
            initial_balance=financing.initial_fund,
            investment_per_hectare=financing.investment_per_hectare,
            farmer_surface_hectares=financing.farmer_surface_hectares
        )
        revenue_model = RevenueModel(
            farmer_surface_hectares=financing.farmer_surface_hectares,
            bamboo_production_per_hectare=production.bamboo_production_per_hectare,
            bamboo_price_per_ton=production.bamboo_price_per_ton,
            carbon_price_per_ton=production.carbon_price_per_ton,
            repayment_fraction=financing.repayment_fraction
        )
        ledger = CohortLedger()

        total_farmers = 0
        total_cultivated_surface = 0.0
        operator_net_cash_flow = 0.0
        year_series: List[YearRecord] = []

        for year in range(1, num_years + 1):
            fund_balance_start = fund.balance

            # Finance new farmers
            decision = fund.finance()
            total_farmers += decision.new_farmers
            total_cultivated_surface += decision.surface_hectares
            ledger.add(year, decision.new_farmers, decision.amount_lent)

            # Revenue and repayments across all cohorts, including this year's
            revenue = revenue_model.collect(ledger, year)

            recapitalization = revenue.total_revenue * program.recapitalization_fraction
            fund.credit(revenue.repayments, recapitalization)

            operator_revenue = revenue.total_revenue * program.commission_fraction
            operator_net_cash_flow += operator_revenue

            year_series.append(YearRecord(
                year=year,
                fund_balance_start=fund_balance_start,
                fund_balance_end=fund.balance,
                new_farmers=decision.new_farmers,
                total_farmers=total_farmers,
                total_repayments=revenue.repayments,
                bamboo_revenue=revenue.bamboo_revenue,
                carbon_revenue=revenue.carbon_revenue,
                operator_revenue=operator_revenue,
                cultivated_surface=total_cultivated_surface,
                outstanding_loans=ledger.outstanding_loans()
            ))
            _check_finite(year, {
                'fund balance': fund.balance,
                'farmers financeable': fund.balance / fund.cost_per_farmer,
                'revenue': revenue.total_revenue,
                'cultivated surface': total_cultivated_surface,
                'operator cash flow': operator_net_cash_flow,
            })

        outstanding_loans = ledger.outstanding_loans()
        summary = compute_summary(
            total_cultivated_surface=total_cultivated_surface,
            fund_balance=fund.balance,
            outstanding_loans=outstanding_loans,
            operator_net_cash_flow=operator_net_cash_flow,
            bamboo_production_per_hectare=production.bamboo_production_per_hectare,
            bamboo_price_per_ton=production.bamboo_price_per_ton,
            carbon_price_per_ton=production.carbon_price_per_ton,
            commission_fraction=program.commission_fraction,
            recapitalization_fraction=program.recapitalization_fraction
        )
        _check_finite(num_years, summary.to_dict())

        final_metrics = self._compute_final_metrics(
            summary, fund.balance, outstanding_loans, total_farmers, operator_net_cash_flow
        )

        logger.debug(
            "Simulation finished: %d farmers, final fund value %.2f",
            total_farmers, summary.final_fund_value
        )

        return SimulationResult(
            config=config,
            year_series=year_series,
            summary=summary,
            cohorts=ledger.snapshot(),
            final_metrics=final_metrics
        )

    def _compute_final_metrics(
        self,
        summary: ImpactSummary,
        fund_balance: float,
        outstanding_loans: float,
        total_farmers: int,
        operator_net_cash_flow: float
    ) -> Dict[str, Any]:
        """Flatten the summary plus end-of-run accumulators for analysis tools."""
        metrics = summary.to_dict()
        metrics.update({
            'final_fund_balance': fund_balance,
            'outstanding_loans': outstanding_loans,
            'total_farmers': total_farmers,
            'operator_net_cash_flow': operator_net_cash_flow,
        })
        return metrics


def _check_finite(year: int, values: Dict[str, float]) -> None:
    """Raise if compounding growth has pushed any amount past the float range."""
    overflowing = [name for name, value in values.items() if not math.isfinite(value)]
    if overflowing:
        raise InvalidConfiguration(
            f"Simulation overflows the floating point range in year {year}: "
            f"{', '.join(overflowing)}; shorten the horizon or lower prices"
        )


def simulate(config: Any) -> Tuple[List[YearRecord], ImpactSummary]:
    """
    Simulate a bamboo fund program.

    Args:
        config: Config instance, nested dict, or flat camelCase dict

    Returns:
        (year_series, summary)

    Raises:
        InvalidConfiguration: if the configuration is invalid
    """
    result = SimulationRunner(validate_config(config)).run()
    return result.year_series, result.summary
