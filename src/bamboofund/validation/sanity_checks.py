"""Sanity checks and validation for simulation inputs and outputs."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import Config
from ..simulation.runner import SimulationResult, YearRecord

logger = logging.getLogger(__name__)

LONG_HORIZON_YEARS = 100
SUMMARY_REL_TOLERANCE = 1e-9


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "financing", "bounds"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run sanity checks on configuration and simulation output."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        financing = self.config.financing
        program = self.config.program

        rates = [
            ("Repayment rate", financing.repayment_rate),
            ("Commission rate", program.commission_rate),
            ("Fund recapitalization rate", program.fund_recapitalization_rate),
        ]
        for name, rate in rates:
            if rate > 100:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="bounds",
                    message=f"{name} above 100% of revenue",
                    details=f"Current value: {rate:.1f}%"
                ))

        revenue_share = program.commission_rate + program.fund_recapitalization_rate
        if revenue_share > 100:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message=f"Commission + recapitalization take {revenue_share:.1f}% of revenue",
                details="Farmers would be left with negative net revenue"
            ))

        if financing.cost_per_farmer > financing.initial_fund:
            warnings.append(ValidationWarning(
                severity="warning",
                category="financing",
                message="Initial fund cannot finance a single farmer",
                details=(
                    f"Cost per farmer: {financing.cost_per_farmer:,.0f}, "
                    f"initial fund: {financing.initial_fund:,.0f}"
                )
            ))

        if self.config.simulation.duration_years > LONG_HORIZON_YEARS:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message=f"Horizon longer than {LONG_HORIZON_YEARS} years",
                details="Bamboo revenue is assumed to continue without decay"
            ))

        return warnings

    def check_year_series(self, year_series: List[YearRecord]) -> List[ValidationWarning]:
        """
        Check the yearly series for accounting violations.

        Args:
            year_series: Ordered year records

        Returns:
            List of validation warnings
        """
        warnings = []
        cost_per_farmer = self.config.financing.cost_per_farmer
        previous_total = 0

        for index, record in enumerate(year_series):
            if record.year != index + 1:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="ordering",
                    message=f"Year index {record.year} found at position {index + 1}"
                ))

            lent = record.new_farmers * cost_per_farmer
            if lent > record.fund_balance_start:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="financing",
                    message=f"Financing exceeded fund balance in year {record.year}",
                    details=f"Lent {lent:,.0f} from {record.fund_balance_start:,.0f}"
                ))

            if record.total_farmers < previous_total:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bounds",
                    message=f"Total farmers decreased in year {record.year}",
                    details=f"{previous_total} -> {record.total_farmers}"
                ))
            previous_total = record.total_farmers

            values_to_check = [
                ("fund_balance_start", record.fund_balance_start),
                ("fund_balance_end", record.fund_balance_end),
                ("total_repayments", record.total_repayments),
                ("bamboo_revenue", record.bamboo_revenue),
                ("carbon_revenue", record.carbon_revenue),
                ("outstanding_loans", record.outstanding_loans),
            ]
            for name, value in values_to_check:
                if math.isnan(value) or math.isinf(value):
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="nan",
                        message=f"Invalid value detected in {name} in year {record.year}",
                        details=f"Value: {value}"
                    ))
                elif value < 0:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="bounds",
                        message=f"{name} went negative in year {record.year}",
                        details=f"Value: {value:,.2f}"
                    ))

        return warnings

    def check_summary(self, result: SimulationResult) -> List[ValidationWarning]:
        """
        Check that the summary reconciles with the year series.

        Args:
            result: Complete simulation result

        Returns:
            List of validation warnings
        """
        warnings = []
        summary = result.summary

        operator_total = sum(r.operator_revenue for r in result.year_series)
        expected = operator_total + summary.final_fund_value
        if not math.isclose(summary.operator_final_balance, expected, rel_tol=SUMMARY_REL_TOLERANCE):
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Operator final balance does not reconcile",
                details=f"Summary: {summary.operator_final_balance:,.2f}, expected: {expected:,.2f}"
            ))

        outstanding = sum(c.loan_remaining for c in result.cohorts)
        if any(c.loan_remaining < 0 for c in result.cohorts):
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message="A cohort loan went negative"
            ))

        if result.year_series:
            final_balance = result.year_series[-1].fund_balance_end
            if not math.isclose(summary.final_fund_value, final_balance + outstanding, rel_tol=SUMMARY_REL_TOLERANCE):
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message="Final fund value differs from cash plus outstanding loans",
                    details=(
                        f"Summary: {summary.final_fund_value:,.2f}, "
                        f"cash + loans: {final_balance + outstanding:,.2f}"
                    )
                ))

        return warnings


def validate_simulation_results(result: SimulationResult) -> List[ValidationWarning]:
    """
    Validate complete simulation results.

    Args:
        result: Simulation result to check

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(result.config)
    warnings = []

    warnings.extend(checker.check_config_inputs())
    warnings.extend(checker.check_year_series(result.year_series))
    warnings.extend(checker.check_summary(result))

    errors = sum(1 for w in warnings if w.severity == "error")
    logger.debug("Validation produced %d findings (%d errors)", len(warnings), errors)

    return warnings
