"""Core engines: cohorts, revolving fund, revenue rules and impact summary."""

from .cohorts import CohortLedger, FarmerCohort
from .fund import FinancingDecision, RevolvingFund
from .impact import PERCENTAGE_FIELDS, ImpactSummary, compute_summary
from .revenue import (
    BAMBOO_MATURITY_AGE,
    CARBON_ACCRUAL_YEARS,
    CARBON_CREDIT_AGE,
    CARBON_FACTOR,
    RevenueModel,
    YearRevenue,
)

__all__ = [
    "FarmerCohort",
    "CohortLedger",
    "FinancingDecision",
    "RevolvingFund",
    "RevenueModel",
    "YearRevenue",
    "CARBON_FACTOR",
    "CARBON_ACCRUAL_YEARS",
    "CARBON_CREDIT_AGE",
    "BAMBOO_MATURITY_AGE",
    "ImpactSummary",
    "PERCENTAGE_FIELDS",
    "compute_summary",
]
