"""Farmer cohort definitions for the revolving fund.

Key Concepts:
- Farmers financed in the same year form one cohort and are tracked jointly
- A cohort's loan only ever shrinks, through repayments, and never below zero
- Cohorts are never removed: bamboo revenue keeps accruing after the loan is repaid
- The ledger is an append-only arena indexed by financing order
"""

from dataclasses import dataclass, replace
from typing import Iterator, List


@dataclass
class FarmerCohort:
    """All farmers financed in a single simulated year."""
    start_year: int  # Simulation year the cohort was financed
    farmer_count: int  # Farmers in the cohort
    loan_remaining: float  # Outstanding principal

    def age(self, year: int) -> int:
        """Years elapsed since financing."""
        return year - self.start_year

    def apply_repayment(self, revenue: float, repayment_fraction: float) -> float:
        """
        Apply a revenue-linked repayment against the outstanding loan.

        Args:
            revenue: Revenue earned by the cohort this period
            repayment_fraction: Share of revenue applied to the loan (0.10 = 10%)

        Returns:
            Amount actually repaid (capped at the outstanding loan)
        """
        repayment = min(revenue * repayment_fraction, self.loan_remaining)
        self.loan_remaining -= repayment
        return repayment

    @property
    def is_repaid(self) -> bool:
        return self.loan_remaining <= 0.0


class CohortLedger:
    """Append-only collection of farmer cohorts."""

    def __init__(self):
        self._cohorts: List[FarmerCohort] = []

    def add(self, start_year: int, farmer_count: int, loan_amount: float) -> FarmerCohort:
        """Record a newly financed cohort and return it."""
        cohort = FarmerCohort(
            start_year=start_year,
            farmer_count=farmer_count,
            loan_remaining=loan_amount
        )
        self._cohorts.append(cohort)
        return cohort

    def __iter__(self) -> Iterator[FarmerCohort]:
        return iter(self._cohorts)

    def __len__(self) -> int:
        return len(self._cohorts)

    def __getitem__(self, index: int) -> FarmerCohort:
        return self._cohorts[index]

    def outstanding_loans(self) -> float:
        """Sum of remaining principal across all cohorts."""
        return sum(c.loan_remaining for c in self._cohorts)

    def total_farmers(self) -> int:
        return sum(c.farmer_count for c in self._cohorts)

    def snapshot(self) -> List[FarmerCohort]:
        """Independent copies of the current cohorts."""
        return [replace(c) for c in self._cohorts]
