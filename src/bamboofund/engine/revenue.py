"""Cohort revenue - carbon credits and bamboo harvests, gated by cohort age.

Revenue rules:
- Carbon credits are sold once, one year after financing, as a lump sum
  covering CARBON_ACCRUAL_YEARS of sequestration
- Bamboo harvests start BAMBOO_MATURITY_AGE years after financing and recur
  every year with no cap
- Every revenue event repays the cohort loan by repayment_fraction of revenue
"""

from dataclasses import dataclass

from .cohorts import CohortLedger, FarmerCohort

CARBON_FACTOR = 1.74  # t CO2 sequestered per t of bamboo produced
CARBON_ACCRUAL_YEARS = 4  # Years of sequestration realized in the lump sale
CARBON_CREDIT_AGE = 1  # Cohort age at which carbon credits are sold
BAMBOO_MATURITY_AGE = 5  # Cohort age of the first harvest


@dataclass
class YearRevenue:
    """Revenue and repayments collected across all cohorts in one year."""
    carbon_revenue: float = 0.0
    bamboo_revenue: float = 0.0
    repayments: float = 0.0

    @property
    def total_revenue(self) -> float:
        return self.carbon_revenue + self.bamboo_revenue


class RevenueModel:
    """Computes per-cohort revenue and collects repayments."""

    def __init__(
        self,
        farmer_surface_hectares: float,
        bamboo_production_per_hectare: float,
        bamboo_price_per_ton: float,
        carbon_price_per_ton: float,
        repayment_fraction: float
    ):
        self.farmer_surface_hectares = farmer_surface_hectares
        self.bamboo_production_per_hectare = bamboo_production_per_hectare
        self.bamboo_price_per_ton = bamboo_price_per_ton
        self.carbon_price_per_ton = carbon_price_per_ton
        self.repayment_fraction = repayment_fraction

    def carbon_revenue(self, cohort: FarmerCohort) -> float:
        """
        One-time carbon credit sale for a cohort.

        Formula: farmers × surface × production × CARBON_FACTOR × carbon_price × CARBON_ACCRUAL_YEARS
        """
        return (
            cohort.farmer_count * self.farmer_surface_hectares *
            self.bamboo_production_per_hectare * CARBON_FACTOR *
            self.carbon_price_per_ton * CARBON_ACCRUAL_YEARS
        )

    def bamboo_revenue(self, cohort: FarmerCohort) -> float:
        """
        Annual bamboo sale for a mature cohort.

        Formula: farmers × surface × production × bamboo_price
        """
        return (
            cohort.farmer_count * self.farmer_surface_hectares *
            self.bamboo_production_per_hectare * self.bamboo_price_per_ton
        )

    def collect(self, ledger: CohortLedger, year: int) -> YearRevenue:
        """
        Run the revenue and repayment pass for one year.

        Carbon and bamboo rules are independent; a cohort fires at most one
        of them in a given year because its age is unique per year.

        Args:
            ledger: All cohorts financed so far, including this year's
            year: Current simulation year (1-based)

        Returns:
            Totals for the year; cohort loans are reduced in place
        """
        totals = YearRevenue()

        for cohort in ledger:
            age = cohort.age(year)

            if age == CARBON_CREDIT_AGE:
                revenue = self.carbon_revenue(cohort)
                totals.carbon_revenue += revenue
                totals.repayments += cohort.apply_repayment(revenue, self.repayment_fraction)

            if age >= BAMBOO_MATURITY_AGE:
                revenue = self.bamboo_revenue(cohort)
                totals.bamboo_revenue += revenue
                totals.repayments += cohort.apply_repayment(revenue, self.repayment_fraction)

        return totals
