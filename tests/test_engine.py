"""Unit tests for simulation engine invariants.

These tests verify:
- Determinism of repeated runs
- Monotonic farmers and cultivated surface
- Loan non-negativity and the financing cap
- Carbon and bamboo trigger timing by cohort age
- Invalid input rejection before any simulation step
- Summary consistency with the year series
"""

import itertools
import math

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bamboofund import simulate
from bamboofund.config.loader import load_config
from bamboofund.config.schema import MAX_DURATION_YEARS, Config, InvalidConfiguration
from bamboofund.engine.cohorts import CohortLedger
from bamboofund.engine.fund import RevolvingFund
from bamboofund.engine.impact import compute_summary
from bamboofund.engine.revenue import BAMBOO_MATURITY_AGE, CARBON_CREDIT_AGE, RevenueModel
from bamboofund.simulation.runner import SimulationRunner


def make_config(**overrides) -> Config:
    """Default config with flat camelCase overrides."""
    flat = load_config().to_flat_dict()
    flat.update(overrides)
    return Config.from_flat_dict(flat)


# Capital, investment and surface whose products are inexact in binary
FRACTIONAL_INPUTS = [
    (3.3, 5000, 1.1),
    (0.99, 1.1, 0.3),
    (2.7, 333.3, 7.7),
]


def property_configs():
    """A spread of curated choices plus fractional inputs off the dropdown grid."""
    configs = []
    for capital, investment, surface, repayment, years in itertools.product(
        [1, 10, 100], [5000, 15000], [50, 150], [5, 45], [15, 35]
    ):
        configs.append(make_config(
            initialCapital=capital,
            investmentPerHectare=investment,
            farmerSurfaceHectares=surface,
            repaymentRate=repayment,
            simulationDurationYears=years,
        ))
    for capital, investment, surface in FRACTIONAL_INPUTS:
        for years in [15, 35]:
            configs.append(make_config(
                initialCapital=capital,
                investmentPerHectare=investment,
                farmerSurfaceHectares=surface,
                simulationDurationYears=years,
            ))
    return configs


class TestDeterminism:
    """Repeated runs are identical."""

    def test_repeated_runs_identical(self):
        config = make_config(simulationDurationYears=35, carbonPricePerTon=240)
        series_a, summary_a = simulate(config)
        series_b, summary_b = simulate(config)
        assert series_a == series_b
        assert summary_a == summary_b

    def test_run_does_not_mutate_config(self):
        config = load_config()
        before = config.compute_hash()
        SimulationRunner(config).run()
        assert config.compute_hash() == before


class TestAccumulationInvariants:
    """Monotonicity, loan bounds and the financing cap."""

    @pytest.mark.parametrize("config", property_configs())
    def test_farmers_and_surface_non_decreasing(self, config):
        result = SimulationRunner(config).run()
        farmers = [r.total_farmers for r in result.year_series]
        surface = [r.cultivated_surface for r in result.year_series]
        assert farmers == sorted(farmers)
        assert surface == sorted(surface)

    @pytest.mark.parametrize("config", property_configs())
    def test_financing_never_exceeds_fund(self, config):
        cost = config.financing.investment_per_hectare * config.financing.farmer_surface_hectares
        series, _ = simulate(config)
        for record in series:
            assert record.new_farmers * cost <= record.fund_balance_start
            assert record.fund_balance_end >= 0

    @pytest.mark.parametrize("config", property_configs())
    def test_loans_never_negative(self, config):
        result = SimulationRunner(config).run()
        assert all(c.loan_remaining >= 0 for c in result.cohorts)
        assert all(r.outstanding_loans >= 0 for r in result.year_series)

    def test_full_repayment_clears_loans(self):
        """At 100% repayment the carbon sale alone clears the first cohort."""
        result = SimulationRunner(make_config(
            repaymentRate=100, simulationDurationYears=35
        )).run()
        first = result.cohorts[0]
        assert first.farmer_count == 40
        assert first.loan_remaining == 0.0

    def test_outstanding_loans_never_increase_without_financing(self):
        """Loans only grow when new farmers are financed."""
        series, _ = simulate(make_config(simulationDurationYears=35))
        for prev, curr in zip(series, series[1:]):
            if curr.new_farmers == 0:
                assert curr.outstanding_loans <= prev.outstanding_loans

    def test_zero_farmer_cohorts_retained(self):
        """One cohort per year, even when nobody is financed."""
        result = SimulationRunner(make_config(simulationDurationYears=6)).run()
        assert len(result.cohorts) == 6
        assert [c.start_year for c in result.cohorts] == list(range(1, 7))
        assert result.cohorts[1].farmer_count == 0


class TestFractionalInputs:
    """Inexact cost products never finance more than the fund holds."""

    def test_financing_never_overdraws_fund(self):
        """3.3M at 5000 × 1.1 per farmer must not overdraw the fund."""
        fund = RevolvingFund(
            initial_balance=3.3 * 1_000_000,
            investment_per_hectare=5000,
            farmer_surface_hectares=1.1
        )
        decision = fund.finance()
        assert decision.new_farmers in (599, 600)
        assert decision.amount_lent == decision.new_farmers * fund.cost_per_farmer
        assert decision.amount_lent <= 3.3 * 1_000_000
        assert fund.balance >= 0

        assert fund.finance().new_farmers == 0
        assert fund.balance >= 0

    @pytest.mark.parametrize("capital,investment,surface", FRACTIONAL_INPUTS)
    def test_year_series_stays_non_negative(self, capital, investment, surface):
        series, _ = simulate(make_config(
            initialCapital=capital,
            investmentPerHectare=investment,
            farmerSurfaceHectares=surface,
            simulationDurationYears=35,
        ))
        for prev, curr in zip(series, series[1:]):
            assert curr.total_farmers >= prev.total_farmers
        for record in series:
            assert record.new_farmers >= 0
            assert record.fund_balance_end >= 0
            assert record.outstanding_loans >= 0

    @pytest.mark.parametrize("capital,investment,surface", FRACTIONAL_INPUTS)
    def test_cohort_loans_never_rise(self, capital, investment, surface):
        """Drive the engine year by year and watch every cohort's loan."""
        config = make_config(
            initialCapital=capital,
            investmentPerHectare=investment,
            farmerSurfaceHectares=surface,
        )
        financing = config.financing
        production = config.production
        fund = RevolvingFund(
            initial_balance=financing.initial_fund,
            investment_per_hectare=financing.investment_per_hectare,
            farmer_surface_hectares=financing.farmer_surface_hectares
        )
        model = RevenueModel(
            farmer_surface_hectares=financing.farmer_surface_hectares,
            bamboo_production_per_hectare=production.bamboo_production_per_hectare,
            bamboo_price_per_ton=production.bamboo_price_per_ton,
            carbon_price_per_ton=production.carbon_price_per_ton,
            repayment_fraction=financing.repayment_fraction
        )
        ledger = CohortLedger()
        previous_loans = []

        for year in range(1, config.simulation.duration_years + 1):
            decision = fund.finance()
            assert decision.new_farmers >= 0
            ledger.add(year, decision.new_farmers, decision.amount_lent)
            revenue = model.collect(ledger, year)
            fund.credit(revenue.repayments, revenue.total_revenue * config.program.recapitalization_fraction)

            loans = [c.loan_remaining for c in ledger]
            assert all(loan >= 0 for loan in loans)
            for before, after in zip(previous_loans, loans):
                assert after <= before
            previous_loans = loans


class TestTriggerTiming:
    """Carbon and bamboo revenue gated by cohort age."""

    def _revenue_model(self):
        return RevenueModel(
            farmer_surface_hectares=50,
            bamboo_production_per_hectare=30,
            bamboo_price_per_ton=150,
            carbon_price_per_ton=40,
            repayment_fraction=0.10
        )

    @pytest.mark.parametrize("start_year", [1, 3, 7])
    def test_carbon_only_one_year_after_financing(self, start_year):
        model = self._revenue_model()
        ledger = CohortLedger()
        ledger.add(start_year, 10, 1e12)

        for year in range(start_year, start_year + 20):
            revenue = model.collect(ledger, year)
            if year == start_year + CARBON_CREDIT_AGE:
                assert revenue.carbon_revenue == pytest.approx(4_176_000)
            else:
                assert revenue.carbon_revenue == 0

    @pytest.mark.parametrize("start_year", [1, 3, 7])
    def test_bamboo_from_fifth_year_onward(self, start_year):
        model = self._revenue_model()
        ledger = CohortLedger()
        ledger.add(start_year, 10, 1e12)

        for year in range(start_year, start_year + 40):
            revenue = model.collect(ledger, year)
            if year >= start_year + BAMBOO_MATURITY_AGE:
                assert revenue.bamboo_revenue == pytest.approx(2_250_000)
            else:
                assert revenue.bamboo_revenue == 0

    def test_bamboo_continues_after_loan_repaid(self):
        model = self._revenue_model()
        ledger = CohortLedger()
        ledger.add(1, 10, 1000.0)

        for year in range(1, 15):
            revenue = model.collect(ledger, year)

        assert ledger[0].loan_remaining == 0.0
        assert revenue.bamboo_revenue == pytest.approx(2_250_000)
        assert revenue.repayments == 0.0

    def test_both_rules_fire_for_different_cohorts(self):
        model = self._revenue_model()
        ledger = CohortLedger()
        ledger.add(1, 10, 1e12)
        ledger.add(5, 10, 1e12)

        revenue = model.collect(ledger, 6)
        assert revenue.bamboo_revenue == pytest.approx(2_250_000)
        assert revenue.carbon_revenue == pytest.approx(4_176_000)
        assert revenue.repayments == pytest.approx(0.10 * (2_250_000 + 4_176_000))


class TestBoundaries:
    """Single-year horizon and the reference example."""

    def test_single_year(self):
        series, summary = simulate(make_config(simulationDurationYears=1))
        assert len(series) == 1
        year1 = series[0]
        assert year1.new_farmers == 40
        assert year1.bamboo_revenue == 0
        assert year1.carbon_revenue == 0
        assert year1.total_repayments == 0
        assert year1.operator_revenue == 0
        assert summary.final_fund_value == 10_000_000

    def test_example_year_one(self):
        series, _ = simulate(make_config(
            initialCapital=10, investmentPerHectare=5000, farmerSurfaceHectares=50
        ))
        year1 = series[0]
        assert year1.year == 1
        assert year1.fund_balance_start == 10_000_000
        assert year1.new_farmers == 40
        assert year1.total_farmers == 40
        assert year1.fund_balance_end == 0
        assert year1.bamboo_revenue == 0
        assert year1.carbon_revenue == 0

    def test_year_indices_are_one_based(self):
        series, _ = simulate(make_config(simulationDurationYears=25))
        assert [r.year for r in series] == list(range(1, 26))

    def test_fund_too_small_to_finance(self):
        series, summary = simulate(make_config(initialCapital=0.1))
        assert all(r.new_farmers == 0 for r in series)
        assert summary.total_cultivated_surface == 0
        assert summary.jobs_created == 0
        assert summary.final_fund_value == pytest.approx(100_000)


class TestInvalidInput:
    """InvalidConfiguration raised before any step."""

    @pytest.mark.parametrize("overrides", [
        {"simulationDurationYears": 0},
        {"simulationDurationYears": -3},
        {"simulationDurationYears": 2.5},
        {"simulationDurationYears": MAX_DURATION_YEARS + 1},
        {"initialCapital": -1},
        {"repaymentRate": -5},
        {"bambooPricePerTon": float("nan")},
        {"carbonPricePerTon": float("inf")},
        {"investmentPerHectare": 0},
        {"farmerSurfaceHectares": 0},
    ])
    def test_rejected(self, overrides):
        flat = load_config().to_flat_dict()
        flat.update(overrides)
        with pytest.raises(InvalidConfiguration):
            simulate(flat)

    def test_error_names_failing_field(self):
        flat = load_config().to_flat_dict()
        flat["simulationDurationYears"] = 0
        with pytest.raises(InvalidConfiguration) as exc_info:
            simulate(flat)
        assert "simulation.duration_years" in str(exc_info.value)

    def test_unknown_flat_key_rejected(self):
        flat = load_config().to_flat_dict()
        flat["interestRate"] = 3
        with pytest.raises(InvalidConfiguration):
            Config.from_flat_dict(flat)

    def test_mutated_config_revalidated(self):
        """In-place edits are caught when the run starts."""
        config = load_config()
        config.financing.initial_capital = -10
        with pytest.raises(InvalidConfiguration):
            SimulationRunner(config).run()

    def test_invalid_configuration_is_value_error(self):
        assert issubclass(InvalidConfiguration, ValueError)

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidConfiguration):
            simulate([1, 2, 3])

    @pytest.mark.parametrize("overrides", [
        {"initialCapital": 1e303},
        {"carbonPricePerTon": 1e305},
        {"investmentPerHectare": 1e300, "farmerSurfaceHectares": 1e10},
        {"investmentPerHectare": 1e-200, "farmerSurfaceHectares": 1e-200},
        {"initialCapital": 1e300, "investmentPerHectare": 1e-5, "farmerSurfaceHectares": 1e-5},
    ])
    def test_overflowing_derived_amounts_rejected(self, overrides):
        """Finite fields whose products leave the float range fail at validation."""
        flat = load_config().to_flat_dict()
        flat.update(overrides)
        with pytest.raises(InvalidConfiguration):
            Config.from_flat_dict(flat)

    def test_huge_price_fails_cleanly(self):
        """Per-farmer revenue fits, but a cohort's revenue does not."""
        flat = load_config().to_flat_dict()
        flat["bambooPricePerTon"] = 1e305
        with pytest.raises(InvalidConfiguration):
            simulate(flat)

    def test_compounding_overflow_fails_cleanly(self):
        """Runaway growth over a long horizon raises instead of returning inf."""
        config = make_config(
            initialCapital=0.99,
            investmentPerHectare=1.1,
            farmerSurfaceHectares=0.3,
            simulationDurationYears=MAX_DURATION_YEARS,
        )
        with pytest.raises(InvalidConfiguration) as exc_info:
            SimulationRunner(config).run()
        assert "overflows" in str(exc_info.value)


class TestSummary:
    """Summary derived from final accumulators."""

    @pytest.mark.parametrize("config", property_configs()[:8])
    def test_operator_final_balance_reconciles(self, config):
        series, summary = simulate(config)
        operator_total = sum(r.operator_revenue for r in series)
        assert summary.operator_final_balance == operator_total + summary.final_fund_value

    def test_final_fund_value_is_cash_plus_loans(self):
        result = SimulationRunner(make_config(simulationDurationYears=25)).run()
        cash = result.year_series[-1].fund_balance_end
        loans = sum(c.loan_remaining for c in result.cohorts)
        assert result.summary.final_fund_value == pytest.approx(cash + loans)

    def test_compute_summary_formulas(self):
        summary = compute_summary(
            total_cultivated_surface=10_000,
            fund_balance=1_000,
            outstanding_loans=500,
            operator_net_cash_flow=250,
            bamboo_production_per_hectare=30,
            bamboo_price_per_ton=150,
            carbon_price_per_ton=40,
            commission_fraction=0.05,
            recapitalization_fraction=0.20
        )
        assert summary.deforestation_reduction == pytest.approx(1.25)
        assert summary.carbon_emission_reduction == pytest.approx(3.2625)
        assert summary.irrigated_surface_percentage == pytest.approx(10_000 / 9_000_000 * 100)
        assert summary.jobs_created == 1300
        assert summary.annual_carbon_sequestration == pytest.approx(522_000)
        assert summary.annual_global_gdp == pytest.approx(300_000 * 219.6)
        assert summary.final_fund_value == 1_500
        assert summary.operator_annual_revenue == pytest.approx(300_000 * 0.25 * 219.6)
        assert summary.operator_final_balance == 1_750

    def test_jobs_created_is_floored(self):
        summary = compute_summary(
            total_cultivated_surface=50,
            fund_balance=0,
            outstanding_loans=0,
            operator_net_cash_flow=0,
            bamboo_production_per_hectare=30,
            bamboo_price_per_ton=150,
            carbon_price_per_ton=40,
            commission_fraction=0.05,
            recapitalization_fraction=0.20
        )
        assert summary.jobs_created == 6
        assert isinstance(summary.jobs_created, int)
        assert not math.isnan(summary.annual_global_gdp)
