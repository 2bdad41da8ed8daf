"""Snapshot tests for the yearly timeline and impact summary.

These tests verify that simulation results match hand-computed reference
values for the default program over six years. If these fail after code
changes, either:
1. The change broke something (bug) - fix the code
2. The change is intentional - update the snapshot values

Reference program: 10M capital, 5000/ha, 50 ha per farmer (250k per farmer),
30 t/ha, bamboo 150/t, carbon 40/t, repayment 10%, commission 5%,
recapitalization 20%.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bamboofund.config.loader import load_config
from bamboofund.config.schema import Config
from bamboofund.simulation.runner import SimulationRunner


# (year, fund_start, fund_end, new, total, repayments, bamboo, carbon, operator)
SNAPSHOT_TIMELINE = [
    (1, 10_000_000, 0, 40, 40, 0, 0, 0, 0),
    (2, 0, 5_011_200, 0, 40, 1_670_400, 0, 16_704_000, 835_200),
    (3, 5_011_200, 11_200, 20, 60, 0, 0, 0, 0),
    (4, 11_200, 2_516_800, 0, 60, 835_200, 0, 8_352_000, 417_600),
    (5, 2_516_800, 16_800, 10, 70, 0, 0, 0, 0),
    (6, 16_800, 3_969_600, 0, 70, 1_317_600, 9_000_000, 4_176_000, 658_800),
]

SNAPSHOT_SUMMARY = {
    'deforestation_reduction': 0.4375,
    'carbon_emission_reduction': 1.141875,
    'irrigated_surface_percentage': 3500 / 9_000_000 * 100,
    'jobs_created': 455,
    'total_cultivated_surface': 3500,
    'annual_carbon_sequestration': 182_700,
    'annual_global_gdp': 23_058_000,
    'final_fund_value': 17_646_400,
    'operator_annual_revenue': 5_764_500,
    'operator_final_balance': 19_558_000,
}

# Remaining principal per cohort after year 6
SNAPSHOT_LOANS = [7_429_600, 0, 4_164_800, 0, 2_082_400, 0]


@pytest.fixture(scope="module")
def six_year_result():
    config = load_config()
    config = Config.from_dict({
        **config.to_dict(),
        'simulation': {'duration_years': 6},
    })
    return SimulationRunner(config).run()


class TestTimelineSnapshot:
    """Year-by-year values for the reference program."""

    @pytest.mark.parametrize("expected", SNAPSHOT_TIMELINE, ids=lambda row: f"year{row[0]}")
    def test_year_record(self, six_year_result, expected):
        (year, fund_start, fund_end, new, total,
         repayments, bamboo, carbon, operator) = expected
        record = six_year_result.year_series[year - 1]

        assert record.year == year
        assert record.fund_balance_start == pytest.approx(fund_start)
        assert record.fund_balance_end == pytest.approx(fund_end)
        assert record.new_farmers == new
        assert record.total_farmers == total
        assert record.total_repayments == pytest.approx(repayments)
        assert record.bamboo_revenue == pytest.approx(bamboo)
        assert record.carbon_revenue == pytest.approx(carbon)
        assert record.operator_revenue == pytest.approx(operator)

    def test_cohort_loans(self, six_year_result):
        loans = [c.loan_remaining for c in six_year_result.cohorts]
        assert loans == pytest.approx(SNAPSHOT_LOANS)

    def test_cultivated_surface_by_year(self, six_year_result):
        surface = [r.cultivated_surface for r in six_year_result.year_series]
        assert surface == [2000, 2000, 3000, 3000, 3500, 3500]


class TestSummarySnapshot:
    """Impact summary for the reference program."""

    @pytest.mark.parametrize("metric", list(SNAPSHOT_SUMMARY))
    def test_summary_metric(self, six_year_result, metric):
        actual = getattr(six_year_result.summary, metric)
        assert actual == pytest.approx(SNAPSHOT_SUMMARY[metric])

    def test_final_metrics_extras(self, six_year_result):
        metrics = six_year_result.final_metrics
        assert metrics['final_fund_balance'] == pytest.approx(3_969_600)
        assert metrics['outstanding_loans'] == pytest.approx(13_676_800)
        assert metrics['total_farmers'] == 70
        assert metrics['operator_net_cash_flow'] == pytest.approx(1_911_600)
