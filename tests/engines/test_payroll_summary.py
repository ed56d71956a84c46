"""
Tests for monthly payroll totals.

Covers:
- Opex / COGS split of wages and super
- PAYG as per-run withholding times pay runs
- Employment windows, inactive and salary-less employees
- Zero-filled month maps
"""

from decimal import Decimal

from forecast_engines.payroll import (
    ForecastEmployee,
    PayDay,
    PayFrequency,
    WageClassification,
)

MONTHS = ["2025-01", "2025-02", "2025-03"]


def _employees() -> list[ForecastEmployee]:
    return [
        ForecastEmployee(
            id="opex-1", employee_name="Office", annual_salary=Decimal("120000"),
        ),
        ForecastEmployee(
            id="cogs-1", employee_name="Crew", classification=WageClassification.COGS,
            annual_salary=Decimal("60000"), start_date="2025-02",
        ),
        ForecastEmployee(
            id="gone", employee_name="Inactive", annual_salary=Decimal("90000"), is_active=False,
        ),
        ForecastEmployee(id="vacant", employee_name="Vacant"),
    ]


class TestMonthlyTotals:
    """Tests for per-month wage, super, PAYG and net totals."""

    def test_every_month_present(self, summary_calculator):
        totals = summary_calculator.summarize([], MONTHS, PayFrequency.MONTHLY)

        for month_map in (
            totals.pay_runs_per_month,
            totals.wages_opex_monthly,
            totals.wages_cogs_monthly,
            totals.super_opex_monthly,
            totals.super_cogs_monthly,
            totals.payg_monthly,
            totals.net_wages_monthly,
        ):
            assert list(month_map) == MONTHS
        assert totals.total_wages == Decimal("0")

    def test_opex_and_cogs_split(self, summary_calculator):
        totals = summary_calculator.summarize(
            _employees(), MONTHS, PayFrequency.MONTHLY, super_rate=Decimal("0.115"),
        )

        assert totals.wages_opex_monthly["2025-01"] == Decimal("10000")
        assert totals.wages_cogs_monthly["2025-01"] == Decimal("0")
        assert totals.wages_cogs_monthly["2025-02"] == Decimal("5000")
        assert totals.super_opex_monthly["2025-01"] == Decimal("1150")
        assert totals.super_cogs_monthly["2025-02"] == Decimal("575")

    def test_inactive_and_unsalaried_are_skipped(self, summary_calculator):
        totals = summary_calculator.summarize(_employees(), MONTHS, PayFrequency.MONTHLY)

        # Office for three months plus Crew for two.
        assert totals.total_wages == Decimal("40000")

    def test_payg_is_per_run_withholding_times_runs(self, summary_calculator, calculator):
        totals = summary_calculator.summarize(
            _employees(), ["2025-01"], PayFrequency.WEEKLY, pay_day=PayDay.FRIDAY,
        )

        per_run = calculator.payg_per_period(Decimal("120000"), PayFrequency.WEEKLY)
        assert totals.pay_runs_per_month["2025-01"] == 5
        assert totals.payg_monthly["2025-01"] == per_run * 5

    def test_net_wages_are_wages_less_payg(self, summary_calculator):
        totals = summary_calculator.summarize(_employees(), MONTHS, PayFrequency.MONTHLY)

        for key in MONTHS:
            gross = totals.wages_opex_monthly[key] + totals.wages_cogs_monthly[key]
            assert totals.net_wages_monthly[key] == gross - totals.payg_monthly[key]

    def test_default_super_rate_is_guarantee_rate(self, summary_calculator):
        totals = summary_calculator.summarize(_employees()[:1], ["2025-01"], PayFrequency.MONTHLY)

        assert totals.super_opex_monthly["2025-01"] == Decimal("1150")
        assert totals.total_super == Decimal("1150")

    def test_wages_for_classification(self, summary_calculator):
        totals = summary_calculator.summarize(_employees(), MONTHS, PayFrequency.MONTHLY)

        assert totals.wages_for(WageClassification.COGS, "2025-03") == Decimal("5000")
        assert totals.wages_for(WageClassification.OPEX, "2025-03") == Decimal("10000")
        assert totals.wages_for(WageClassification.OPEX, "2030-01") == Decimal("0")

    def test_employee_leaving_stops_contributing(self, summary_calculator):
        leaver = ForecastEmployee(
            employee_name="Leaver", annual_salary=Decimal("24000"), end_date="2025-01-15",
        )

        totals = summary_calculator.summarize([leaver], MONTHS, PayFrequency.MONTHLY)

        assert totals.wages_opex_monthly == {
            "2025-01": Decimal("2000"),
            "2025-02": Decimal("0"),
            "2025-03": Decimal("0"),
        }
