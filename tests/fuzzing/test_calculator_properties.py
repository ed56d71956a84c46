"""
Hypothesis-based property tests for the payroll and forecast engines.

Property-based testing using Hypothesis to generate salaries, rates and
month ranges and verify invariants hold.

Boundaries fuzzed here:
- PAYG: non-negative, monotonic in salary, never above the top marginal rate
- Period conversions: pay per period x periods recovers the salary
- Hourly conversions: annual salary from an hourly rate converts back
- Pay runs per month: weekly 4-5, fortnightly 2-3, monthly 1
- Recalculation: idempotent for an unchanged basis
- Summary: net wages = gross - PAYG in every month
- Forecast: projected profit = revenue - total expenses

Boundaries not fuzzed here (covered by explicit tests):
- Tax scale structure (tests/config/test_active_config.py)
- Persistence round trips (tests/modules/test_payroll_orm.py)
"""

from datetime import date
from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from forecast_config import get_active_config
from forecast_config.bridges import build_payroll_calculator
from forecast_engines.fiscal import month_key
from forecast_engines.forecast import (
    Baseline,
    ForecastCalculator,
    Investment,
    InvestmentType,
    Targets,
    TeamMember,
    TeamPlan,
)
from forecast_engines.payroll import (
    ForecastEmployee,
    PayDay,
    PayFrequency,
    WageClassification,
)
from forecast_engines.payroll_summary import PayrollSummaryCalculator

TOP_MARGINAL_RATE = Decimal("0.45")

salaries = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
hourly_rates = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("500"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
weekly_hours = st.decimals(
    min_value=Decimal("1"),
    max_value=Decimal("80"),
    places=1,
    allow_nan=False,
    allow_infinity=False,
)
percents = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    places=1,
    allow_nan=False,
    allow_infinity=False,
)
month_keys = st.builds(
    month_key,
    st.integers(min_value=2000, max_value=2100),
    st.integers(min_value=1, max_value=12),
)

_SETTINGS = dict(
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)


class TestPaygProperties:
    """Progressive withholding invariants."""

    def setup_method(self):
        self.calculator = build_payroll_calculator(get_active_config(as_of=date(2025, 3, 1)))

    @given(salary=salaries)
    @settings(**_SETTINGS)
    def test_non_negative_and_bounded(self, salary):
        tax = self.calculator.annual_payg(salary)

        assert tax >= 0
        assert tax <= salary * TOP_MARGINAL_RATE

    @given(a=salaries, b=salaries)
    @settings(**_SETTINGS)
    def test_monotonic_in_salary(self, a, b):
        low, high = sorted((a, b))

        assert self.calculator.annual_payg(low) <= self.calculator.annual_payg(high)

    @given(salary=salaries)
    @settings(**_SETTINGS)
    def test_marginal_rate_applies_to_next_dollar(self, salary):
        """One extra dollar costs at most the bracket's marginal rate."""
        step = self.calculator.annual_payg(salary + 1) - self.calculator.annual_payg(salary)
        rate = self.calculator.rates.tax_scale.bracket_for(salary + 1).rate

        assert 0 <= step <= rate

    def test_continuous_at_thresholds(self):
        """Each band ends at exactly the next band's base tax."""
        brackets = self.calculator.rates.tax_scale.brackets
        for lower, upper in zip(brackets, brackets[1:]):
            assert lower.tax_for(lower.max_income) == upper.base_tax


class TestPeriodProperties:
    """Period conversions and pay-run counts."""

    def setup_method(self):
        self.calculator = build_payroll_calculator(get_active_config(as_of=date(2025, 3, 1)))

    @given(salary=salaries, frequency=st.sampled_from(list(PayFrequency)))
    @settings(**_SETTINGS)
    def test_pay_per_period_recovers_salary(self, salary, frequency):
        periods = self.calculator.periods_per_year(frequency)
        pay = self.calculator.pay_per_period(salary, frequency)

        assert abs(pay * periods - salary) < Decimal("0.000001")

    @given(rate=hourly_rates, hours=weekly_hours)
    @settings(**_SETTINGS)
    def test_hourly_rate_recovered_from_annual_salary(self, rate, hours):
        annual = self.calculator.annual_salary_from_hourly(rate, hours)

        assert abs(self.calculator.hourly_rate_from_annual(annual, hours) - rate) < Decimal("0.000001")

    @given(key=month_keys, pay_day=st.sampled_from(list(PayDay)))
    @settings(**_SETTINGS)
    def test_pay_runs_per_month(self, key, pay_day):
        weekly = self.calculator.pay_periods_in_month(key, PayFrequency.WEEKLY, pay_day)
        fortnightly = self.calculator.pay_periods_in_month(key, PayFrequency.FORTNIGHTLY, pay_day)
        monthly = self.calculator.pay_periods_in_month(key, PayFrequency.MONTHLY, pay_day)

        assert weekly in (4, 5)
        assert fortnightly in (2, 3)
        assert monthly == 1

    @given(
        salary=salaries,
        frequency=st.sampled_from(list(PayFrequency)),
        rate=st.sampled_from([Decimal("0.115"), Decimal("0.12")]),
    )
    @settings(**_SETTINGS)
    def test_recalculation_is_idempotent(self, salary, frequency, rate):
        employee = ForecastEmployee(employee_name="Fuzz", annual_salary=salary)

        once = self.calculator.recalculate_employee(employee, frequency, super_rate=rate)
        twice = self.calculator.recalculate_employee(once, frequency, super_rate=rate)

        assert once == twice


class TestSummaryProperties:
    """Monthly totals."""

    def setup_method(self):
        calculator = build_payroll_calculator(get_active_config(as_of=date(2025, 3, 1)))
        self.summary = PayrollSummaryCalculator(calculator)

    @given(
        rows=st.lists(
            st.tuples(salaries, st.sampled_from(list(WageClassification)), st.booleans()),
            max_size=6,
        ),
        frequency=st.sampled_from(list(PayFrequency)),
    )
    @settings(**_SETTINGS)
    def test_net_wages_are_gross_less_payg(self, rows, frequency):
        employees = [
            ForecastEmployee(
                employee_name=f"E{i}", annual_salary=salary,
                classification=classification, is_active=active,
            )
            for i, (salary, classification, active) in enumerate(rows)
        ]
        keys = ["2025-01", "2025-02", "2025-03"]

        totals = self.summary.summarize(employees, keys, frequency, pay_day=PayDay.FRIDAY)

        for key in keys:
            gross = totals.wages_opex_monthly[key] + totals.wages_cogs_monthly[key]
            assert totals.net_wages_monthly[key] == gross - totals.payg_monthly[key]
            assert totals.payg_monthly[key] >= 0


class TestForecastProperties:
    """Forecast income statement identities."""

    def setup_method(self):
        self.calculator = ForecastCalculator()

    @given(
        revenue=salaries,
        profit=salaries,
        cogs_percent=percents,
        prior_opex=salaries,
        member_salaries=st.lists(salaries, max_size=5),
        investment=salaries,
        investment_type=st.sampled_from(list(InvestmentType)),
    )
    @settings(**_SETTINGS)
    def test_profit_identity(
        self, revenue, profit, cogs_percent, prior_opex,
        member_salaries, investment, investment_type,
    ):
        assume(profit <= revenue)
        team = TeamPlan(members=tuple(
            TeamMember(id=f"m{i}", name=f"M{i}", salary=s)
            for i, s in enumerate(member_salaries)
        ))

        result = self.calculator.calculate(
            Targets(revenue=revenue, net_profit=profit),
            Baseline(cogs_percent=cogs_percent, prior_opex=prior_opex),
            team,
            [Investment(id="i", name="I", amount=investment, type=investment_type)],
        )

        assert result.projected_profit == revenue - result.total_expenses
        assert result.budget_remaining == result.expense_budget - result.total_expenses
        assert result.is_on_track == (result.projected_profit >= profit)
        assert result.gross_profit + result.forecast_cogs == revenue
