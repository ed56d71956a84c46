"""
Tests for the Forecast Calculator.

Covers:
- Expense budget and gross profit
- Team cost with salary increase and super loading
- OpEx / COGS team split and investments (opex vs capex)
- On-track determination and zero-revenue edge cases
"""

from decimal import Decimal

from forecast_engines.forecast import (
    Baseline,
    ForecastCalculator,
    Investment,
    InvestmentCategory,
    InvestmentType,
    PlannedHire,
    Targets,
    TeamMember,
    TeamPlan,
)
from forecast_engines.payroll import WageClassification


def _member(member_id: str, salary: str, kind=WageClassification.OPEX) -> TeamMember:
    return TeamMember(id=member_id, name=member_id, salary=Decimal(salary), type=kind)


class TestBudgetAndGrossProfit:
    """Tests for targets-derived figures."""

    def setup_method(self):
        self.calculator = ForecastCalculator()

    def test_expense_budget_is_revenue_less_profit(self):
        result = self.calculator.calculate(
            Targets(revenue=Decimal("1000000"), net_profit=Decimal("150000")),
            Baseline(),
            TeamPlan(),
        )

        assert result.expense_budget == Decimal("850000")

    def test_gross_profit_from_cogs_percent(self):
        result = self.calculator.calculate(
            Targets(revenue=Decimal("1000000")),
            Baseline(cogs_percent=Decimal("35")),
            TeamPlan(),
        )

        assert result.forecast_cogs == Decimal("350000")
        assert result.gross_profit == Decimal("650000")
        assert result.gross_profit_percent == Decimal("65")

    def test_zero_revenue_reports_zero_ratios(self):
        result = self.calculator.calculate(Targets(), Baseline(), TeamPlan())

        assert result.gross_profit_percent == Decimal("0")
        assert result.budget_used_percent == Decimal("0")
        assert result.is_on_track is True

    def test_targets_expense_budget_property(self):
        targets = Targets(revenue=Decimal("500000"), net_profit=Decimal("60000"))
        assert targets.expense_budget == Decimal("440000")


class TestTeamCost:
    """Tests for team cost with salary increase and super loading."""

    def setup_method(self):
        self.calculator = ForecastCalculator()

    def test_two_existing_members(self):
        """2 x 80,000 x 1.06 x 1.12 = 189,952."""
        team = TeamPlan(
            members=(_member("a", "80000"), _member("b", "80000")),
            salary_increase_percent=Decimal("6"),
        )

        result = self.calculator.calculate(Targets(), Baseline(), team)

        assert result.existing_team_cost == Decimal("189952")
        assert result.total_team_cost == Decimal("189952")
        assert result.team_opex_cost == Decimal("189952")

    def test_new_hires_get_super_but_no_increase(self):
        hire = PlannedHire(
            id="h1", name="New", position="Sales", salary=Decimal("100000"), start_month="2025-10",
        )
        team = TeamPlan(new_hires=(hire,))

        result = self.calculator.calculate(Targets(), Baseline(), team)

        assert result.new_hires_cost == Decimal("112000")

    def test_cogs_team_excluded_from_total_expenses(self):
        team = TeamPlan(
            members=(
                _member("a", "50000"),
                _member("b", "50000", WageClassification.COGS),
            ),
            salary_increase_percent=Decimal("0"),
        )

        result = self.calculator.calculate(
            Targets(revenue=Decimal("1000000")), Baseline(cogs_percent=Decimal("0")), team,
        )

        assert result.team_opex_cost == Decimal("56000")
        assert result.team_cogs_cost == Decimal("56000")
        assert result.total_expenses == Decimal("56000")

    def test_custom_super_loading(self):
        calculator = ForecastCalculator(super_loading=Decimal("0.10"))
        team = TeamPlan(members=(_member("a", "100000"),), salary_increase_percent=Decimal("0"))

        result = calculator.calculate(Targets(), Baseline(), team)

        assert result.existing_team_cost == Decimal("110000")


class TestExpensesAndTracking:
    """Tests for opex inflation, investments and the on-track flag."""

    def setup_method(self):
        self.calculator = ForecastCalculator()

    def test_opex_inflation(self):
        result = self.calculator.calculate(
            Targets(), Baseline(prior_opex=Decimal("200000"), opex_inflation=Decimal("5")), TeamPlan(),
        )

        assert result.opex_cost == Decimal("210000")

    def test_only_opex_investments_hit_profit(self):
        investments = [
            Investment(id="i1", name="Ads", amount=Decimal("20000"),
                       category=InvestmentCategory.MARKETING, type=InvestmentType.OPEX),
            Investment(id="i2", name="Van", amount=Decimal("60000"),
                       category=InvestmentCategory.EQUIPMENT, type=InvestmentType.CAPEX, quarter="Q3"),
        ]

        result = self.calculator.calculate(
            Targets(revenue=Decimal("100000")), Baseline(cogs_percent=Decimal("0")), TeamPlan(), investments,
        )

        assert result.investment_cost == Decimal("20000")
        assert result.capex_investment_cost == Decimal("60000")
        assert result.projected_profit == Decimal("80000")

    def test_full_projection(self):
        targets = Targets(revenue=Decimal("1000000"), net_profit=Decimal("150000"))
        baseline = Baseline(cogs_percent=Decimal("35"), prior_opex=Decimal("200000"),
                            opex_inflation=Decimal("5"))
        team = TeamPlan(members=(_member("a", "80000"), _member("b", "80000")))

        result = self.calculator.calculate(targets, baseline, team)

        # 350,000 cogs + 189,952 team + 210,000 opex
        assert result.total_expenses == Decimal("749952")
        assert result.projected_profit == Decimal("250048")
        assert result.budget_used == result.total_expenses
        assert result.budget_remaining == Decimal("100048")
        assert result.profit_variance == Decimal("100048")
        assert result.is_on_track is True

    def test_off_track_when_profit_below_target(self):
        targets = Targets(revenue=Decimal("500000"), net_profit=Decimal("100000"))
        baseline = Baseline(cogs_percent=Decimal("50"), prior_opex=Decimal("200000"),
                            opex_inflation=Decimal("0"))

        result = self.calculator.calculate(targets, baseline, TeamPlan())

        assert result.projected_profit == Decimal("50000")
        assert result.is_on_track is False
        assert result.profit_variance == Decimal("-50000")

    def test_exactly_on_target_is_on_track(self):
        targets = Targets(revenue=Decimal("100000"), net_profit=Decimal("40000"))
        baseline = Baseline(cogs_percent=Decimal("60"), prior_opex=Decimal("0"))

        result = self.calculator.calculate(targets, baseline, TeamPlan())

        assert result.projected_profit == Decimal("40000")
        assert result.is_on_track is True

    def test_budget_used_percent(self):
        targets = Targets(revenue=Decimal("100000"), net_profit=Decimal("20000"))
        baseline = Baseline(cogs_percent=Decimal("40"), prior_opex=Decimal("0"))

        result = self.calculator.calculate(targets, baseline, TeamPlan())

        assert result.budget_used_percent == Decimal("50")
