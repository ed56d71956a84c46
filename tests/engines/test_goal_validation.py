"""
Tests for goal validation against YTD actuals.

Covers:
- Revenue goal already exceeded (error + raise-goal suggestion)
- OpEx budget exhausted (error + trajectory and aggressive suggestions)
- Goal consistency warnings
- The three realistic scenarios and zero-month edge cases
"""

from decimal import Decimal

from forecast_engines.fiscal import fiscal_year_months
from forecast_engines.goal_validation import (
    GoalValidator,
    PLCategory,
    PLLineActuals,
    WarningSeverity,
    WarningType,
)

FY2025 = fiscal_year_months(2025)
ELAPSED = FY2025[:6]
REMAINING = FY2025[6:]


def _line(name: str, category: PLCategory, monthly: str, months=ELAPSED) -> PLLineActuals:
    return PLLineActuals(name, category, {key: Decimal(monthly) for key in months})


class TestYtdTotals:
    """Tests for summing actuals by category."""

    def test_sums_only_matching_category_and_months(self):
        lines = [
            _line("Sales", PLCategory.REVENUE, "1000"),
            _line("Rent", PLCategory.OPERATING_EXPENSES, "500"),
        ]

        total = GoalValidator.ytd_total(lines, PLCategory.REVENUE, ELAPSED[:3])

        assert total == Decimal("3000")

    def test_category_given_as_text(self):
        lines = [PLLineActuals("Sales", "Revenue", {"2024-07": Decimal("10")})]

        assert GoalValidator.ytd_total(lines, PLCategory.REVENUE, ["2024-07"]) == Decimal("10")

    def test_unknown_category_is_skipped(self):
        lines = [
            PLLineActuals("Depreciation", "Depreciation", {"2024-07": Decimal("400")}),
            PLLineActuals("Sales", "Revenue ", {"2024-07": Decimal("7")}),
            PLLineActuals("Sales", "Revenue", {"2024-07": Decimal("10")}),
        ]

        assert GoalValidator.ytd_total(lines, PLCategory.REVENUE, ["2024-07"]) == Decimal("10")

    def test_validation_with_unknown_category_lines(self):
        lines = [
            _line("Sales", PLCategory.REVENUE, "50000"),
            _line("Depreciation", "Depreciation", "99999"),
        ]

        result = GoalValidator().validate_goals(
            Decimal("1000000"), Decimal("600000"), Decimal("150000"), lines, ELAPSED, REMAINING,
        )

        assert result.is_valid


class TestGoalWarnings:
    """Tests for warnings and suggestions."""

    def setup_method(self):
        self.validator = GoalValidator()

    def test_achievable_goals_are_valid(self):
        lines = [
            _line("Sales", PLCategory.REVENUE, "50000"),
            _line("Rent", PLCategory.OPERATING_EXPENSES, "10000"),
        ]

        result = self.validator.validate_goals(
            Decimal("1000000"), Decimal("600000"), Decimal("150000"), lines, ELAPSED, REMAINING,
        )

        assert result.is_valid
        assert result.warnings == ()
        assert result.suggestions == ()

    def test_revenue_already_exceeded(self):
        lines = [_line("Sales", PLCategory.REVENUE, "100000")]

        result = self.validator.validate_goals(
            Decimal("500000"), Decimal("300000"), Decimal("50000"), lines, ELAPSED, REMAINING,
        )

        assert not result.is_valid
        error = result.errors[0]
        assert error.type == WarningType.REVENUE
        assert error.ytd == Decimal("600000")
        assert error.difference == Decimal("100000")
        assert result.suggestions[0].revenue_goal == Decimal("660000")

    def test_raise_goal_suggestion_rounds_up(self):
        lines = [PLLineActuals("Sales", PLCategory.REVENUE, {"2024-07": Decimal("1001")})]

        result = self.validator.validate_goals(
            Decimal("1000"), Decimal("500"), Decimal("100"), lines, ["2024-07"], REMAINING,
        )

        # 1,001 x 1.1 = 1,101.1 -> 1,102
        assert result.suggestions[0].revenue_goal == Decimal("1102")

    def test_opex_budget_exhausted(self):
        lines = [_line("Wages", PLCategory.OPERATING_EXPENSES, "80000")]

        result = self.validator.validate_goals(
            Decimal("1000000"), Decimal("600000"), Decimal("200000"), lines, ELAPSED, REMAINING,
        )

        error = result.errors[0]
        assert error.type == WarningType.OPEX
        assert error.ytd == Decimal("480000")
        assert error.goal == Decimal("400000")
        assert error.difference == Decimal("80000")

        trajectory, aggressive = result.suggestions
        # 600,000 - (480,000 + 80,000 x 6)
        assert trajectory.net_profit_goal == Decimal("-360000")
        # 600,000 - (480,000 + 56,000 x 6)
        assert aggressive.net_profit_goal == Decimal("-216000")

    def test_gross_profit_above_revenue_warns(self):
        result = self.validator.validate_goals(
            Decimal("100000"), Decimal("120000"), Decimal("10000"), [], [], FY2025,
        )

        assert result.is_valid
        assert [w.type for w in result.warnings] == [WarningType.COGS]
        assert result.warnings[0].severity == WarningSeverity.WARNING

    def test_net_profit_above_gross_profit_warns(self):
        result = self.validator.validate_goals(
            Decimal("100000"), Decimal("50000"), Decimal("60000"), [], [], FY2025,
        )

        consistency = [w for w in result.warnings if w.type == WarningType.NET_PROFIT]
        assert len(consistency) == 1
        assert consistency[0].severity == WarningSeverity.WARNING
        assert consistency[0].difference == Decimal("10000")
        # The implied opex budget is negative, so it is also already exhausted.
        assert [w.type for w in result.errors] == [WarningType.OPEX]


class TestScenarios:
    """Tests for the current, trajectory and aggressive scenarios."""

    def setup_method(self):
        self.validator = GoalValidator()

    def test_three_scenarios(self):
        lines = [_line("Rent", PLCategory.OPERATING_EXPENSES, "20000")]

        result = self.validator.validate_goals(
            Decimal("1000000"), Decimal("600000"), Decimal("150000"), lines, ELAPSED, REMAINING,
        )

        current, trajectory, aggressive = result.scenarios
        assert current.opex == Decimal("450000")
        assert current.is_achievable is True
        assert trajectory.gross_profit == Decimal("600000")
        assert trajectory.opex == Decimal("240000")
        assert trajectory.net_profit == Decimal("360000")
        assert aggressive.opex == Decimal("204000")

    def test_no_elapsed_months_degrade_to_zero(self):
        result = self.validator.validate_goals(
            Decimal("0"), Decimal("0"), Decimal("0"), [], [], [],
        )

        assert result.is_valid
        for scenario in result.scenarios:
            assert scenario.opex == Decimal("0")
            assert scenario.net_profit == Decimal("0")
