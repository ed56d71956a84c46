"""Tests for month keys and the July-June fiscal calendar."""

from datetime import date

import pytest

from forecast_engines.fiscal import (
    fiscal_quarter,
    fiscal_year_for,
    fiscal_year_months,
    forecast_periods,
    month_index,
    month_key,
    month_range,
    parse_month_key,
)
from forecast_kernel.exceptions import CalendarError, InvalidMonthKeyError


class TestMonthKeys:
    """Tests for parsing and building month keys."""

    def test_parse_month_key(self):
        assert parse_month_key("2025-03") == (2025, 3)

    def test_parse_full_date(self):
        assert parse_month_key("2025-03-31") == (2025, 3)

    @pytest.mark.parametrize("value", ["2025-13", "2025-00", "25-03", "March 2025", "", None])
    def test_malformed_keys_raise(self, value):
        with pytest.raises(InvalidMonthKeyError) as exc_info:
            parse_month_key(value)
        assert exc_info.value.value == value

    def test_invalid_month_key_is_calendar_error(self):
        with pytest.raises(CalendarError):
            month_key(2025, 0)

    def test_month_key_pads(self):
        assert month_key(2025, 7) == "2025-07"

    def test_month_index_orders_across_years(self):
        assert month_index("2024-12") + 1 == month_index("2025-01")


class TestFiscalYear:
    """Tests for fiscal year membership and quarters."""

    def test_fiscal_year_months(self):
        months = fiscal_year_months(2025)

        assert len(months) == 12
        assert months[0] == "2024-07"
        assert months[-1] == "2025-06"

    def test_fiscal_year_for(self):
        assert fiscal_year_for("2024-07") == 2025
        assert fiscal_year_for("2025-06") == 2025
        assert fiscal_year_for("2025-07-01") == 2026

    @pytest.mark.parametrize("key,quarter", [
        ("2024-07", "Q1"),
        ("2024-09", "Q1"),
        ("2024-10", "Q2"),
        ("2024-12", "Q2"),
        ("2025-01", "Q3"),
        ("2025-03", "Q3"),
        ("2025-04", "Q4"),
        ("2025-06", "Q4"),
    ])
    def test_fiscal_quarter(self, key, quarter):
        assert fiscal_quarter(key) == quarter


class TestForecastPeriods:
    """Tests for splitting a fiscal year into actual and forecast months."""

    def test_month_range_crosses_year_end(self):
        assert month_range("2024-11", "2025-02") == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_month_range_empty_when_reversed(self):
        assert month_range("2025-07", "2025-06") == []

    def test_before_the_year_everything_is_forecast(self):
        periods = forecast_periods(2026, date(2025, 3, 14))

        assert periods.is_rolling is False
        assert periods.baseline_start_month == "2024-07"
        assert periods.baseline_end_month == "2025-06"
        assert periods.current_year_month_keys == []
        assert periods.forecast_month_keys == fiscal_year_months(2026)

    def test_inside_the_year_is_rolling(self):
        periods = forecast_periods(2026, date(2025, 11, 20))

        assert periods.is_rolling is True
        assert periods.actual_start_month == "2025-07"
        assert periods.actual_end_month == "2025-10"
        assert periods.current_year_month_keys == ["2025-07", "2025-08", "2025-09", "2025-10"]
        assert periods.forecast_month_keys[0] == "2025-11"
        assert periods.forecast_month_keys[-1] == "2026-06"
        assert len(periods.current_year_month_keys) + len(periods.forecast_month_keys) == 12

    def test_first_day_of_the_year_has_no_actuals(self):
        periods = forecast_periods(2026, date(2025, 7, 1))

        assert periods.is_rolling is True
        assert periods.current_year_month_keys == []
        assert len(periods.forecast_month_keys) == 12

    def test_last_month_of_the_year(self):
        periods = forecast_periods(2026, date(2026, 6, 30))

        assert periods.forecast_month_keys == ["2026-06"]
        assert len(periods.current_year_month_keys) == 11

    def test_after_the_year_is_not_rolling(self):
        periods = forecast_periods(2025, date(2026, 1, 5))

        assert periods.is_rolling is False
        assert periods.forecast_month_keys == fiscal_year_months(2025)

    def test_baseline_is_prior_fiscal_year(self):
        periods = forecast_periods(2026, date(2025, 11, 20))

        assert periods.baseline_month_keys == fiscal_year_months(2025)
