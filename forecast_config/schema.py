"""
PayrollConfigSet schema.

Defines the human-authored, reviewable reference data for payroll and
forecast calculation.  YAML set files are parsed into these types by the
loader, checked by the validator, and turned into engine inputs by the
bridges.

Key distinction:
  PayrollConfigSet = source artifact (human-authored, versioned, dated)
  PayrollRates     = engine input (built by ``bridges.build_payroll_rates``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfigScope:
    """Where and when a configuration set applies."""

    jurisdiction: str  # ISO country code, e.g. "AU"
    currency: str
    effective_from: date
    effective_to: date | None = None

    def covers(self, as_of: date) -> bool:
        if as_of < self.effective_from:
            return False
        return self.effective_to is None or as_of <= self.effective_to


# ---------------------------------------------------------------------------
# Tax scale
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxBracketDef:
    """One marginal band of the resident income tax scale."""

    threshold: Decimal
    max_income: Decimal | None  # None = open-ended top band
    rate: Decimal  # As decimal (e.g., 0.30 for 30%)
    base_tax: Decimal = Decimal("0")


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayrollDefaults:
    """Statutory and house defaults for payroll calculation."""

    super_guarantee_rate: Decimal
    default_hours_per_week: Decimal = Decimal("38")
    default_pay_frequency: str = "fortnightly"
    default_pay_day: str = "friday"


@dataclass(frozen=True)
class ForecastDefaults:
    """Default assumptions for the forecast CFO workflow."""

    super_loading: Decimal = Decimal("0.12")
    net_profit_percent: Decimal = Decimal("12")
    cogs_percent: Decimal = Decimal("35")
    opex_inflation_percent: Decimal = Decimal("5")
    salary_increase_percent: Decimal = Decimal("6")


# ---------------------------------------------------------------------------
# Root configuration set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayrollConfigSet:
    """
    Complete, versioned payroll reference data for one tax year.

    The checksum is computed by the loader over the raw YAML content and
    identifies the exact data that governed a calculation.
    """

    config_id: str
    version: int
    tax_year: str  # e.g. "2024-25"
    scope: ConfigScope
    tax_brackets: tuple[TaxBracketDef, ...]
    payroll: PayrollDefaults
    forecast: ForecastDefaults = field(default_factory=ForecastDefaults)
    description: str = ""
    checksum: str = ""
