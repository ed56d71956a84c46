"""
Configuration Validator (``forecast_config.validator``).

Responsibility
--------------
Validates a ``PayrollConfigSet`` before any engine input is built from
it, so that an inconsistent tax table never reaches a calculation.

Architecture position
---------------------
**Config layer** -- load-time validation.  Called by
``forecast_config.get_active_config()`` after parsing.  No dependency on
engines, modules, or the database layer.

Invariants enforced
-------------------
* Tax scale shape -- the first band starts at zero, every band starts
  where the previous one ends, and only the last band is open-ended.
* Base tax consistency -- each band's ``base_tax`` equals the tax payable
  on all lower bands.
* Rate ranges -- marginal rates and the super guarantee rate lie in [0, 1].
* Positive default hours, known default pay frequency and pay day, and
  a forward effective date range.

Failure modes
-------------
* ``validate_tax_brackets`` raises ``TaxScaleError`` on the first
  structural defect.
* ``validate_configuration`` collects errors into a
  ``ConfigValidationResult``; a set with errors MUST NOT be used.
  Warnings (e.g. a marginal rate lower than the band below it) are
  reported but do not block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from forecast_config.schema import PayrollConfigSet, TaxBracketDef
from forecast_kernel.exceptions import TaxScaleError

_ZERO = Decimal("0")
_ONE = Decimal("1")
_FREQUENCIES = ("weekly", "fortnightly", "monthly")
_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` is ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_tax_brackets(tax_year: str, brackets: Sequence[TaxBracketDef]) -> list[str]:
    """
    Check the structure of a progressive tax table.

    Returns:
        Non-blocking warnings.

    Raises:
        TaxScaleError: if the table is empty, gapped, overlapping, has an
            open band before the last, a rate outside [0, 1], or a base tax
            that does not equal the cumulative tax of the lower bands.
    """
    if not brackets:
        raise TaxScaleError(tax_year, "no tax brackets defined")

    if brackets[0].threshold != _ZERO:
        raise TaxScaleError(
            tax_year, f"first bracket must start at 0, got {brackets[0].threshold}"
        )

    warnings: list[str] = []
    expected_base = _ZERO

    for i, bracket in enumerate(brackets):
        label = f"bracket {i + 1}"

        if not _ZERO <= bracket.rate <= _ONE:
            raise TaxScaleError(tax_year, f"{label} rate {bracket.rate} outside [0, 1]")

        if bracket.base_tax != expected_base:
            raise TaxScaleError(
                tax_year,
                f"{label} base tax {bracket.base_tax} does not equal "
                f"tax on lower bands {expected_base}",
            )

        is_last = i == len(brackets) - 1
        if bracket.max_income is None:
            if not is_last:
                raise TaxScaleError(tax_year, f"{label} is open-ended but is not the top band")
            continue

        if bracket.max_income <= bracket.threshold:
            raise TaxScaleError(
                tax_year, f"{label} max {bracket.max_income} not above threshold {bracket.threshold}"
            )

        if is_last:
            raise TaxScaleError(tax_year, "top bracket must be open-ended")

        following = brackets[i + 1]
        if following.threshold != bracket.max_income:
            raise TaxScaleError(
                tax_year,
                f"bracket {i + 2} starts at {following.threshold}, "
                f"expected {bracket.max_income}",
            )
        if following.rate < bracket.rate:
            warnings.append(
                f"Tax year {tax_year}: bracket {i + 2} rate {following.rate} "
                f"is lower than bracket {i + 1} rate {bracket.rate}"
            )

        expected_base += (bracket.max_income - bracket.threshold) * bracket.rate

    return warnings


def validate_configuration(config: PayrollConfigSet) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Tax table defects raise ``TaxScaleError`` immediately; every other
    check is collected into the returned result.
    """
    result = ConfigValidationResult()

    for warning in validate_tax_brackets(config.tax_year, config.tax_brackets):
        result.add_warning(warning)

    sg_rate = config.payroll.super_guarantee_rate
    if not _ZERO <= sg_rate <= _ONE:
        result.add_error(f"super_guarantee_rate {sg_rate} outside [0, 1]")

    if config.payroll.default_hours_per_week <= _ZERO:
        result.add_error(
            f"default_hours_per_week must be positive, got "
            f"{config.payroll.default_hours_per_week}"
        )

    if not _ZERO <= config.forecast.super_loading <= _ONE:
        result.add_error(f"super_loading {config.forecast.super_loading} outside [0, 1]")

    if config.payroll.default_pay_frequency not in _FREQUENCIES:
        result.add_error(
            f"Unknown default_pay_frequency '{config.payroll.default_pay_frequency}'"
        )

    if config.payroll.default_pay_day and config.payroll.default_pay_day not in _WEEKDAYS:
        result.add_error(f"Unknown default_pay_day '{config.payroll.default_pay_day}'")

    scope = config.scope
    if scope.effective_to is not None and scope.effective_to < scope.effective_from:
        result.add_error(
            f"effective_to {scope.effective_to} is before effective_from {scope.effective_from}"
        )

    return result
