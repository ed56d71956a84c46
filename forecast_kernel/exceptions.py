"""
Typed Exception Hierarchy for the Forecast Kernel.

Every error has a typed class, a machine-readable ``code`` class attribute,
and carries its context as structured attributes rather than only a message
string.  Callers catch by type and report by code:

    try:
        service.save_employee(employee)
    except EmployeeNotFoundError as e:
        api_response(code=e.code, employee_id=e.employee_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ForecastKernelError (base)
    |
    +-- CalendarError
    |   +-- InvalidMonthKeyError
    |
    +-- ConfigurationError
    |   +-- TaxScaleError
    |   +-- ConfigSetNotFoundError
    |   +-- ConfigValidationError
    |
    +-- PayrollError
        +-- ForecastNotFoundError
        +-- EmployeeNotFoundError
        +-- PLLineNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Calendar        | INVALID_MONTH_KEY           | Month key / date not "YYYY-MM[-DD]"
----------------|-----------------------------|-----------------------------------------
Configuration   | TAX_SCALE_INVALID           | Brackets unordered, gapped, or base tax
                |                             | inconsistent with lower bands
                | CONFIG_SET_NOT_FOUND        | Date precedes every configuration set
                | CONFIG_VALIDATION_FAILED    | Set fails rate, hours, or date checks
----------------|-----------------------------|-----------------------------------------
Payroll         | FORECAST_NOT_FOUND          | Forecast ID doesn't exist
                | EMPLOYEE_NOT_FOUND          | Employee row ID doesn't exist
                | PL_LINE_NOT_FOUND           | P&L line ID not in the forecast

The calculation engines never raise on numeric input: absent or zero values
degrade to zero results.  These exceptions guard the edges -- malformed
calendar keys, inconsistent reference data, and missing persisted rows.
"""


class ForecastKernelError(Exception):
    """
    Base exception for all forecast kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FORECAST_KERNEL_ERROR"


# Calendar exceptions


class CalendarError(ForecastKernelError):
    """Base exception for month-key and fiscal calendar errors."""

    code: str = "CALENDAR_ERROR"


class InvalidMonthKeyError(CalendarError):
    """A month key or employment date could not be parsed."""

    code: str = "INVALID_MONTH_KEY"

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid month key: {value!r} (expected 'YYYY-MM' or 'YYYY-MM-DD')"
        )


# Configuration exceptions


class ConfigurationError(ForecastKernelError):
    """Base exception for reference-data configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class TaxScaleError(ConfigurationError):
    """Tax bracket table is structurally invalid."""

    code: str = "TAX_SCALE_INVALID"

    def __init__(self, tax_year: str, reason: str):
        self.tax_year = tax_year
        self.reason = reason
        super().__init__(f"Invalid tax scale for {tax_year}: {reason}")


class ConfigSetNotFoundError(ConfigurationError):
    """No configuration set is effective on the requested date."""

    code: str = "CONFIG_SET_NOT_FOUND"

    def __init__(self, as_of: str, config_dir: str):
        self.as_of = as_of
        self.config_dir = config_dir
        super().__init__(
            f"No configuration set effective on {as_of} in {config_dir}"
        )


class ConfigValidationError(ConfigurationError):
    """A configuration set failed validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = list(errors)
        super().__init__(
            f"Configuration set {config_id} is invalid: {'; '.join(self.errors)}"
        )


# Payroll persistence exceptions


class PayrollError(ForecastKernelError):
    """Base exception for payroll persistence errors."""

    code: str = "PAYROLL_ERROR"


class ForecastNotFoundError(PayrollError):
    """Forecast with given ID was not found."""

    code: str = "FORECAST_NOT_FOUND"

    def __init__(self, forecast_id: str):
        self.forecast_id = forecast_id
        super().__init__(f"Forecast not found: {forecast_id}")


class EmployeeNotFoundError(PayrollError):
    """Forecast employee row with given ID was not found."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class PLLineNotFoundError(PayrollError):
    """P&L line with given ID was not found in the forecast."""

    code: str = "PL_LINE_NOT_FOUND"

    def __init__(self, line_id: str, forecast_id: str):
        self.line_id = line_id
        self.forecast_id = forecast_id
        super().__init__(f"P&L line {line_id} not found in forecast {forecast_id}")
