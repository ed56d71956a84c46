"""
Configuration Loader (``forecast_config.loader``).

Responsibility
--------------
Loads YAML configuration set files and parses them into typed
``forecast_config.schema`` dataclass instances.  Runtime callers go
through ``forecast_config.get_active_config()``; the loader is used
directly only by tooling and tests.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on engines,
modules, or the database layer.

Invariants enforced
-------------------
* Monetary values and rates are parsed to ``Decimal`` via ``str``, so a
  YAML float never leaks binary rounding into a calculation.
* Required keys raise ``KeyError``; no silent defaults for tax brackets
  or the super guarantee rate.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError`` / ``decimal.InvalidOperation``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from forecast_config.schema import (
    ConfigScope,
    ForecastDefaults,
    PayrollConfigSet,
    PayrollDefaults,
    TaxBracketDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any) -> Decimal:
    """Parse a YAML scalar into a Decimal, going through ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse decimal from {value!r}")
    return Decimal(str(value))


def parse_scope(data: dict[str, Any]) -> ConfigScope:
    """Parse a ConfigScope from a dict."""
    return ConfigScope(
        jurisdiction=data.get("jurisdiction", "AU"),
        currency=data.get("currency", "AUD"),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_tax_bracket(data: dict[str, Any]) -> TaxBracketDef:
    """Parse one ``tax_brackets`` entry; a missing ``max`` means open-ended."""
    max_income = data.get("max")
    return TaxBracketDef(
        threshold=parse_decimal(data["threshold"]),
        max_income=parse_decimal(max_income) if max_income is not None else None,
        rate=parse_decimal(data["rate"]),
        base_tax=parse_decimal(data.get("base_tax", "0")),
    )


def parse_payroll_defaults(data: dict[str, Any]) -> PayrollDefaults:
    """Parse the ``payroll`` section."""
    return PayrollDefaults(
        super_guarantee_rate=parse_decimal(data["super_guarantee_rate"]),
        default_hours_per_week=parse_decimal(data.get("default_hours_per_week", "38")),
        default_pay_frequency=str(data.get("default_pay_frequency", "fortnightly")),
        default_pay_day=str(data.get("default_pay_day", "friday")),
    )


def parse_forecast_defaults(data: dict[str, Any]) -> ForecastDefaults:
    """Parse the optional ``forecast`` section, keeping defaults for absent keys."""
    defaults = ForecastDefaults()
    return ForecastDefaults(
        super_loading=parse_decimal(data.get("super_loading", defaults.super_loading)),
        net_profit_percent=parse_decimal(
            data.get("net_profit_percent", defaults.net_profit_percent)
        ),
        cogs_percent=parse_decimal(data.get("cogs_percent", defaults.cogs_percent)),
        opex_inflation_percent=parse_decimal(
            data.get("opex_inflation_percent", defaults.opex_inflation_percent)
        ),
        salary_increase_percent=parse_decimal(
            data.get("salary_increase_percent", defaults.salary_increase_percent)
        ),
    )


def parse_config_set(data: dict[str, Any]) -> PayrollConfigSet:
    """
    Parse a complete ``PayrollConfigSet`` from a YAML document.

    Preconditions:
        - ``data`` contains ``config_id``, ``tax_year``, ``scope``,
          ``tax_brackets`` and ``payroll.super_guarantee_rate``.
    Postconditions:
        - Returns a frozen ``PayrollConfigSet`` whose ``checksum`` is the
          SHA-256 of ``data``.
    """
    return PayrollConfigSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        tax_year=str(data["tax_year"]),
        scope=parse_scope(data["scope"]),
        tax_brackets=tuple(parse_tax_bracket(b) for b in data["tax_brackets"]),
        payroll=parse_payroll_defaults(data["payroll"]),
        forecast=parse_forecast_defaults(data.get("forecast") or {}),
        description=data.get("description", ""),
        checksum=compute_checksum(data),
    )


def load_config_set(path: Path) -> PayrollConfigSet:
    """Load and parse a single configuration set file."""
    return parse_config_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
