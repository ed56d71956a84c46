"""
forecast_config -- single public entrypoint for payroll reference data.

Responsibility:
    Provides the ONLY way to obtain tax scales, superannuation rates and
    forecast defaults at runtime through ``get_active_config()``.  No
    calculator or service reads YAML, environment variables, or hard-coded
    tax tables directly.

Architecture position:
    Configuration -- YAML-driven reference data, load-time validation.
    This package sits above ``forecast_engines`` and below
    ``forecast_modules``.  The engines MUST NEVER import from
    ``forecast_config``; ``bridges`` translates a config set into engine
    inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Load-time validation: a set must pass tax-scale and defaults
      validation before it is returned.
    - Effective dating: the returned set is the one whose scope covers
      ``as_of``; with no date, the most recently effective set.  A date
      after every set has ended keeps the most recent set in force and
      logs ``config_set_expired`` until a newer set is shipped.

Failure modes:
    - ``ConfigSetNotFoundError`` -- no set file, or ``as_of`` precedes every set.
    - ``TaxScaleError`` -- the tax bracket table is structurally invalid.
    - ``ConfigValidationError`` -- any other validation error.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``FORECAST_CONFIG_TRACE`` log entry with the config_id, version, tax
    year, effective range and checksum.  This ties every payroll figure
    back to the exact reference data that produced it.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from forecast_config.loader import load_config_set
from forecast_config.schema import PayrollConfigSet
from forecast_config.validator import validate_configuration
from forecast_kernel.exceptions import ConfigSetNotFoundError, ConfigValidationError

_logger = logging.getLogger("forecast_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    as_of: date | None = None,
    config_dir: Path | None = None,
) -> PayrollConfigSet:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``PayrollConfigSet`` has passed validation.
        - A ``FORECAST_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - No caching across calls; callers hold the returned set for the
          duration of their work.

    Args:
        as_of: Date the set must be effective on.  ``None`` selects the
            set with the latest ``effective_from``.
        config_dir: Override path to the sets directory.
            Defaults to forecast_config/sets/.

    Raises:
        ConfigSetNotFoundError: If no set matches.
        TaxScaleError: If the tax brackets are inconsistent.
        ConfigValidationError: If any other check fails.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    config_set = _find_matching_config(sets_dir, as_of)

    validation = validate_configuration(config_set)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "config_set_id": config_set.config_id,
            "warning": warning,
        })
    if not validation.is_valid:
        raise ConfigValidationError(config_set.config_id, validation.errors)

    _logger.info(
        "FORECAST_CONFIG_TRACE",
        extra={
            "trace_type": "FORECAST_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "tax_year": config_set.tax_year,
            "checksum": config_set.checksum,
            "scope_jurisdiction": config_set.scope.jurisdiction,
            "effective_from": config_set.scope.effective_from.isoformat(),
            "effective_to": (
                config_set.scope.effective_to.isoformat()
                if config_set.scope.effective_to else None
            ),
            "bracket_count": len(config_set.tax_brackets),
            "super_guarantee_rate": str(config_set.payroll.super_guarantee_rate),
        },
    )

    return config_set


def _find_matching_config(sets_dir: Path, as_of: date | None) -> PayrollConfigSet:
    """Load every ``*.yaml`` set in *sets_dir* and pick the effective one.

    Several matches on the same date resolve to the latest
    ``effective_from``, then the highest version.  A date past the end of
    every started set falls back to the most recent of them and logs
    ``config_set_expired``; only a date before every set is an error.
    """
    if not sets_dir.is_dir():
        raise ConfigSetNotFoundError(str(as_of), str(sets_dir))

    config_sets = [load_config_set(path) for path in sorted(sets_dir.glob("*.yaml"))]

    def selection_key(c: PayrollConfigSet) -> tuple[date, int]:
        return (c.scope.effective_from, c.version)

    if as_of is None:
        candidates = config_sets
    else:
        candidates = [c for c in config_sets if c.scope.covers(as_of)]

    if candidates:
        return max(candidates, key=selection_key)

    started = [c for c in config_sets if as_of is not None and c.scope.effective_from <= as_of]
    if not started:
        raise ConfigSetNotFoundError(str(as_of), str(sets_dir))

    latest = max(started, key=selection_key)
    _logger.warning("config_set_expired", extra={
        "config_set_id": latest.config_id,
        "config_set_version": latest.version,
        "as_of": as_of.isoformat(),
        "effective_to": (
            latest.scope.effective_to.isoformat() if latest.scope.effective_to else None
        ),
    })
    return latest


__all__ = [
    "PayrollConfigSet",
    "get_active_config",
]
