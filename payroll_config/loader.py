"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a configuration set's ``root.yaml`` and parses it into the frozen
``payroll_config.schema`` dataclasses.  This is internal tooling; the single
public entry point for runtime config is ``payroll_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id``  -> ``KeyError`` propagates.
* Non-numeric amounts  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    CompensationDefaults,
    CurrencyDefaults,
    DatabaseSettings,
    LoggingSettings,
    PayrollConfiguration,
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


def parse_decimal(value: Any, name: str) -> Decimal:
    """
    Parse a Decimal from YAML (int, float, or string).

    Floats go through ``str`` so ``278.5`` becomes ``Decimal("278.5")``.
    """
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{name}: expected a number, got {value!r}") from None


def parse_currency(data: dict[str, Any]) -> CurrencyDefaults:
    defaults = CurrencyDefaults()
    return CurrencyDefaults(
        base_currency=data.get("base_currency", defaults.base_currency),
        foreign_currency=data.get("foreign_currency", defaults.foreign_currency),
        usd_to_pkr_rate=parse_decimal(
            data.get("usd_to_pkr_rate", defaults.usd_to_pkr_rate), "currency.usd_to_pkr_rate",
        ),
    )


def parse_compensation(data: dict[str, Any]) -> CompensationDefaults:
    defaults = CompensationDefaults()
    return CompensationDefaults(
        pm_commission_percentage=parse_decimal(
            data.get("pm_commission_percentage", defaults.pm_commission_percentage),
            "compensation.pm_commission_percentage",
        ),
        team_lead_bonus_amount=parse_decimal(
            data.get("team_lead_bonus_amount", defaults.team_lead_bonus_amount),
            "compensation.team_lead_bonus_amount",
        ),
        bidder_bonus_amount=parse_decimal(
            data.get("bidder_bonus_amount", defaults.bidder_bonus_amount),
            "compensation.bidder_bonus_amount",
        ),
    )


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    return DatabaseSettings(
        url=data.get("url", defaults.url),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    return LoggingSettings(level=str(data.get("level", LoggingSettings().level)).upper())


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_configuration(root_file: Path) -> PayrollConfiguration:
    """Parse one configuration set from its ``root.yaml``."""
    data = load_yaml_file(root_file)
    return PayrollConfiguration(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        checksum=compute_checksum(data),
        description=data.get("description", ""),
        currency=parse_currency(data.get("currency") or {}),
        compensation=parse_compensation(data.get("compensation") or {}),
        database=parse_database(data.get("database") or {}),
        logging=parse_logging(data.get("logging") or {}),
    )
