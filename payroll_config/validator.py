"""
Configuration validator.

Checks a parsed PayrollConfiguration before it is handed out.  Errors block
``get_active_config()``; warnings are reported but do not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from payroll_config.schema import PayrollConfiguration

_SUPPORTED_BASE = "PKR"
_SUPPORTED_FOREIGN = "USD"
_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
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


def validate_configuration(config: PayrollConfiguration) -> ConfigValidationResult:
    result = ConfigValidationResult()

    if not config.config_id:
        result.add_error("config_id must not be empty")
    if config.version < 1:
        result.add_error(f"version must be >= 1, got {config.version}")

    currency = config.currency
    if currency.base_currency != _SUPPORTED_BASE:
        result.add_error(f"currency.base_currency must be {_SUPPORTED_BASE}")
    if currency.foreign_currency != _SUPPORTED_FOREIGN:
        result.add_error(f"currency.foreign_currency must be {_SUPPORTED_FOREIGN}")
    rate = currency.usd_to_pkr_rate
    if not rate.is_finite() or rate <= 0:
        result.add_error(f"currency.usd_to_pkr_rate must be a positive number, got {rate}")

    comp = config.compensation
    pct = comp.pm_commission_percentage
    if not pct.is_finite() or not Decimal(0) <= pct <= Decimal(100):
        result.add_error(
            f"compensation.pm_commission_percentage must be within 0-100, got {pct}"
        )
    for name in ("team_lead_bonus_amount", "bidder_bonus_amount"):
        amount = getattr(comp, name)
        if not amount.is_finite() or amount < 0:
            result.add_error(f"compensation.{name} must be >= 0, got {amount}")
        elif amount == 0:
            result.add_warning(f"compensation.{name} is 0; the role earns no fallback bonus")

    if not config.database.url:
        result.add_error("database.url must not be empty")
    if config.database.pool_size < 1:
        result.add_error("database.pool_size must be >= 1")

    if config.logging.level not in _LOG_LEVELS:
        result.add_error(f"logging.level {config.logging.level!r} is not a logging level")

    return result
