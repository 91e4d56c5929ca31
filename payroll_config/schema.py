"""
PayrollConfiguration schema.

The human-authored, reviewable configuration for a payroll deployment.
YAML in ``payroll_config/sets/<id>/root.yaml`` is parsed into these frozen
types by the loader and handed out by ``get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from payroll_kernel.domain.settings import OrganizationSettings


@dataclass(frozen=True)
class CurrencyDefaults:
    """Rate used to seed organization settings on first use."""

    base_currency: str = "PKR"
    foreign_currency: str = "USD"
    usd_to_pkr_rate: Decimal = Decimal("278.50")


@dataclass(frozen=True)
class CompensationDefaults:
    """Organization-wide commission fallbacks seeded into settings."""

    pm_commission_percentage: Decimal = Decimal("10")
    team_lead_bonus_amount: Decimal = Decimal("10000")
    bidder_bonus_amount: Decimal = Decimal("5000")


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///payroll.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class PayrollConfiguration:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    checksum: str
    description: str = ""
    currency: CurrencyDefaults = field(default_factory=CurrencyDefaults)
    compensation: CompensationDefaults = field(default_factory=CompensationDefaults)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def settings_defaults(self) -> OrganizationSettings:
        """Seed values for the organization settings row."""
        return OrganizationSettings(
            usd_to_pkr_rate=self.currency.usd_to_pkr_rate,
            pm_commission_percentage=self.compensation.pm_commission_percentage,
            team_lead_bonus_amount=self.compensation.team_lead_bonus_amount,
            bidder_bonus_amount=self.compensation.bidder_bonus_amount,
        )
