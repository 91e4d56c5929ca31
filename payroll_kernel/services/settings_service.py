"""
SettingsService -- the single organization settings row.

Responsibility:
    Reads the current USD to PKR rate and the organization-wide commission
    fallbacks, seeding the row from configuration defaults on first use,
    and applies validated administrative updates.

Invariants enforced:
    - Exactly one settings row (keyed by SETTINGS_KEY).
    - The rate is finite and > 0 (InvalidRateError).
    - pm_commission_percentage is within [0, 100]; bonus amounts are
      finite and >= 0 (ValidationError).
"""

from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.currency import parse_rate
from payroll_kernel.domain.settings import OrganizationSettings
from payroll_kernel.exceptions import ValidationError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.settings import SETTINGS_KEY, OrganizationSettingsModel
from payroll_kernel.services.base import BaseService

logger = get_logger("services.settings")

# Creator of a settings row seeded before any administrator touched it
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")

_HUNDRED = Decimal("100")


def _parse_amount(value, field: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} is not a number: {value!r}", field=field) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative: {amount}", field=field)
    return amount


def _parse_percentage(value, field: str) -> Decimal:
    percentage = _parse_amount(value, field)
    if percentage > _HUNDRED:
        raise ValidationError(
            f"{field} must be between 0 and 100: {percentage}", field=field,
        )
    return percentage


class SettingsService(BaseService[OrganizationSettingsModel]):
    """
    Contract:
        ``defaults`` supplies the values written when the row does not exist
        yet (normally built from the active configuration).
    """

    def __init__(self, session: Session, defaults: OrganizationSettings):
        super().__init__(session)
        self._defaults = defaults

    def _row(self) -> OrganizationSettingsModel | None:
        return self.session.execute(
            select(OrganizationSettingsModel).where(
                OrganizationSettingsModel.singleton_key == SETTINGS_KEY
            )
        ).scalar_one_or_none()

    def _get_or_seed(self, actor_id: UUID | None) -> OrganizationSettingsModel:
        row = self._row()
        if row is not None:
            return row

        row = OrganizationSettingsModel(
            singleton_key=SETTINGS_KEY,
            usd_to_pkr_rate=parse_rate(self._defaults.usd_to_pkr_rate),
            pm_commission_percentage=self._defaults.pm_commission_percentage,
            team_lead_bonus_amount=self._defaults.team_lead_bonus_amount,
            bidder_bonus_amount=self._defaults.bidder_bonus_amount,
            created_by_id=actor_id or SYSTEM_ACTOR_ID,
        )
        self.session.add(row)
        self.session.flush()
        logger.info(
            "settings_seeded",
            extra={"usd_to_pkr_rate": row.usd_to_pkr_rate},
        )
        return row

    def get_settings(self, actor_id: UUID | None = None) -> OrganizationSettings:
        return self._get_or_seed(actor_id).to_dto()

    def update_settings(
        self,
        actor_id: UUID,
        usd_to_pkr_rate=None,
        pm_commission_percentage=None,
        team_lead_bonus_amount=None,
        bidder_bonus_amount=None,
    ) -> OrganizationSettings:
        """
        Apply the given fields; fields left as None are unchanged.

        All values are validated before anything is written.

        Raises:
            InvalidRateError: the rate is non-positive or non-finite.
            ValidationError: a percentage or amount is out of range.
        """
        updates: dict[str, Decimal] = {}
        if usd_to_pkr_rate is not None:
            updates["usd_to_pkr_rate"] = parse_rate(usd_to_pkr_rate)
        if pm_commission_percentage is not None:
            updates["pm_commission_percentage"] = _parse_percentage(
                pm_commission_percentage, "pm_commission_percentage",
            )
        if team_lead_bonus_amount is not None:
            updates["team_lead_bonus_amount"] = _parse_amount(
                team_lead_bonus_amount, "team_lead_bonus_amount",
            )
        if bidder_bonus_amount is not None:
            updates["bidder_bonus_amount"] = _parse_amount(
                bidder_bonus_amount, "bidder_bonus_amount",
            )

        row = self._get_or_seed(actor_id)
        for name, value in updates.items():
            setattr(row, name, value)
        row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "settings_updated",
            extra={
                "actor_id": str(actor_id),
                "fields": sorted(updates),
                "usd_to_pkr_rate": row.usd_to_pkr_rate,
            },
        )
        return row.to_dto()
