"""
Module: payroll_kernel.models.settings
Responsibility: ORM persistence for the single organization settings row:
    the current USD to PKR rate and the organization-wide commission
    fallbacks.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Exactly one row, keyed by ``singleton_key`` (uq_payroll_settings_key).
    - usd_to_pkr_rate is stored at Numeric(38, 18).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.settings import OrganizationSettings

SETTINGS_KEY = "organization"


class OrganizationSettingsModel(TrackedBase):
    __tablename__ = "payroll_settings"

    singleton_key: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SETTINGS_KEY,
    )
    usd_to_pkr_rate: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    pm_commission_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    team_lead_bonus_amount: Mapped[Decimal] = mapped_column(nullable=False)
    bidder_bonus_amount: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("singleton_key", name="uq_payroll_settings_key"),
    )

    def to_dto(self) -> OrganizationSettings:
        return OrganizationSettings(
            usd_to_pkr_rate=self.usd_to_pkr_rate,
            pm_commission_percentage=self.pm_commission_percentage,
            team_lead_bonus_amount=self.team_lead_bonus_amount,
            bidder_bonus_amount=self.bidder_bonus_amount,
            last_updated_by=self.updated_by_id or self.created_by_id,
        )

    def __repr__(self) -> str:
        return f"<OrganizationSettingsModel rate={self.usd_to_pkr_rate}>"
