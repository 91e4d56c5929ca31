"""Organization settings value object."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.commission import CommissionFallbacks


@dataclass(frozen=True)
class OrganizationSettings:
    usd_to_pkr_rate: Decimal
    pm_commission_percentage: Decimal
    team_lead_bonus_amount: Decimal
    bidder_bonus_amount: Decimal
    last_updated_by: UUID | None = None

    @property
    def fallbacks(self) -> CommissionFallbacks:
        return CommissionFallbacks(
            pm_commission_percentage=self.pm_commission_percentage,
            team_lead_bonus_amount=self.team_lead_bonus_amount,
            bidder_bonus_amount=self.bidder_bonus_amount,
        )
