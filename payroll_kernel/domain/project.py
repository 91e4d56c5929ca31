"""
Project state value objects.

``ProjectState`` is the full, comparable state of a project at one moment:
the input to the history recorder's diff (``before`` / ``after``) and to
compensation composition.  The ORM model produces one via ``to_state()``.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from payroll_kernel.domain.commission import CommissionRole, CommissionSpec


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ProjectTeam:
    """Zero-or-one of each paid role plus an ordered list of developers."""

    project_manager_id: UUID | None = None
    team_lead_id: UUID | None = None
    manager_id: UUID | None = None
    bidder_id: UUID | None = None
    developer_ids: tuple[UUID, ...] = ()

    def member_for(self, role: CommissionRole) -> UUID | None:
        return {
            CommissionRole.PROJECT_MANAGER: self.project_manager_id,
            CommissionRole.TEAM_LEAD: self.team_lead_id,
            CommissionRole.MANAGER: self.manager_id,
            CommissionRole.BIDDER: self.bidder_id,
        }[role]

    @property
    def unique_developer_ids(self) -> tuple[UUID, ...]:
        """Developers in assignment order with repeats removed."""
        return tuple(dict.fromkeys(self.developer_ids))


@dataclass(frozen=True)
class ProjectState:
    name: str
    client_name: str
    total_amount: Decimal
    status: ProjectStatus
    start_date: date | None = None
    end_date: date | None = None
    bonus_pool: Decimal = Decimal(0)
    team: ProjectTeam = field(default_factory=ProjectTeam)
    pm_commission: CommissionSpec | None = None
    team_lead_commission: CommissionSpec | None = None
    manager_commission: CommissionSpec | None = None
    bidder_commission: CommissionSpec | None = None

    def commission_for(self, role: CommissionRole) -> CommissionSpec | None:
        return {
            CommissionRole.PROJECT_MANAGER: self.pm_commission,
            CommissionRole.TEAM_LEAD: self.team_lead_commission,
            CommissionRole.MANAGER: self.manager_commission,
            CommissionRole.BIDDER: self.bidder_commission,
        }[role]
