"""Employee value objects consumed by salary composition."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID


class EmployeeRole(str, Enum):
    DEVELOPER = "developer"
    PROJECT_MANAGER = "project_manager"
    TEAM_LEAD = "team_lead"
    MANAGER = "manager"
    BIDDER = "bidder"
    ADMIN = "admin"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class EmployeeInfo:
    id: UUID
    name: str
    email: str
    role: EmployeeRole
    base_salary: Decimal
    status: EmployeeStatus
    department_id: UUID | None = None
    tech_stack: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE
