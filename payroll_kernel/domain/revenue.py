"""Monthly revenue value objects."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class MonthlyRevenue:
    """Revenue actually collected (USD) for one project in one month."""

    id: UUID
    project_id: UUID
    month: str
    amount_collected: Decimal
    notes: str | None = None
    project_name: str | None = None


@dataclass(frozen=True)
class RevenueBasis:
    """The PKR basis shared by every role computation on a project for a month."""

    project_id: UUID
    month: str
    amount_collected: Decimal
    basis: Decimal
    rate: Decimal


@dataclass(frozen=True)
class ProjectRef:
    id: UUID
    name: str
    client_name: str


@dataclass(frozen=True)
class MonthlyRevenueView:
    """Revenue entries for a month plus the active projects still missing one."""

    month: str
    existing: tuple[MonthlyRevenue, ...]
    projects_without_revenue: tuple[ProjectRef, ...]

    @property
    def total_collected(self) -> Decimal:
        return sum((r.amount_collected for r in self.existing), Decimal(0))


@dataclass(frozen=True)
class RevenueEntryInput:
    """One row of a bulk revenue upsert."""

    project_id: UUID
    amount_collected: Decimal
    notes: str | None = None


@dataclass(frozen=True)
class RevenueEntryError:
    project_id: UUID
    error_code: str
    error_message: str


@dataclass(frozen=True)
class BulkRevenueResult:
    month: str
    saved: tuple[MonthlyRevenue, ...] = ()
    errors: tuple[RevenueEntryError, ...] = ()
