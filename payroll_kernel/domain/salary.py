"""
Salary value objects and batch result types.

Responsibility:
    Frozen DTOs for salary records, their line items, and the results of
    the two batch operations (generation and recalculation).  ORM models
    convert to these via ``to_dto()``; selectors and the service facade
    return only these.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - ``total_amount == base_salary + sum(line item amounts)`` for every
      salary built by ``compute_total``; ``Salary.is_consistent`` checks it.
    - All monetary fields are Decimal.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable
from uuid import UUID

from payroll_kernel.domain.commission import CommissionRole, CommissionType


class SalaryStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class LineItemCategory(str, Enum):
    """The five line-item collections of a salary."""

    PROJECT_BONUS = "project_bonus"
    PM_COMMISSION = "pm_commission"
    TEAM_LEAD_COMMISSION = "team_lead_commission"
    MANAGER_COMMISSION = "manager_commission"
    BIDDER_COMMISSION = "bidder_commission"


ROLE_CATEGORIES: dict[CommissionRole, LineItemCategory] = {
    CommissionRole.PROJECT_MANAGER: LineItemCategory.PM_COMMISSION,
    CommissionRole.TEAM_LEAD: LineItemCategory.TEAM_LEAD_COMMISSION,
    CommissionRole.MANAGER: LineItemCategory.MANAGER_COMMISSION,
    CommissionRole.BIDDER: LineItemCategory.BIDDER_COMMISSION,
}


@dataclass(frozen=True)
class LineItem:
    """One bonus or commission tied back to the project and rate that produced it."""

    category: LineItemCategory
    project_id: UUID
    amount: Decimal
    project_name: str | None = None
    commission_type: CommissionType | None = None
    commission_rate: Decimal | None = None
    basis_amount: Decimal | None = None


def compute_total(base_salary: Decimal, line_items: Iterable[LineItem]) -> Decimal:
    """Exact sum of base salary and every line item amount."""
    return base_salary + sum((item.amount for item in line_items), Decimal(0))


@dataclass(frozen=True)
class Salary:
    """A salary record for one employee and one month."""

    id: UUID
    employee_id: UUID
    month: str
    base_salary: Decimal
    total_amount: Decimal
    status: SalaryStatus
    project_bonuses: tuple[LineItem, ...] = ()
    pm_commissions: tuple[LineItem, ...] = ()
    team_lead_commissions: tuple[LineItem, ...] = ()
    manager_commissions: tuple[LineItem, ...] = ()
    bidder_commissions: tuple[LineItem, ...] = ()
    paid_date: date | None = None
    payment_reference: str | None = None
    employee_name: str | None = None

    @property
    def line_items(self) -> tuple[LineItem, ...]:
        return (
            self.project_bonuses
            + self.pm_commissions
            + self.team_lead_commissions
            + self.manager_commissions
            + self.bidder_commissions
        )

    @property
    def line_item_total(self) -> Decimal:
        return sum((item.amount for item in self.line_items), Decimal(0))

    @property
    def is_consistent(self) -> bool:
        return self.total_amount == self.base_salary + self.line_item_total

    @property
    def is_paid(self) -> bool:
        return self.status == SalaryStatus.PAID

    def collection(self, category: LineItemCategory) -> tuple[LineItem, ...]:
        return {
            LineItemCategory.PROJECT_BONUS: self.project_bonuses,
            LineItemCategory.PM_COMMISSION: self.pm_commissions,
            LineItemCategory.TEAM_LEAD_COMMISSION: self.team_lead_commissions,
            LineItemCategory.MANAGER_COMMISSION: self.manager_commissions,
            LineItemCategory.BIDDER_COMMISSION: self.bidder_commissions,
        }[category]


@dataclass(frozen=True)
class SalaryBreakdown:
    """Read-side view of a salary with per-collection subtotals."""

    salary: Salary
    subtotals: dict[LineItemCategory, Decimal]

    @property
    def line_item_total(self) -> Decimal:
        return sum(self.subtotals.values(), Decimal(0))

    @property
    def is_consistent(self) -> bool:
        return self.salary.is_consistent


# =============================================================================
# Batch results
# =============================================================================


@dataclass(frozen=True)
class BatchItemError:
    """A single employee's failure inside a batch; the batch continues."""

    employee_id: UUID
    error_code: str
    error_message: str


@dataclass(frozen=True)
class GenerationResult:
    """Result of ``generate(month)``."""

    month: str
    created: tuple[Salary, ...] = ()
    skipped: tuple[UUID, ...] = ()
    errors: tuple[BatchItemError, ...] = ()

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass(frozen=True)
class RecalculationResult:
    """Result of ``recalculate(month)``."""

    month: str
    updated: tuple[Salary, ...] = ()
    locked_skipped: tuple[UUID, ...] = ()
    errors: tuple[BatchItemError, ...] = ()

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def locked_skipped_count(self) -> int:
        return len(self.locked_skipped)

    @property
    def error_count(self) -> int:
        return len(self.errors)
