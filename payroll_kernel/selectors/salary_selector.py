"""
Module: payroll_kernel.selectors.salary_selector
Responsibility: Read-only access to salaries: single salary breakdowns,
    filtered listings, an employee's salary history and dashboard metrics.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only; returns Salary / SalaryBreakdown / DashboardMetrics DTOs.
    - Listings are ordered month descending, then employee name.

Failure modes:
    - Returns None or empty tuples when nothing matches (never raises on
      absence of data).
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from payroll_kernel.domain.employee import EmployeeStatus
from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.salary import (
    LineItemCategory,
    Salary,
    SalaryBreakdown,
    SalaryStatus,
)
from payroll_kernel.models.employee import EmployeeModel
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.salary import SalaryModel
from payroll_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class DashboardMetrics:
    """
    Headline figures for the administration dashboard.

    ``total_paid`` / ``total_pending`` are PKR salary totals;
    ``total_project_payout`` is USD collected across projects.
    """

    month: str | None
    total_active_employees: int
    total_paid: Decimal
    total_pending: Decimal
    total_project_payout: Decimal
    paid: tuple[Salary, ...] = ()
    pending: tuple[Salary, ...] = ()

    @property
    def paid_count(self) -> int:
        return len(self.paid)

    @property
    def pending_count(self) -> int:
        return len(self.pending)


class SalarySelector(BaseSelector[SalaryModel]):

    def __init__(self, session: Session):
        super().__init__(session)

    def _base_query(self):
        return (
            select(SalaryModel)
            .join(EmployeeModel, EmployeeModel.id == SalaryModel.employee_id)
            .options(
                selectinload(SalaryModel.line_items),
                selectinload(SalaryModel.employee),
            )
        )

    def get_salary(self, salary_id: UUID) -> SalaryBreakdown | None:
        """Salary with per-collection subtotals, or None if it does not exist."""
        salary = self.session.execute(
            self._base_query().where(SalaryModel.id == salary_id)
        ).scalar_one_or_none()
        if salary is None:
            return None

        dto = salary.to_dto()
        subtotals = {
            category: sum((item.amount for item in dto.collection(category)), Decimal(0))
            for category in LineItemCategory
        }
        return SalaryBreakdown(salary=dto, subtotals=subtotals)

    def list_salaries(
        self,
        month: str | None = None,
        status: SalaryStatus | str | None = None,
        employee_id: UUID | None = None,
        department_id: UUID | None = None,
    ) -> tuple[Salary, ...]:
        query = self._base_query()
        if month is not None:
            query = query.where(SalaryModel.month == validate_month(month))
        if status is not None:
            query = query.where(SalaryModel.status == SalaryStatus(status).value)
        if employee_id is not None:
            query = query.where(SalaryModel.employee_id == employee_id)
        if department_id is not None:
            query = query.where(EmployeeModel.department_id == department_id)

        query = query.order_by(SalaryModel.month.desc(), EmployeeModel.name, SalaryModel.id)
        return tuple(s.to_dto() for s in self.session.execute(query).scalars())

    def employee_salary_history(self, employee_id: UUID) -> tuple[Salary, ...]:
        """All salaries of one employee, newest month first."""
        return self.list_salaries(employee_id=employee_id)

    def dashboard_metrics(
        self,
        month: str | None = None,
        department_id: UUID | None = None,
    ) -> DashboardMetrics:
        if month is not None:
            month = validate_month(month)

        active_query = select(func.count(EmployeeModel.id)).where(
            EmployeeModel.status == EmployeeStatus.ACTIVE.value
        )
        if department_id is not None:
            active_query = active_query.where(EmployeeModel.department_id == department_id)
        active_count = self.session.execute(active_query).scalar_one()

        salaries = self.list_salaries(month=month, department_id=department_id)
        paid = tuple(s for s in salaries if s.is_paid)
        pending = tuple(s for s in salaries if not s.is_paid)

        payout_query = select(MonthlyProjectRevenueModel.amount_collected)
        if month is not None:
            payout_query = payout_query.where(MonthlyProjectRevenueModel.month == month)
        payout = sum(self.session.execute(payout_query).scalars(), Decimal(0))

        return DashboardMetrics(
            month=month,
            total_active_employees=active_count,
            total_paid=sum((s.total_amount for s in paid), Decimal(0)),
            total_pending=sum((s.total_amount for s in pending), Decimal(0)),
            total_project_payout=payout,
            paid=paid,
            pending=pending,
        )
