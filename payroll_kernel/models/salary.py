"""
Module: payroll_kernel.models.salary
Responsibility: ORM persistence for monthly salary records and their
    bonus / commission line items.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - At most one salary per (employee, month): uq_payroll_salary_employee_month
      is the store-level guard against concurrent generation runs.
    - total_amount == base_salary + sum(line_items.amount); written only by
      the generator / recalculator from the same line items.
    - Once status is "paid" the salary and its line items are locked
      (ORM listeners in db/immutability.py raise LockedRecordError).

Audit relevance:
    Line items keep the project, commission type, rate and basis used, so a
    salary can be explained without re-running the computation.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.commission import CommissionType
from payroll_kernel.domain.salary import LineItem, LineItemCategory, Salary, SalaryStatus
from payroll_kernel.models.employee import EmployeeModel


class SalaryLineItemModel(TrackedBase):
    """One bonus or commission entry on a salary."""

    __tablename__ = "payroll_salary_line_items"

    salary_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_salaries.id"), nullable=False,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_projects.id"), nullable=False,
    )
    project_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    commission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    commission_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    basis_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    salary: Mapped["SalaryModel"] = relationship(back_populates="line_items")

    __table_args__ = (
        Index("idx_payroll_line_item_salary", "salary_id"),
        Index("idx_payroll_line_item_project", "project_id"),
    )

    def to_dto(self) -> LineItem:
        return LineItem(
            category=LineItemCategory(self.category),
            project_id=self.project_id,
            amount=self.amount,
            project_name=self.project_name,
            commission_type=(
                CommissionType(self.commission_type) if self.commission_type else None
            ),
            commission_rate=self.commission_rate,
            basis_amount=self.basis_amount,
        )

    @classmethod
    def from_dto(cls, dto: LineItem, position: int, created_by_id: UUID) -> "SalaryLineItemModel":
        return cls(
            category=dto.category.value,
            project_id=dto.project_id,
            project_name=dto.project_name,
            amount=dto.amount,
            commission_type=dto.commission_type.value if dto.commission_type else None,
            commission_rate=dto.commission_rate,
            basis_amount=dto.basis_amount,
            position=position,
            created_by_id=created_by_id,
        )


class SalaryModel(TrackedBase):
    """
    ORM model for a salary.

    Guarantees:
        - ``month`` is a ``YYYY-MM`` key.
        - ``status`` is "pending" or "paid"; the only allowed transition is
          pending -> paid, which also sets ``paid_date`` and
          ``payment_reference``.
    """

    __tablename__ = "payroll_salaries"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SalaryStatus.PENDING.value,
    )
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(200), nullable=True)

    employee: Mapped[EmployeeModel] = relationship()
    line_items: Mapped[list[SalaryLineItemModel]] = relationship(
        back_populates="salary",
        order_by=SalaryLineItemModel.position,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_payroll_salary_employee_month"),
        Index("idx_payroll_salary_month", "month"),
        Index("idx_payroll_salary_status", "status"),
    )

    @property
    def is_paid(self) -> bool:
        return self.status == SalaryStatus.PAID.value

    def replace_line_items(self, items: list[LineItem], actor_id: UUID) -> None:
        self.line_items = [
            SalaryLineItemModel.from_dto(item, position, actor_id)
            for position, item in enumerate(items)
        ]

    def to_dto(self) -> Salary:
        grouped: dict[LineItemCategory, list[LineItem]] = defaultdict(list)
        for row in self.line_items:
            item = row.to_dto()
            grouped[item.category].append(item)
        return Salary(
            id=self.id,
            employee_id=self.employee_id,
            month=self.month,
            base_salary=self.base_salary,
            total_amount=self.total_amount,
            status=SalaryStatus(self.status),
            project_bonuses=tuple(grouped[LineItemCategory.PROJECT_BONUS]),
            pm_commissions=tuple(grouped[LineItemCategory.PM_COMMISSION]),
            team_lead_commissions=tuple(grouped[LineItemCategory.TEAM_LEAD_COMMISSION]),
            manager_commissions=tuple(grouped[LineItemCategory.MANAGER_COMMISSION]),
            bidder_commissions=tuple(grouped[LineItemCategory.BIDDER_COMMISSION]),
            paid_date=self.paid_date,
            payment_reference=self.payment_reference,
            employee_name=self.employee.name if self.employee is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"<SalaryModel {self.employee_id} {self.month}: "
            f"{self.total_amount} ({self.status})>"
        )
