"""
Module: payroll_kernel.models.monthly_revenue
Responsibility: ORM persistence for revenue actually collected per project
    per month.  This, not the project's contracted total, is the basis for
    that month's commissions.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Unique per (project, month) (uq_payroll_revenue_project_month).
    - amount_collected is USD, Decimal, and never negative (service check).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.revenue import MonthlyRevenue
from payroll_kernel.models.project import ProjectModel


class MonthlyProjectRevenueModel(TrackedBase):
    __tablename__ = "payroll_monthly_revenues"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_projects.id"), nullable=False,
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    amount_collected: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    project: Mapped[ProjectModel] = relationship()

    __table_args__ = (
        UniqueConstraint("project_id", "month", name="uq_payroll_revenue_project_month"),
        Index("idx_payroll_revenue_month", "month"),
    )

    def to_dto(self) -> MonthlyRevenue:
        return MonthlyRevenue(
            id=self.id,
            project_id=self.project_id,
            month=self.month,
            amount_collected=self.amount_collected,
            notes=self.notes,
            project_name=self.project.name if self.project is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"<MonthlyProjectRevenueModel {self.project_id} {self.month}: "
            f"{self.amount_collected} USD>"
        )
