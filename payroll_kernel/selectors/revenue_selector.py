"""
Module: payroll_kernel.selectors.revenue_selector
Responsibility: The monthly revenue management view: entries recorded for a
    month plus the Active projects that still have none.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.project import ProjectStatus
from payroll_kernel.domain.revenue import MonthlyRevenueView, ProjectRef
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.project import ProjectModel
from payroll_kernel.selectors.base import BaseSelector


class RevenueSelector(BaseSelector[MonthlyProjectRevenueModel]):

    def __init__(self, session: Session):
        super().__init__(session)

    def revenue_for_month(self, month: str) -> MonthlyRevenueView:
        month = validate_month(month)

        existing = list(
            self.session.execute(
                select(MonthlyProjectRevenueModel)
                .join(ProjectModel, ProjectModel.id == MonthlyProjectRevenueModel.project_id)
                .where(MonthlyProjectRevenueModel.month == month)
                .options(selectinload(MonthlyProjectRevenueModel.project))
                .order_by(ProjectModel.name, ProjectModel.id)
            ).scalars()
        )
        recorded = {row.project_id for row in existing}

        active_projects = self.session.execute(
            select(ProjectModel)
            .where(ProjectModel.status == ProjectStatus.ACTIVE.value)
            .order_by(ProjectModel.name, ProjectModel.id)
        ).scalars()

        return MonthlyRevenueView(
            month=month,
            existing=tuple(row.to_dto() for row in existing),
            projects_without_revenue=tuple(
                ProjectRef(id=p.id, name=p.name, client_name=p.client_name)
                for p in active_projects
                if p.id not in recorded
            ),
        )
