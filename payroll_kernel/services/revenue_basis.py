"""
RevenueBasisResolver -- the PKR basis for a project's commissions in a month.

Responsibility:
    Looks up the unique MonthlyProjectRevenue entry for (project, month) and
    converts its ``amount_collected`` (USD) to PKR with the injected
    CurrencyConverter.  The result is the single basis shared by every role
    and developer computation on that project for that month.

Architecture position:
    Kernel > Services -- read-only helper used by compensation composition.

Invariants enforced:
    - Only projects with a revenue entry for the month produce a basis.  A
      project without one is absent from ``resolve_month`` (zero
      contribution) and raises MissingBasisError from ``basis_for``.
    - No rounding is applied to the basis.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.revenue import RevenueBasis
from payroll_kernel.exceptions import MissingBasisError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.project import ProjectModel

logger = get_logger("services.revenue_basis")


class RevenueBasisResolver:
    """Resolves per (project, month) commission bases from collected revenue."""

    def __init__(self, session: Session, converter: CurrencyConverter):
        self._session = session
        self._converter = converter

    def _to_basis(self, row: MonthlyProjectRevenueModel) -> RevenueBasis:
        return RevenueBasis(
            project_id=row.project_id,
            month=row.month,
            amount_collected=row.amount_collected,
            basis=self._converter.to_pkr(row.amount_collected),
            rate=self._converter.rate,
        )

    def basis_for(self, project_id: UUID, month: str) -> RevenueBasis:
        """
        Basis for one project and month.

        Raises:
            InvalidMonthError: month is not YYYY-MM.
            MissingBasisError: no revenue was recorded for the pair.
        """
        month = validate_month(month)
        row = self._session.execute(
            select(MonthlyProjectRevenueModel).where(
                MonthlyProjectRevenueModel.project_id == project_id,
                MonthlyProjectRevenueModel.month == month,
            )
        ).scalar_one_or_none()

        if row is None:
            raise MissingBasisError(str(project_id), month)
        return self._to_basis(row)

    def resolve_month(self, month: str) -> tuple[RevenueBasis, ...]:
        """Bases for every project with revenue in ``month``, ordered by project name."""
        month = validate_month(month)
        rows = self._session.execute(
            select(MonthlyProjectRevenueModel)
            .join(ProjectModel, ProjectModel.id == MonthlyProjectRevenueModel.project_id)
            .where(MonthlyProjectRevenueModel.month == month)
            .order_by(ProjectModel.name, ProjectModel.id)
        ).scalars().all()

        bases = tuple(self._to_basis(row) for row in rows)
        logger.debug(
            "revenue_bases_resolved",
            extra={"month": month, "project_count": len(bases), "rate": self._converter.rate},
        )
        return bases
