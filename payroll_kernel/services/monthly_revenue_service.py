"""
MonthlyRevenueService -- revenue actually collected per project per month.

Responsibility:
    Upserts the unique (project, month) revenue entry that serves as the
    commission basis for that month, individually or in bulk, and deletes
    entries.

Invariants enforced:
    - At most one entry per (project, month) (uq_payroll_revenue_project_month).
    - amount_collected is a finite, non-negative Decimal (USD).
    - Bulk upserts run one SAVEPOINT per entry; a bad entry is reported in
      the result and the rest are still saved.
"""

from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.revenue import (
    BulkRevenueResult,
    MonthlyRevenue,
    RevenueEntryError,
    RevenueEntryInput,
)
from payroll_kernel.exceptions import PayrollKernelError, ProjectNotFoundError, ValidationError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.project import ProjectModel
from payroll_kernel.services.base import BaseService

logger = get_logger("services.monthly_revenue")


def _parse_collected(value) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(
            f"Amount collected is not a number: {value!r}", field="amount_collected",
        ) from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError(
            f"Amount collected must be a non-negative number: {value}",
            field="amount_collected",
        )
    return amount


class MonthlyRevenueService(BaseService[MonthlyProjectRevenueModel]):

    def __init__(self, session: Session):
        super().__init__(session)

    def _find(self, project_id: UUID, month: str) -> MonthlyProjectRevenueModel | None:
        return self.session.execute(
            select(MonthlyProjectRevenueModel).where(
                MonthlyProjectRevenueModel.project_id == project_id,
                MonthlyProjectRevenueModel.month == month,
            )
        ).scalar_one_or_none()

    def record_revenue(
        self,
        project_id: UUID,
        month: str,
        amount_collected,
        actor_id: UUID,
        notes: str | None = None,
    ) -> MonthlyRevenue:
        """
        Create or replace the revenue entry for (project, month).

        Raises:
            InvalidMonthError: month is not YYYY-MM.
            ValidationError: amount is negative or not a number.
            ProjectNotFoundError: project_id does not exist.
        """
        month = validate_month(month)
        amount = _parse_collected(amount_collected)
        if self.session.get(ProjectModel, project_id) is None:
            raise ProjectNotFoundError(str(project_id))

        row = self._find(project_id, month)
        if row is None:
            row = MonthlyProjectRevenueModel(
                project_id=project_id,
                month=month,
                amount_collected=amount,
                notes=notes,
                created_by_id=actor_id,
            )
            self.session.add(row)
            action = "created"
        else:
            row.amount_collected = amount
            row.notes = notes
            row.updated_by_id = actor_id
            action = "updated"
        self.session.flush()

        logger.info(
            "revenue_recorded",
            extra={
                "project_id": str(project_id),
                "month": month,
                "amount_collected": amount,
                "action": action,
            },
        )
        return row.to_dto()

    def bulk_record_revenue(
        self,
        month: str,
        entries: list[RevenueEntryInput],
        actor_id: UUID,
    ) -> BulkRevenueResult:
        """Upsert many entries for one month, collecting per-entry errors."""
        month = validate_month(month)
        saved: list[MonthlyRevenue] = []
        errors: list[RevenueEntryError] = []

        for entry in entries:
            savepoint = self.session.begin_nested()
            try:
                revenue = self.record_revenue(
                    entry.project_id, month, entry.amount_collected, actor_id, entry.notes,
                )
                savepoint.commit()
                saved.append(revenue)
            except PayrollKernelError as exc:
                savepoint.rollback()
                errors.append(RevenueEntryError(entry.project_id, exc.code, str(exc)))
            except Exception as exc:
                savepoint.rollback()
                logger.error(
                    "revenue_entry_failed",
                    extra={"project_id": str(entry.project_id)},
                    exc_info=True,
                )
                errors.append(
                    RevenueEntryError(entry.project_id, "UNHANDLED_EXCEPTION", str(exc))
                )

        logger.info(
            "revenue_bulk_recorded",
            extra={"month": month, "saved": len(saved), "errors": len(errors)},
        )
        return BulkRevenueResult(month=month, saved=tuple(saved), errors=tuple(errors))

    def delete_revenue(self, project_id: UUID, month: str) -> bool:
        """Remove the entry for (project, month).  Returns False if there was none."""
        month = validate_month(month)
        row = self._find(project_id, month)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        logger.info(
            "revenue_deleted",
            extra={"project_id": str(project_id), "month": month},
        )
        return True
