"""
SalaryRecalculator -- in-place refresh of existing unpaid salaries.

Responsibility:
    Re-runs the generation composition for every employee that already has
    a Salary for the month, replacing its line items, base salary snapshot
    and total.  Lets administrators correct project or revenue data after
    the fact without ever touching a payment that has gone out.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes, never commits.

Invariants enforced:
    - Paid salaries are never written.  Each record's status is re-read
      under SELECT ... FOR UPDATE immediately before the write; a record
      that is Paid by then is counted in ``locked_skipped``.
    - Never creates salaries.
    - The base salary is always re-snapshotted from the employee.
    - ``total_amount == base_salary + sum(line items)`` exactly.

Failure modes:
    - ValidationError / InvalidMonthError: configuration-level, raised
      before anything is written.
    - LockedRecordError from the ORM listeners is treated as a locked skip.
    - Other per-record failures are collected as BatchItemError entries.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.commission import CommissionFallbacks
from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.salary import (
    BatchItemError,
    RecalculationResult,
    Salary,
    compute_total,
)
from payroll_kernel.exceptions import LockedRecordError, PayrollKernelError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.salary import SalaryModel
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.compensation import CompensationComposer, MonthCompensation

logger = get_logger("services.salary_recalculator")


class SalaryRecalculator(BaseService[SalaryModel]):
    """
    Recalculates Pending salaries for a month.

    Contract:
        ``recalculate(month, actor_id)`` returns a RecalculationResult with
        the updated salaries, the employee ids of locked (Paid) records and
        per-record errors.
    """

    def __init__(
        self,
        session: Session,
        converter: CurrencyConverter,
        fallbacks: CommissionFallbacks,
    ):
        super().__init__(session)
        self._composer = CompensationComposer(session, converter, fallbacks)

    def _salary_keys(self, month: str) -> list[tuple[UUID, UUID]]:
        rows = self.session.execute(
            select(SalaryModel.id, SalaryModel.employee_id)
            .where(SalaryModel.month == month)
            .order_by(SalaryModel.created_at, SalaryModel.id)
        ).all()
        return [(row.id, row.employee_id) for row in rows]

    def _lock_salary(self, salary_id: UUID) -> SalaryModel:
        # Re-read status from the store, not from the identity map
        return self.session.execute(
            select(SalaryModel)
            .where(SalaryModel.id == salary_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

    def _refresh(
        self,
        salary: SalaryModel,
        compensation: MonthCompensation,
        actor_id: UUID,
    ) -> Salary:
        items = list(compensation.items_for(salary.employee_id))
        base_salary = salary.employee.base_salary
        salary.base_salary = base_salary
        salary.replace_line_items(items, actor_id)
        salary.total_amount = compute_total(base_salary, items)
        salary.updated_by_id = actor_id
        self.session.flush()
        return salary.to_dto()

    def recalculate(self, month: str, actor_id: UUID) -> RecalculationResult:
        """
        Replace line items and totals of every unpaid Salary for ``month``.

        Raises:
            InvalidMonthError: month is not YYYY-MM.
            ValidationError: a project with revenue for the month carries a
                malformed commission specification.
        """
        month = validate_month(month)

        with LogContext.bind(month=month, actor_id=str(actor_id)):
            logger.info("salary_recalculation_started")

            keys = self._salary_keys(month)
            compensation = self._composer.compose(month)

            updated: list[Salary] = []
            locked_skipped: list[UUID] = []
            errors: list[BatchItemError] = []

            for salary_id, employee_id in keys:
                savepoint = self.session.begin_nested()
                try:
                    salary = self._lock_salary(salary_id)
                    if salary.is_paid:
                        savepoint.rollback()
                        locked_skipped.append(employee_id)
                        logger.info(
                            "salary_locked_skip",
                            extra={
                                "employee_id": str(employee_id),
                                "salary_id": str(salary_id),
                            },
                        )
                        continue
                    refreshed = self._refresh(salary, compensation, actor_id)
                    savepoint.commit()
                except LockedRecordError:
                    savepoint.rollback()
                    locked_skipped.append(employee_id)
                    logger.info(
                        "salary_locked_skip",
                        extra={
                            "employee_id": str(employee_id),
                            "salary_id": str(salary_id),
                        },
                    )
                    continue
                except PayrollKernelError as exc:
                    savepoint.rollback()
                    logger.warning(
                        "salary_recalculation_item_failed",
                        extra={"employee_id": str(employee_id), "error_code": exc.code},
                    )
                    errors.append(BatchItemError(employee_id, exc.code, str(exc)))
                    continue
                except Exception as exc:
                    savepoint.rollback()
                    logger.error(
                        "salary_recalculation_item_failed",
                        extra={
                            "employee_id": str(employee_id),
                            "error_code": "UNHANDLED_EXCEPTION",
                        },
                        exc_info=True,
                    )
                    errors.append(
                        BatchItemError(employee_id, "UNHANDLED_EXCEPTION", str(exc))
                    )
                    continue

                updated.append(refreshed)
                logger.info(
                    "salary_recalculated",
                    extra={
                        "employee_id": str(employee_id),
                        "salary_id": str(salary_id),
                        "total_amount": refreshed.total_amount,
                    },
                )

            result = RecalculationResult(
                month=month,
                updated=tuple(updated),
                locked_skipped=tuple(locked_skipped),
                errors=tuple(errors),
            )
            logger.info(
                "salary_recalculation_completed",
                extra={
                    "updated_count": result.updated_count,
                    "locked_skipped_count": result.locked_skipped_count,
                    "error_count": result.error_count,
                },
            )
            return result
