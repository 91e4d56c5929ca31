"""
SalaryGenerator -- first-time creation of Salary records for a month.

Responsibility:
    Creates one Pending Salary per Active employee for a target month from
    the employee's base salary plus every bonus and commission line item
    composed for the month.  Generation is additive-only: employees who
    already have a Salary for the month are skipped, never overwritten.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes, never commits.

Invariants enforced:
    - At most one Salary per (employee, month).  The store-level unique
      constraint is the guard against concurrent runs; a conflict surfaces
      as DuplicateSalaryError in the batch errors.
    - ``total_amount == base_salary + sum(line items)`` exactly.
    - Each insert runs in its own SAVEPOINT; one employee's failure never
      aborts the rest of the batch.

Failure modes:
    - ValidationError / InvalidMonthError: configuration-level, raised
      before anything is written.
    - Per-employee failures are collected as BatchItemError entries.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.domain.commission import CommissionFallbacks
from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.employee import EmployeeStatus
from payroll_kernel.domain.month import validate_month
from payroll_kernel.domain.salary import (
    BatchItemError,
    GenerationResult,
    Salary,
    SalaryStatus,
    compute_total,
)
from payroll_kernel.exceptions import DuplicateSalaryError, PayrollKernelError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.employee import EmployeeModel
from payroll_kernel.models.salary import SalaryModel
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.compensation import CompensationComposer, MonthCompensation

logger = get_logger("services.salary_generator")


class SalaryGenerator(BaseService[SalaryModel]):
    """
    Generates Pending salaries for a month.

    Contract:
        ``generate(month, actor_id)`` returns a GenerationResult with the
        created salaries, the skipped employee ids and per-employee errors.
        Running it twice for the same month creates nothing the second
        time.
    """

    def __init__(
        self,
        session: Session,
        converter: CurrencyConverter,
        fallbacks: CommissionFallbacks,
    ):
        super().__init__(session)
        self._composer = CompensationComposer(session, converter, fallbacks)

    def _active_employees(self) -> list[EmployeeModel]:
        return list(
            self.session.execute(
                select(EmployeeModel)
                .where(EmployeeModel.status == EmployeeStatus.ACTIVE.value)
                .order_by(EmployeeModel.name, EmployeeModel.id)
            ).scalars()
        )

    def _existing_employee_ids(self, month: str) -> set[UUID]:
        return set(
            self.session.execute(
                select(SalaryModel.employee_id).where(SalaryModel.month == month)
            ).scalars()
        )

    def _create_salary(
        self,
        employee: EmployeeModel,
        month: str,
        compensation: MonthCompensation,
        actor_id: UUID,
    ) -> Salary:
        items = list(compensation.items_for(employee.id))
        salary = SalaryModel(
            employee_id=employee.id,
            month=month,
            base_salary=employee.base_salary,
            total_amount=compute_total(employee.base_salary, items),
            status=SalaryStatus.PENDING.value,
            created_by_id=actor_id,
        )
        salary.replace_line_items(items, actor_id)
        self.session.add(salary)
        self.session.flush()
        return salary.to_dto()

    def generate(self, month: str, actor_id: UUID) -> GenerationResult:
        """
        Create a Pending Salary for every Active employee without one.

        Raises:
            InvalidMonthError: month is not YYYY-MM.
            ValidationError: a project with revenue for the month carries a
                malformed commission specification.
        """
        month = validate_month(month)

        with LogContext.bind(month=month, actor_id=str(actor_id)):
            logger.info("salary_generation_started")

            employees = self._active_employees()
            existing = self._existing_employee_ids(month)
            compensation = self._composer.compose(month)

            created: list[Salary] = []
            skipped: list[UUID] = []
            errors: list[BatchItemError] = []

            for employee in employees:
                if employee.id in existing:
                    skipped.append(employee.id)
                    logger.debug(
                        "salary_exists_skip",
                        extra={"employee_id": str(employee.id)},
                    )
                    continue

                savepoint = self.session.begin_nested()
                try:
                    salary = self._create_salary(employee, month, compensation, actor_id)
                    savepoint.commit()
                except IntegrityError:
                    savepoint.rollback()
                    error = DuplicateSalaryError(str(employee.id), month)
                    logger.warning(
                        "salary_duplicate_conflict",
                        extra={"employee_id": str(employee.id)},
                    )
                    errors.append(BatchItemError(employee.id, error.code, str(error)))
                    continue
                except PayrollKernelError as exc:
                    savepoint.rollback()
                    logger.warning(
                        "salary_generation_item_failed",
                        extra={"employee_id": str(employee.id), "error_code": exc.code},
                    )
                    errors.append(BatchItemError(employee.id, exc.code, str(exc)))
                    continue
                except Exception as exc:
                    savepoint.rollback()
                    logger.error(
                        "salary_generation_item_failed",
                        extra={
                            "employee_id": str(employee.id),
                            "error_code": "UNHANDLED_EXCEPTION",
                        },
                        exc_info=True,
                    )
                    errors.append(
                        BatchItemError(employee.id, "UNHANDLED_EXCEPTION", str(exc))
                    )
                    continue

                created.append(salary)
                logger.info(
                    "salary_created",
                    extra={
                        "employee_id": str(employee.id),
                        "salary_id": str(salary.id),
                        "total_amount": salary.total_amount,
                        "line_item_count": len(salary.line_items),
                    },
                )

            result = GenerationResult(
                month=month,
                created=tuple(created),
                skipped=tuple(skipped),
                errors=tuple(errors),
            )
            logger.info(
                "salary_generation_completed",
                extra={
                    "created_count": result.created_count,
                    "skipped_count": result.skipped_count,
                    "error_count": result.error_count,
                },
            )
            return result
