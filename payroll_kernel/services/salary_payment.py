"""
Salary payment -- the one-way Pending -> Paid transition.

"Payment" is a status flag: marking a salary paid records the paid date and
a payment reference and locks the record against generation and
recalculation.  There is no reversal.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.salary import Salary, SalaryStatus
from payroll_kernel.exceptions import (
    LockedRecordError,
    SalaryNotFoundError,
    ValidationError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.salary import SalaryModel
from payroll_kernel.services.base import BaseService

logger = get_logger("services.salary_payment")


class SalaryPaymentService(BaseService[SalaryModel]):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def mark_paid(
        self,
        salary_id: UUID,
        actor_id: UUID,
        reference: str,
        paid_date: date | None = None,
    ) -> Salary:
        """
        Mark a Pending salary as Paid.

        Args:
            salary_id: Salary to mark.
            actor_id: Administrator performing the transition.
            reference: Payment reference (non-empty).
            paid_date: Defaults to the clock's current date.

        Raises:
            ValidationError: reference is empty.
            SalaryNotFoundError: salary_id does not exist.
            LockedRecordError: the salary is already Paid.
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError(
                "Payment reference is required", field="payment_reference",
            )

        with LogContext.bind(salary_id=str(salary_id), actor_id=str(actor_id)):
            salary = self.session.execute(
                select(SalaryModel)
                .where(SalaryModel.id == salary_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

            if salary is None:
                raise SalaryNotFoundError(str(salary_id))
            if salary.is_paid:
                logger.warning("salary_already_paid")
                raise LockedRecordError(str(salary_id), "salary is already paid")

            salary.status = SalaryStatus.PAID.value
            salary.paid_date = paid_date or self._clock.today()
            salary.payment_reference = reference
            salary.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "salary_marked_paid",
                extra={
                    "employee_id": str(salary.employee_id),
                    "month": salary.month,
                    "paid_date": salary.paid_date,
                    "total_amount": salary.total_amount,
                },
            )
            return salary.to_dto()
