"""
Payroll Service (``payroll_services.payroll_service``).

Responsibility
--------------
The exposed surface of the payroll core for the surrounding administration
layer: salary generation and recalculation, the payment transition,
project change recording, revenue entry, settings, and the read
accessors for salary breakdowns, listings, dashboards and project
timelines.

Architecture position
---------------------
**Services layer** -- thin glue.  Wires kernel services and selectors to a
single Session, Clock and CurrencyConverter.  Kernel services flush; this
facade owns the transaction boundary.

Invariants enforced
-------------------
* Each public write method commits on success and rolls back and re-raises
  on any exception.  Batch operations commit once after the batch; their
  per-employee failures are already isolated in SAVEPOINTs.
* The converter is constructed once from the settings row (or injected)
  and only changes through ``update_settings``.

Usage::

    service = PayrollService(session, clock=SystemClock())
    result = service.generate("2025-03", actor_id)
    print(result.created_count, result.skipped_count, result.error_count)
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_config import PayrollConfiguration, get_active_config
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.project import ProjectState
from payroll_kernel.domain.project_history import ProjectHistoryEntry, ProjectTimeline
from payroll_kernel.domain.revenue import (
    BulkRevenueResult,
    MonthlyRevenue,
    MonthlyRevenueView,
    RevenueEntryInput,
)
from payroll_kernel.domain.salary import (
    GenerationResult,
    RecalculationResult,
    Salary,
    SalaryBreakdown,
    SalaryStatus,
)
from payroll_kernel.domain.settings import OrganizationSettings
from payroll_kernel.exceptions import EmployeeNotFoundError, SalaryNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.employee import EmployeeModel
from payroll_kernel.selectors.project_history_selector import ProjectHistorySelector
from payroll_kernel.selectors.revenue_selector import RevenueSelector
from payroll_kernel.selectors.salary_selector import DashboardMetrics, SalarySelector
from payroll_kernel.services.monthly_revenue_service import MonthlyRevenueService
from payroll_kernel.services.project_history_recorder import ProjectHistoryRecorder
from payroll_kernel.services.salary_generator import SalaryGenerator
from payroll_kernel.services.salary_payment import SalaryPaymentService
from payroll_kernel.services.salary_recalculator import SalaryRecalculator
from payroll_kernel.services.settings_service import SettingsService

logger = get_logger("services.payroll")


class PayrollService:
    """
    Facade for the payroll core.

    Contract:
        Receives a SQLAlchemy Session and optional Clock, configuration and
        converter.  Without a converter, one is built from the settings row
        (seeded from the configuration on first use).

    Non-goals:
        - Does NOT own the Session lifecycle (open/close).
        - Does NOT authenticate actors; ``actor_id`` is trusted.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfiguration | None = None,
        converter: CurrencyConverter | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

        self._settings_service = SettingsService(session, self._config.settings_defaults())
        self._revenue_service = MonthlyRevenueService(session)
        self._payment_service = SalaryPaymentService(session, self._clock)
        self._history_recorder = ProjectHistoryRecorder(session, self._clock)

        self._salaries = SalarySelector(session)
        self._history = ProjectHistorySelector(session)
        self._revenue = RevenueSelector(session)

        if converter is None:
            converter = CurrencyConverter(self.get_settings().usd_to_pkr_rate)
        self._converter = converter

    @property
    def converter(self) -> CurrencyConverter:
        return self._converter

    @property
    def config(self) -> PayrollConfiguration:
        return self._config

    # =========================================================================
    # Salary runs
    # =========================================================================

    def generate(self, month: str, actor_id: UUID) -> GenerationResult:
        try:
            fallbacks = self._settings_service.get_settings(actor_id).fallbacks
            generator = SalaryGenerator(self._session, self._converter, fallbacks)
            result = generator.generate(month, actor_id)
            self._session.commit()
            return result
        except Exception:
            self._session.rollback()
            logger.warning("salary_generation_rolled_back", exc_info=True)
            raise

    def recalculate(self, month: str, actor_id: UUID) -> RecalculationResult:
        try:
            fallbacks = self._settings_service.get_settings(actor_id).fallbacks
            recalculator = SalaryRecalculator(self._session, self._converter, fallbacks)
            result = recalculator.recalculate(month, actor_id)
            self._session.commit()
            return result
        except Exception:
            self._session.rollback()
            logger.warning("salary_recalculation_rolled_back", exc_info=True)
            raise

    def mark_paid(
        self,
        salary_id: UUID,
        paid_date: date | None,
        reference: str,
        actor_id: UUID,
    ) -> Salary:
        try:
            salary = self._payment_service.mark_paid(
                salary_id, actor_id, reference, paid_date=paid_date,
            )
            self._session.commit()
            return salary
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Project history
    # =========================================================================

    def record_project_change(
        self,
        project_id: UUID,
        before: ProjectState | None,
        after: ProjectState,
        actor_id: UUID,
        actor_email: str | None = None,
        notes: str | None = None,
    ) -> ProjectHistoryEntry | None:
        try:
            entry = self._history_recorder.record(
                project_id, before, after, actor_id,
                actor_email=actor_email, notes=notes,
            )
            self._session.commit()
            return entry
        except Exception:
            self._session.rollback()
            raise

    def project_timeline(self, project_id: UUID) -> ProjectTimeline:
        return self._history.timeline(project_id)

    def verify_project_history(self, project_id: UUID) -> bool:
        return self._history.verify_chain(project_id)

    # =========================================================================
    # Read accessors
    # =========================================================================

    def get_salary_breakdown(self, salary_id: UUID) -> SalaryBreakdown:
        breakdown = self._salaries.get_salary(salary_id)
        if breakdown is None:
            raise SalaryNotFoundError(str(salary_id))
        return breakdown

    def list_salaries(
        self,
        month: str | None = None,
        status: SalaryStatus | str | None = None,
        employee_id: UUID | None = None,
        department_id: UUID | None = None,
    ) -> tuple[Salary, ...]:
        return self._salaries.list_salaries(
            month=month, status=status, employee_id=employee_id, department_id=department_id,
        )

    def employee_salary_history(self, employee_id: UUID) -> tuple[Salary, ...]:
        """
        All salaries of one employee, newest month first.

        Raises:
            EmployeeNotFoundError: employee_id does not exist.
        """
        if self._session.get(EmployeeModel, employee_id) is None:
            raise EmployeeNotFoundError(str(employee_id))
        return self._salaries.employee_salary_history(employee_id)

    def dashboard_metrics(
        self,
        month: str | None = None,
        department_id: UUID | None = None,
    ) -> DashboardMetrics:
        return self._salaries.dashboard_metrics(month=month, department_id=department_id)

    # =========================================================================
    # Settings
    # =========================================================================

    def get_settings(self) -> OrganizationSettings:
        try:
            settings = self._settings_service.get_settings()
            self._session.commit()
            return settings
        except Exception:
            self._session.rollback()
            raise

    def update_settings(
        self,
        actor_id: UUID,
        usd_to_pkr_rate=None,
        pm_commission_percentage=None,
        team_lead_bonus_amount=None,
        bidder_bonus_amount=None,
    ) -> OrganizationSettings:
        """
        Persist new settings and, when the rate changed, push it into the
        converter.  Stored PKR amounts are untouched.
        """
        try:
            settings = self._settings_service.update_settings(
                actor_id,
                usd_to_pkr_rate=usd_to_pkr_rate,
                pm_commission_percentage=pm_commission_percentage,
                team_lead_bonus_amount=team_lead_bonus_amount,
                bidder_bonus_amount=bidder_bonus_amount,
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        if usd_to_pkr_rate is not None:
            self._converter.set_rate(settings.usd_to_pkr_rate)
        return settings

    # =========================================================================
    # Monthly revenue
    # =========================================================================

    def record_revenue(
        self,
        project_id: UUID,
        month: str,
        amount_collected,
        actor_id: UUID,
        notes: str | None = None,
    ) -> MonthlyRevenue:
        try:
            revenue = self._revenue_service.record_revenue(
                project_id, month, amount_collected, actor_id, notes=notes,
            )
            self._session.commit()
            return revenue
        except Exception:
            self._session.rollback()
            raise

    def bulk_record_revenue(
        self,
        month: str,
        entries: list[RevenueEntryInput],
        actor_id: UUID,
    ) -> BulkRevenueResult:
        try:
            result = self._revenue_service.bulk_record_revenue(month, entries, actor_id)
            self._session.commit()
            return result
        except Exception:
            self._session.rollback()
            raise

    def delete_revenue(self, project_id: UUID, month: str) -> bool:
        try:
            deleted = self._revenue_service.delete_revenue(project_id, month)
            self._session.commit()
            return deleted
        except Exception:
            self._session.rollback()
            raise

    def revenue_for_month(self, month: str) -> MonthlyRevenueView:
        return self._revenue.revenue_for_month(month)
