"""Services for the payroll kernel (write side)."""

from payroll_kernel.services.compensation import CompensationComposer, MonthCompensation
from payroll_kernel.services.monthly_revenue_service import MonthlyRevenueService
from payroll_kernel.services.project_history_recorder import ProjectHistoryRecorder
from payroll_kernel.services.revenue_basis import RevenueBasisResolver
from payroll_kernel.services.salary_generator import SalaryGenerator
from payroll_kernel.services.salary_payment import SalaryPaymentService
from payroll_kernel.services.salary_recalculator import SalaryRecalculator
from payroll_kernel.services.sequence_service import SequenceService
from payroll_kernel.services.settings_service import SYSTEM_ACTOR_ID, SettingsService

__all__ = [
    "CompensationComposer",
    "MonthCompensation",
    "MonthlyRevenueService",
    "ProjectHistoryRecorder",
    "RevenueBasisResolver",
    "SalaryGenerator",
    "SalaryPaymentService",
    "SalaryRecalculator",
    "SequenceService",
    "SettingsService",
    "SYSTEM_ACTOR_ID",
]
