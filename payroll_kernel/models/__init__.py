"""ORM models for the payroll kernel."""

from payroll_kernel.models.employee import DepartmentModel, EmployeeModel
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.project import ProjectDeveloperModel, ProjectModel
from payroll_kernel.models.project_history import ProjectHistoryModel
from payroll_kernel.models.salary import SalaryLineItemModel, SalaryModel
from payroll_kernel.models.sequence import SequenceCounter
from payroll_kernel.models.settings import OrganizationSettingsModel


__all__ = [
    "DepartmentModel",
    "EmployeeModel",
    "MonthlyProjectRevenueModel",
    "OrganizationSettingsModel",
    "ProjectDeveloperModel",
    "ProjectHistoryModel",
    "ProjectModel",
    "SalaryLineItemModel",
    "SalaryModel",
    "SequenceCounter",
]
