"""Selectors for the payroll kernel (read side)."""

from payroll_kernel.selectors.project_history_selector import ProjectHistorySelector
from payroll_kernel.selectors.revenue_selector import RevenueSelector
from payroll_kernel.selectors.salary_selector import DashboardMetrics, SalarySelector

__all__ = [
    "DashboardMetrics",
    "ProjectHistorySelector",
    "RevenueSelector",
    "SalarySelector",
]
