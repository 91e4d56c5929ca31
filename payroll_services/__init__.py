"""Service layer for the payroll core: the PayrollService facade."""

from payroll_services.payroll_service import PayrollService

__all__ = ["PayrollService"]
