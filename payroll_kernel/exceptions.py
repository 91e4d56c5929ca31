"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Salary runs touch every employee in the organization. Callers (the service
facade, the CLI, batch result reporting) need to react to failures by TYPE
and report them by CODE, never by parsing message text:

    try:
        service.mark_paid(salary_id, paid_date, reference, actor_id)
    except LockedRecordError as e:
        respond(code=e.code, salary=e.salary_id)

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, copied into batch error entries)
  3. Carries structured DATA set before the message is built

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidMonthError
    |
    +-- InvalidRateError
    |
    +-- SalaryError
    |   +-- DuplicateSalaryError
    |   +-- LockedRecordError
    |   +-- SalaryNotFoundError
    |
    +-- MissingBasisError
    |
    +-- EmployeeNotFoundError
    +-- ProjectNotFoundError
    |
    +-- ProjectHistoryError
    |   +-- MissingCreationEntryError
    |   +-- DuplicateCreationError
    |   +-- HistoryChainBrokenError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | Malformed commission spec, bad amount
                | INVALID_MONTH               | Month key is not YYYY-MM
----------------|-----------------------------|-----------------------------------------
Currency        | INVALID_RATE                | Rate <= 0, NaN, Infinity, non-numeric
----------------|-----------------------------|-----------------------------------------
Salary          | DUPLICATE_SALARY            | (employee, month) already has a salary
                | LOCKED_RECORD               | Mutation of a Paid salary
                | SALARY_NOT_FOUND            | Salary ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Revenue         | MISSING_BASIS               | No revenue entry for (project, month)
----------------|-----------------------------|-----------------------------------------
Reference       | EMPLOYEE_NOT_FOUND          | Employee ID doesn't exist
                | PROJECT_NOT_FOUND           | Project ID doesn't exist
----------------|-----------------------------|-----------------------------------------
History         | MISSING_CREATION_ENTRY      | Change recorded before CREATED entry
                | DUPLICATE_CREATION_ENTRY    | Second CREATED entry for a project
                | HISTORY_CHAIN_BROKEN        | Hash chain validation failed
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an append-only row
----------------|-----------------------------|-----------------------------------------
Batch           | UNHANDLED_EXCEPTION         | Non-kernel failure for a single item
"""


class PayrollKernelError(Exception):
    """Base exception for all payroll kernel errors."""

    code: str = "PAYROLL_KERNEL_ERROR"


# Validation


class ValidationError(PayrollKernelError):
    """Malformed input: commission specification, amount, percentage."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidMonthError(ValidationError):
    """Month key is not a valid YYYY-MM string."""

    code: str = "INVALID_MONTH"

    def __init__(self, month: str):
        self.month = month
        super().__init__(
            f"Invalid month key {month!r}: expected YYYY-MM with month 01-12",
            field="month",
        )


# Currency


class InvalidRateError(PayrollKernelError):
    """Exchange rate is non-positive, non-finite or non-numeric."""

    code: str = "INVALID_RATE"

    def __init__(self, rate_value: str, reason: str):
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(f"Invalid USD to PKR rate {rate_value}: {reason}")


# Salary


class SalaryError(PayrollKernelError):
    """Base for salary-record errors."""

    code: str = "SALARY_ERROR"


class DuplicateSalaryError(SalaryError):
    """A salary already exists for (employee, month)."""

    code: str = "DUPLICATE_SALARY"

    def __init__(self, employee_id: str, month: str):
        self.employee_id = employee_id
        self.month = month
        super().__init__(
            f"Salary for employee {employee_id} in {month} already exists"
        )


class LockedRecordError(SalaryError):
    """Attempted mutation of a Paid salary."""

    code: str = "LOCKED_RECORD"

    def __init__(self, salary_id: str, reason: str):
        self.salary_id = salary_id
        self.reason = reason
        super().__init__(f"Salary {salary_id} is locked: {reason}")


class SalaryNotFoundError(SalaryError):
    """Salary ID doesn't exist."""

    code: str = "SALARY_NOT_FOUND"

    def __init__(self, salary_id: str):
        self.salary_id = salary_id
        super().__init__(f"Salary not found: {salary_id}")


# Revenue basis


class MissingBasisError(PayrollKernelError):
    """No MonthlyProjectRevenue entry exists for (project, month).

    This is the documented zero-contribution case: batch generation treats
    the project as silently absent for the month.
    """

    code: str = "MISSING_BASIS"

    def __init__(self, project_id: str, month: str):
        self.project_id = project_id
        self.month = month
        super().__init__(
            f"No revenue collected for project {project_id} in {month}"
        )


# Reference data


class EmployeeNotFoundError(PayrollKernelError):
    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class ProjectNotFoundError(PayrollKernelError):
    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


# Project history


class ProjectHistoryError(PayrollKernelError):
    """Base for project history errors."""

    code: str = "PROJECT_HISTORY_ERROR"


class MissingCreationEntryError(ProjectHistoryError):
    """A change was recorded for a project that has no CREATED entry."""

    code: str = "MISSING_CREATION_ENTRY"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(
            f"Project {project_id} has no CREATED history entry"
        )


class DuplicateCreationError(ProjectHistoryError):
    """A second CREATED entry was requested for a project."""

    code: str = "DUPLICATE_CREATION_ENTRY"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(
            f"Project {project_id} already has a CREATED history entry"
        )


class HistoryChainBrokenError(ProjectHistoryError):
    """Project history hash chain validation failed."""

    code: str = "HISTORY_CHAIN_BROKEN"

    def __init__(self, project_id: str, seq: int, expected_hash: str, actual_hash: str):
        self.project_id = project_id
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"History chain broken for project {project_id} at seq {seq}: "
            f"expected {expected_hash}, got {actual_hash}"
        )


# Immutability


class ImmutabilityViolationError(PayrollKernelError):
    """Attempted UPDATE or DELETE of an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
