"""
Module: payroll_kernel.models.employee
Responsibility: ORM persistence for departments and employees.  Both are
    owned by the surrounding HR module; the payroll core only reads them
    (active employees, base salary, department for salary filters).
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Employee e-mail is unique (uq_payroll_employee_email).
    - base_salary is Decimal (Numeric(38, 9)) in PKR.
    - role and status store enum .value strings.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.employee import EmployeeInfo, EmployeeRole, EmployeeStatus


class DepartmentModel(TrackedBase):
    __tablename__ = "payroll_departments"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        UniqueConstraint("name", name="uq_payroll_department_name"),
    )

    def __repr__(self) -> str:
        return f"<DepartmentModel {self.name}>"


class EmployeeModel(TrackedBase):
    """
    ORM model for an employee.

    Guarantees:
        - ``email`` is unique.
        - ``status`` is "active" or "inactive"; only active employees are
          enumerated by salary generation.
    """

    __tablename__ = "payroll_employees"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_departments.id"), nullable=True,
    )
    tech_stack: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EmployeeStatus.ACTIVE.value,
    )

    department: Mapped[DepartmentModel | None] = relationship()

    __table_args__ = (
        UniqueConstraint("email", name="uq_payroll_employee_email"),
        Index("idx_payroll_employee_status", "status"),
        Index("idx_payroll_employee_department", "department_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value

    def to_dto(self) -> EmployeeInfo:
        return EmployeeInfo(
            id=self.id,
            name=self.name,
            email=self.email,
            role=EmployeeRole(self.role),
            base_salary=self.base_salary,
            status=EmployeeStatus(self.status),
            department_id=self.department_id,
            tech_stack=tuple(self.tech_stack or ()),
        )

    @classmethod
    def from_dto(cls, dto: EmployeeInfo, created_by_id: UUID) -> "EmployeeModel":
        return cls(
            id=dto.id,
            name=dto.name,
            email=dto.email,
            role=dto.role.value,
            base_salary=dto.base_salary,
            status=dto.status.value,
            department_id=dto.department_id,
            tech_stack=list(dto.tech_stack),
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.email} ({self.role}, {self.status})>"
