"""
Module: payroll_kernel.models.project
Responsibility: ORM persistence for projects, their team assignment and the
    four per-role commission specifications.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Each commission specification is stored as a (type, amount) column
      pair; both NULL means "not set" (organization fallback applies).
    - A half-set pair, an unknown type or a negative amount is malformed and
      surfaces as ValidationError when the specification is read.
    - Developers keep their assignment order via ``position``.

Audit relevance:
    Every accepted mutation to a project is recorded by the
    ProjectHistoryRecorder using ``to_state()`` before and after.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.commission import CommissionRole, CommissionSpec
from payroll_kernel.domain.project import ProjectState, ProjectStatus, ProjectTeam
from payroll_kernel.exceptions import ValidationError

_COMMISSION_COLUMNS: dict[CommissionRole, tuple[str, str]] = {
    CommissionRole.PROJECT_MANAGER: ("pm_commission_type", "pm_commission_amount"),
    CommissionRole.TEAM_LEAD: ("team_lead_commission_type", "team_lead_commission_amount"),
    CommissionRole.MANAGER: ("manager_commission_type", "manager_commission_amount"),
    CommissionRole.BIDDER: ("bidder_commission_type", "bidder_commission_amount"),
}

_TEAM_COLUMNS: dict[CommissionRole, str] = {
    CommissionRole.PROJECT_MANAGER: "project_manager_id",
    CommissionRole.TEAM_LEAD: "team_lead_id",
    CommissionRole.MANAGER: "manager_id",
    CommissionRole.BIDDER: "bidder_id",
}


class ProjectDeveloperModel(TrackedBase):
    """A developer assigned to a project, in assignment order."""

    __tablename__ = "payroll_project_developers"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_projects.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("project_id", "employee_id", name="uq_payroll_project_developer"),
    )


class ProjectModel(TrackedBase):
    """
    ORM model for a project.

    Guarantees:
        - ``total_amount`` is the contracted amount in USD.
        - ``bonus_pool`` is the developer pool in PKR.
        - ``status`` is "active" or "completed".
    """

    __tablename__ = "payroll_projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProjectStatus.ACTIVE.value,
    )
    bonus_pool: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal(0))

    project_manager_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=True,
    )
    team_lead_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=True,
    )
    manager_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=True,
    )
    bidder_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=True,
    )

    pm_commission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pm_commission_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    team_lead_commission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    team_lead_commission_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    manager_commission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    manager_commission_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    bidder_commission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    bidder_commission_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    developers: Mapped[list[ProjectDeveloperModel]] = relationship(
        order_by=ProjectDeveloperModel.position,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_payroll_project_status", "status"),
    )

    # -- commission specifications -----------------------------------------

    def commission_for(self, role: CommissionRole) -> CommissionSpec | None:
        """
        The role's specification, or None when the project leaves it unset.

        Raises:
            ValidationError: the stored pair is malformed.
        """
        type_col, amount_col = _COMMISSION_COLUMNS[role]
        commission_type = getattr(self, type_col)
        amount = getattr(self, amount_col)
        if commission_type is None and amount is None:
            return None
        if commission_type is None or amount is None:
            raise ValidationError(
                f"Project {self.name!r} has an incomplete {role.value} commission",
                field=type_col,
            )
        return CommissionSpec(commission_type, amount)

    def set_commission(self, role: CommissionRole, spec: CommissionSpec | None) -> None:
        type_col, amount_col = _COMMISSION_COLUMNS[role]
        setattr(self, type_col, spec.type.value if spec is not None else None)
        setattr(self, amount_col, spec.amount if spec is not None else None)

    # -- team ----------------------------------------------------------------

    def member_for(self, role: CommissionRole) -> UUID | None:
        return getattr(self, _TEAM_COLUMNS[role])

    def assign(self, role: CommissionRole, employee_id: UUID | None) -> None:
        setattr(self, _TEAM_COLUMNS[role], employee_id)

    @property
    def developer_ids(self) -> tuple[UUID, ...]:
        return tuple(d.employee_id for d in self.developers)

    def set_developers(self, employee_ids: list[UUID], actor_id: UUID) -> None:
        """Replace the developer list, keeping rows for developers who stay."""
        existing = {d.employee_id: d for d in self.developers}
        ordered: list[ProjectDeveloperModel] = []
        for position, employee_id in enumerate(dict.fromkeys(employee_ids)):
            row = existing.get(employee_id)
            if row is None:
                row = ProjectDeveloperModel(
                    employee_id=employee_id, created_by_id=actor_id,
                )
            row.position = position
            ordered.append(row)
        self.developers = ordered

    # -- state -----------------------------------------------------------------

    def to_state(self) -> ProjectState:
        return ProjectState(
            name=self.name,
            client_name=self.client_name,
            total_amount=self.total_amount,
            status=ProjectStatus(self.status),
            start_date=self.start_date,
            end_date=self.end_date,
            bonus_pool=self.bonus_pool,
            team=ProjectTeam(
                project_manager_id=self.project_manager_id,
                team_lead_id=self.team_lead_id,
                manager_id=self.manager_id,
                bidder_id=self.bidder_id,
                developer_ids=self.developer_ids,
            ),
            pm_commission=self.commission_for(CommissionRole.PROJECT_MANAGER),
            team_lead_commission=self.commission_for(CommissionRole.TEAM_LEAD),
            manager_commission=self.commission_for(CommissionRole.MANAGER),
            bidder_commission=self.commission_for(CommissionRole.BIDDER),
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} ({self.status})>"
