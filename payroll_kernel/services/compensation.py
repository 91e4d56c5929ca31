"""
Compensation composition -- line items for every employee in a month.

Responsibility:
    The shared middle of salary generation and recalculation: validate the
    commission specifications of every project with revenue for the month,
    resolve each project's basis, compute role commissions (project
    specification or organization fallback) and developer bonus-pool
    shares, and group the resulting line items by employee.

Architecture position:
    Kernel > Services.  Reads projects and revenue; writes nothing.  Used by
    SalaryGenerator and SalaryRecalculator so both run the same composition.

Invariants enforced:
    - A malformed commission specification on any project with revenue
      raises ValidationError before any line item is produced.
    - A project without a revenue entry for the month produces no line
      items (it never reaches composition).
    - Developer share = bonusPool * basis / toPkr(totalAmount) / developers,
      with repeated developer assignments counted once.  Overcollection is
      not clamped.
    - Stored line item amounts are rounded to 2 decimal places,
      ROUND_HALF_UP.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from payroll_kernel.db.types import round_money
from payroll_kernel.domain.commission import (
    CommissionFallbacks,
    CommissionRole,
    calculate_commission,
)
from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.project import ProjectState
from payroll_kernel.domain.revenue import RevenueBasis
from payroll_kernel.domain.salary import ROLE_CATEGORIES, LineItem, LineItemCategory
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.project import ProjectModel
from payroll_kernel.services.revenue_basis import RevenueBasisResolver

logger = get_logger("services.compensation")


@dataclass(frozen=True)
class ProjectContribution:
    """One project's state and basis for the month being composed."""

    project_id: UUID
    state: ProjectState
    basis: RevenueBasis


@dataclass(frozen=True)
class MonthCompensation:
    """Line items for a month, grouped by the employee they pay."""

    month: str
    line_items: dict[UUID, tuple[LineItem, ...]] = field(default_factory=dict)
    project_count: int = 0

    def items_for(self, employee_id: UUID) -> tuple[LineItem, ...]:
        return self.line_items.get(employee_id, ())


def role_line_items(
    contribution: ProjectContribution,
    fallbacks: CommissionFallbacks,
) -> list[tuple[UUID, LineItem]]:
    """Commission line items for the filled role slots of one project."""
    state = contribution.state
    basis = contribution.basis
    items: list[tuple[UUID, LineItem]] = []

    for role in CommissionRole:
        employee_id = state.team.member_for(role)
        if employee_id is None:
            continue

        spec = state.commission_for(role) or fallbacks.spec_for(role)
        if spec is None:
            # Manager with no project specification: no organization default
            continue

        if spec.is_out_of_range:
            logger.warning(
                "commission_percentage_out_of_range",
                extra={
                    "project_id": str(contribution.project_id),
                    "role": role.value,
                    "percentage": spec.amount,
                },
            )

        items.append(
            (
                employee_id,
                LineItem(
                    category=ROLE_CATEGORIES[role],
                    project_id=contribution.project_id,
                    amount=round_money(calculate_commission(spec, basis.basis)),
                    project_name=state.name,
                    commission_type=spec.type,
                    commission_rate=spec.amount,
                    basis_amount=basis.basis,
                ),
            )
        )
    return items


def developer_line_items(
    contribution: ProjectContribution,
    converter: CurrencyConverter,
) -> list[tuple[UUID, LineItem]]:
    """Equal bonus-pool shares, pro-rated by the month's collected revenue."""
    state = contribution.state
    developers = state.team.unique_developer_ids
    if not developers:
        return []

    if state.total_amount <= 0:
        logger.warning(
            "developer_share_skipped",
            extra={
                "project_id": str(contribution.project_id),
                "reason": "non-positive total contracted amount",
                "total_amount": state.total_amount,
            },
        )
        return []

    total_pkr = converter.to_pkr(state.total_amount)
    pool_share = state.bonus_pool * contribution.basis.basis / total_pkr
    share = round_money(pool_share / Decimal(len(developers)))

    return [
        (
            developer_id,
            LineItem(
                category=LineItemCategory.PROJECT_BONUS,
                project_id=contribution.project_id,
                amount=share,
                project_name=state.name,
                basis_amount=contribution.basis.basis,
            ),
        )
        for developer_id in developers
    ]


class CompensationComposer:
    """
    Builds the month's line items for every employee touched by a project.

    Contract:
        ``compose(month)`` returns a MonthCompensation.  It is read-only and
        deterministic for a given store state, rate and fallbacks.
    """

    def __init__(
        self,
        session: Session,
        converter: CurrencyConverter,
        fallbacks: CommissionFallbacks,
    ):
        self._session = session
        self._converter = converter
        self._fallbacks = fallbacks
        self._resolver = RevenueBasisResolver(session, converter)

    def contributions(self, month: str) -> tuple[ProjectContribution, ...]:
        """
        Projects with revenue in ``month``, with their validated state.

        Raises:
            ValidationError: a project with revenue has a malformed
                commission specification.
        """
        bases = self._resolver.resolve_month(month)
        if not bases:
            return ()

        projects = {
            p.id: p
            for p in self._session.execute(
                select(ProjectModel)
                .where(ProjectModel.id.in_([b.project_id for b in bases]))
                .options(selectinload(ProjectModel.developers))
            ).scalars()
        }

        # to_state() reads all four specifications, so a malformed one
        # raises here, before anything has been composed or written.
        return tuple(
            ProjectContribution(
                project_id=basis.project_id,
                state=projects[basis.project_id].to_state(),
                basis=basis,
            )
            for basis in bases
        )

    def compose(self, month: str) -> MonthCompensation:
        contributions = self.contributions(month)

        grouped: dict[UUID, list[LineItem]] = defaultdict(list)
        for contribution in contributions:
            for employee_id, item in role_line_items(contribution, self._fallbacks):
                grouped[employee_id].append(item)
            for employee_id, item in developer_line_items(contribution, self._converter):
                grouped[employee_id].append(item)

        logger.info(
            "compensation_composed",
            extra={
                "month": month,
                "project_count": len(contributions),
                "employee_count": len(grouped),
                "line_item_count": sum(len(items) for items in grouped.values()),
            },
        )
        return MonthCompensation(
            month=month,
            line_items={k: tuple(v) for k, v in grouped.items()},
            project_count=len(contributions),
        )
