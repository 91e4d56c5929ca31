"""
CommissionCalculator -- one commission specification type, one calculator.

Responsibility:
    Models the ``{type, amount}`` specification every project carries for
    each of its four paid roles (PM, team lead, manager, bidder) and
    resolves it against a PKR basis amount.  The same type is reused for the
    organization-wide fallbacks held in settings.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A CommissionSpec always has a known type and a finite, non-negative
      Decimal amount (ValidationError otherwise).
    - Percentages outside [0, 100] are accepted; ``is_out_of_range`` lets
      the caller log a data-quality warning without blocking a salary run.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from payroll_kernel.exceptions import ValidationError

_HUNDRED = Decimal("100")


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CommissionRole(str, Enum):
    """Paid role slots on a project team (developers share the bonus pool)."""

    PROJECT_MANAGER = "project_manager"
    TEAM_LEAD = "team_lead"
    MANAGER = "manager"
    BIDDER = "bidder"


@dataclass(frozen=True)
class CommissionSpec:
    """A role's share of a project's monthly basis: percentage or fixed PKR."""

    type: CommissionType
    amount: Decimal

    def __post_init__(self):
        try:
            commission_type = CommissionType(self.type)
        except ValueError:
            raise ValidationError(
                f"Unknown commission type {self.type!r}", field="type",
            ) from None

        try:
            amount = self.amount if isinstance(self.amount, Decimal) else Decimal(str(self.amount))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(
                f"Commission amount {self.amount!r} is not a number", field="amount",
            ) from None

        if not amount.is_finite():
            raise ValidationError(
                f"Commission amount {self.amount!r} must be finite", field="amount",
            )
        if amount < 0:
            raise ValidationError(
                f"Commission amount cannot be negative: {amount}", field="amount",
            )

        object.__setattr__(self, "type", commission_type)
        object.__setattr__(self, "amount", amount)

    @classmethod
    def percentage(cls, amount: Decimal | int | str) -> "CommissionSpec":
        return cls(CommissionType.PERCENTAGE, amount)

    @classmethod
    def fixed(cls, amount: Decimal | int | str) -> "CommissionSpec":
        return cls(CommissionType.FIXED, amount)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommissionSpec":
        if "type" not in data or "amount" not in data:
            raise ValidationError(
                "Commission specification requires 'type' and 'amount'",
            )
        return cls(data["type"], data["amount"])

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "amount": str(self.amount)}

    @property
    def is_out_of_range(self) -> bool:
        return self.type == CommissionType.PERCENTAGE and not (
            Decimal(0) <= self.amount <= _HUNDRED
        )

    def describe(self) -> str:
        if self.type == CommissionType.PERCENTAGE:
            return f"{self.amount}%"
        return f"fixed {self.amount} PKR"


def calculate_commission(spec: CommissionSpec, basis: Decimal) -> Decimal:
    """
    Resolve a commission specification against a PKR basis.

    percentage: ``basis * amount / 100``.  fixed: ``amount``, independent of
    the basis.  No rounding; callers round stored line items.
    """
    if spec.type == CommissionType.PERCENTAGE:
        return basis * spec.amount / _HUNDRED
    return spec.amount


@dataclass(frozen=True)
class CommissionFallbacks:
    """
    Organization-wide defaults applied when a project leaves a role's
    specification unset.

    The manager role has no organization default.
    """

    pm_commission_percentage: Decimal
    team_lead_bonus_amount: Decimal
    bidder_bonus_amount: Decimal

    def spec_for(self, role: CommissionRole) -> CommissionSpec | None:
        if role == CommissionRole.PROJECT_MANAGER:
            return CommissionSpec.percentage(self.pm_commission_percentage)
        if role == CommissionRole.TEAM_LEAD:
            return CommissionSpec.fixed(self.team_lead_bonus_amount)
        if role == CommissionRole.BIDDER:
            return CommissionSpec.fixed(self.bidder_bonus_amount)
        return None
