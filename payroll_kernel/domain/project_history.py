"""
Project history -- structured diff, ordered classification, snapshot.

Responsibility:
    Pure half of the ProjectHistoryRecorder.  Computes the field-level diff
    between two ``ProjectState`` values, classifies it with an ordered list
    of predicates (first match wins), and builds the post-change snapshot
    stored on every history entry.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The recorder in
    ``services/project_history_recorder.py`` owns persistence.

Invariants enforced:
    - Diffs are emitted in the fixed TRACKED_FIELDS order.
    - Classification priority: TEAM_CHANGED > CLOSED > REOPENED >
      STATUS_CHANGED > UPDATED.  CREATED is never produced by
      classification; only a write with no prior state is a creation.
    - All diff and snapshot values are JSON-safe (str, list, dict, None).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable
from uuid import UUID

from payroll_kernel.domain.commission import CommissionSpec
from payroll_kernel.domain.project import ProjectState, ProjectStatus


class ChangeType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    TEAM_CHANGED = "team_changed"
    CLOSED = "closed"
    REOPENED = "reopened"


CHANGE_TYPE_LABELS: dict[ChangeType, str] = {
    ChangeType.CREATED: "Project Created",
    ChangeType.UPDATED: "Project Updated",
    ChangeType.STATUS_CHANGED: "Status Changed",
    ChangeType.TEAM_CHANGED: "Team Updated",
    ChangeType.CLOSED: "Project Closed",
    ChangeType.REOPENED: "Project Reopened",
}


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldChange":
        return cls(
            field=data["field"],
            old_value=data.get("old_value"),
            new_value=data.get("new_value"),
            description=data.get("description"),
        )


def _plain(value: Any) -> Any:
    """JSON-safe rendering of a tracked value."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, CommissionSpec):
        return value.to_dict()
    return value


def _developers(state: ProjectState) -> list[str]:
    return sorted(str(d) for d in state.team.unique_developer_ids)


# (field, label, extractor) in diff order
TRACKED_FIELDS: tuple[tuple[str, str, Callable[[ProjectState], Any]], ...] = (
    ("name", "Name", lambda s: s.name),
    ("clientName", "Client", lambda s: s.client_name),
    ("totalAmount", "Total amount", lambda s: s.total_amount),
    ("startDate", "Start date", lambda s: s.start_date),
    ("endDate", "End date", lambda s: s.end_date),
    ("status", "Status", lambda s: s.status),
    ("bonusPool", "Bonus pool", lambda s: s.bonus_pool),
    ("pmCommission", "PM commission", lambda s: s.pm_commission),
    ("teamLeadCommission", "Team lead commission", lambda s: s.team_lead_commission),
    ("managerCommission", "Manager commission", lambda s: s.manager_commission),
    ("bidderCommission", "Bidder commission", lambda s: s.bidder_commission),
    ("team.projectManager", "Project manager", lambda s: s.team.project_manager_id),
    ("team.teamLead", "Team lead", lambda s: s.team.team_lead_id),
    ("team.manager", "Manager", lambda s: s.team.manager_id),
    ("team.bidder", "Bidder", lambda s: s.team.bidder_id),
    ("team.developers", "Developers", _developers),
)


def _normalize(value: Any) -> Any:
    # Decimal("10") and Decimal("10.00") are the same amount
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, CommissionSpec):
        return {"type": value.type.value, "amount": format(value.amount.normalize(), "f")}
    if value == []:
        return None
    return _plain(value)


def _describe(label: str, old: Any, new: Any) -> str:
    if old is None:
        return f"{label} set"
    if new is None:
        return f"{label} cleared"
    return f"{label} changed"


def diff_project_states(
    before: ProjectState | None,
    after: ProjectState,
) -> tuple[FieldChange, ...]:
    """
    Field-level changes from ``before`` to ``after``.

    With ``before=None`` every field that has a value in ``after`` is
    reported as set (the creation diff).
    """
    changes: list[FieldChange] = []
    for field_name, label, extract in TRACKED_FIELDS:
        old = _normalize(extract(before)) if before is not None else None
        new = _normalize(extract(after))
        if old == new:
            continue
        changes.append(
            FieldChange(
                field=field_name,
                old_value=old,
                new_value=new,
                description=_describe(label, old, new),
            )
        )
    return tuple(changes)


# =============================================================================
# Classification
# =============================================================================


def _status_change(changes: tuple[FieldChange, ...]) -> FieldChange | None:
    for change in changes:
        if change.field == "status":
            return change
    return None


def _is_team_change(changes: tuple[FieldChange, ...]) -> bool:
    return any(c.field.startswith("team.") for c in changes)


def _is_close(changes: tuple[FieldChange, ...]) -> bool:
    status = _status_change(changes)
    return status is not None and status.new_value == ProjectStatus.COMPLETED.value


def _is_reopen(changes: tuple[FieldChange, ...]) -> bool:
    status = _status_change(changes)
    return (
        status is not None
        and status.old_value == ProjectStatus.COMPLETED.value
        and status.new_value == ProjectStatus.ACTIVE.value
    )


def _is_status_change(changes: tuple[FieldChange, ...]) -> bool:
    return _status_change(changes) is not None


@dataclass(frozen=True)
class ClassificationRule:
    change_type: ChangeType
    matches: Callable[[tuple[FieldChange, ...]], bool]


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(ChangeType.TEAM_CHANGED, _is_team_change),
    ClassificationRule(ChangeType.CLOSED, _is_close),
    ClassificationRule(ChangeType.REOPENED, _is_reopen),
    ClassificationRule(ChangeType.STATUS_CHANGED, _is_status_change),
)


def classify_changes(
    changes: tuple[FieldChange, ...],
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> ChangeType:
    """First matching rule wins; anything unmatched is UPDATED."""
    for rule in rules:
        if rule.matches(changes):
            return rule.change_type
    return ChangeType.UPDATED


def build_snapshot(state: ProjectState) -> dict[str, Any]:
    """Full post-change state stored on a history entry."""
    team = state.team
    return {
        "name": state.name,
        "status": _plain(state.status),
        "totalAmount": _plain(state.total_amount),
        "team": {
            "projectManager": _plain(team.project_manager_id),
            "teamLead": _plain(team.team_lead_id),
            "manager": _plain(team.manager_id),
            "bidder": _plain(team.bidder_id),
            "developers": [str(d) for d in team.unique_developer_ids],
        },
    }


# =============================================================================
# Read-side DTOs
# =============================================================================


@dataclass(frozen=True)
class ProjectHistoryEntry:
    id: UUID
    seq: int
    project_id: UUID
    change_type: ChangeType
    changes: tuple[FieldChange, ...]
    snapshot: dict[str, Any]
    changed_by_id: UUID
    occurred_at: datetime
    payload_hash: str
    hash: str
    prev_hash: str | None = None
    changed_by_email: str | None = None
    notes: str | None = None

    @property
    def label(self) -> str:
        return CHANGE_TYPE_LABELS[self.change_type]

    @property
    def changed_fields(self) -> tuple[str, ...]:
        return tuple(c.field for c in self.changes)


@dataclass(frozen=True)
class ProjectTimeline:
    """History entries of one project, oldest first."""

    project_id: UUID
    entries: tuple[ProjectHistoryEntry, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.entries) == 0

    @property
    def created_entry(self) -> ProjectHistoryEntry | None:
        if self.entries and self.entries[0].change_type == ChangeType.CREATED:
            return self.entries[0]
        return None

    @property
    def latest(self) -> ProjectHistoryEntry | None:
        return self.entries[-1] if self.entries else None

    def of_type(self, change_type: ChangeType) -> tuple[ProjectHistoryEntry, ...]:
        return tuple(e for e in self.entries if e.change_type == change_type)
