"""
Module: payroll_kernel.models.project_history
Responsibility: ORM persistence for the append-only project change log.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Rows are append-only; no UPDATE or DELETE (ORM listeners raise
      ImmutabilityViolationError).
    - seq is globally unique and monotonically increasing, allocated by
      SequenceService; a project's entries are ordered by seq.
    - hash = H(project_id | change_type | payload_hash | prev_hash), with
      prev_hash pointing at the same project's previous entry.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
    - HistoryChainBrokenError when chain verification detects a mismatch.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base, UUIDString
from payroll_kernel.domain.project_history import (
    ChangeType,
    FieldChange,
    ProjectHistoryEntry,
)


class ProjectHistoryModel(Base):
    __tablename__ = "payroll_project_history"

    __table_args__ = (
        Index("idx_payroll_history_project", "project_id", "seq"),
        Index("idx_payroll_history_change_type", "change_type"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_projects.id"), nullable=False,
    )

    change_type: Mapped[str] = mapped_column(String(30), nullable=False)

    # Ordered [{field, old_value, new_value, description}]
    changes: Mapped[list] = mapped_column(JSON, nullable=False)

    # Post-change {name, status, totalAmount, team}
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

    changed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    changed_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None

    def to_dto(self) -> ProjectHistoryEntry:
        return ProjectHistoryEntry(
            id=self.id,
            seq=self.seq,
            project_id=self.project_id,
            change_type=ChangeType(self.change_type),
            changes=tuple(FieldChange.from_dict(c) for c in self.changes),
            snapshot=self.snapshot,
            changed_by_id=self.changed_by_id,
            changed_by_email=self.changed_by_email,
            notes=self.notes,
            occurred_at=self.occurred_at,
            payload_hash=self.payload_hash,
            prev_hash=self.prev_hash,
            hash=self.hash,
        )

    def __repr__(self) -> str:
        return f"<ProjectHistoryModel #{self.seq} {self.change_type} on {self.project_id}>"
