"""
ProjectHistoryRecorder -- append-only, hash-chained project change log.

Responsibility:
    Diffs a project mutation against its prior state, classifies it with the
    ordered predicate list in ``domain/project_history.py``, and appends one
    immutable entry carrying the full post-change snapshot.

Architecture position:
    Kernel > Services -- imperative shell around the pure diff/classify
    core.  Runs independently of salary computation.

Invariants enforced:
    - A project's earliest entry is CREATED; a creation (``before=None``)
      is only accepted for a project with no history, and every other
      change requires the CREATED entry to exist.
    - Exactly one entry per accepted mutation; an empty diff writes
      nothing.
    - ``seq`` comes from SequenceService (locked counter row) and is
      strictly increasing.
    - ``hash = H(project_id | change_type | payload_hash | prev_hash)``
      where ``prev_hash`` is the project's previous entry hash.

Failure modes:
    - ProjectNotFoundError, DuplicateCreationError,
      MissingCreationEntryError.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.project import ProjectState
from payroll_kernel.domain.project_history import (
    ChangeType,
    ProjectHistoryEntry,
    build_snapshot,
    classify_changes,
    diff_project_states,
)
from payroll_kernel.exceptions import (
    DuplicateCreationError,
    MissingCreationEntryError,
    ProjectNotFoundError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.project import ProjectModel
from payroll_kernel.models.project_history import ProjectHistoryModel
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.sequence_service import SequenceService
from payroll_kernel.utils.hashing import hash_history_entry, hash_payload

logger = get_logger("services.project_history")


class ProjectHistoryRecorder(BaseService[ProjectHistoryModel]):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _latest_entry(self, project_id: UUID) -> ProjectHistoryModel | None:
        return self.session.execute(
            select(ProjectHistoryModel)
            .where(ProjectHistoryModel.project_id == project_id)
            .order_by(ProjectHistoryModel.seq.desc())
            .limit(1)
        ).scalar_one_or_none()

    def _has_creation_entry(self, project_id: UUID) -> bool:
        return self.session.execute(
            select(ProjectHistoryModel.id).where(
                ProjectHistoryModel.project_id == project_id,
                ProjectHistoryModel.change_type == ChangeType.CREATED.value,
            ).limit(1)
        ).first() is not None

    def record(
        self,
        project_id: UUID,
        before: ProjectState | None,
        after: ProjectState,
        actor_id: UUID,
        actor_email: str | None = None,
        notes: str | None = None,
    ) -> ProjectHistoryEntry | None:
        """
        Record one project mutation.

        Args:
            project_id: The mutated project.
            before: State before the mutation, or None for a creation.
            after: State after the mutation.
            actor_id: Who made the change.
            actor_email: Optional e-mail shown on the timeline.
            notes: Optional free-text note.

        Returns:
            The written entry, or None when nothing tracked changed.
        """
        with LogContext.bind(project_id=str(project_id), actor_id=str(actor_id)):
            if self.session.get(ProjectModel, project_id) is None:
                raise ProjectNotFoundError(str(project_id))

            latest = self._latest_entry(project_id)

            if before is None:
                if latest is not None:
                    raise DuplicateCreationError(str(project_id))
                changes = diff_project_states(None, after)
                change_type = ChangeType.CREATED
            else:
                if not self._has_creation_entry(project_id):
                    raise MissingCreationEntryError(str(project_id))
                changes = diff_project_states(before, after)
                if not changes:
                    logger.debug("project_history_no_changes")
                    return None
                change_type = classify_changes(changes)

            snapshot = build_snapshot(after)
            payload_hash = hash_payload(
                {"changes": [c.to_dict() for c in changes], "snapshot": snapshot}
            )
            prev_hash = latest.hash if latest is not None else None
            entry_hash = hash_history_entry(
                project_id=project_id,
                change_type=change_type.value,
                payload_hash=payload_hash,
                prev_hash=prev_hash,
            )
            seq = self._sequence_service.next_value(SequenceService.PROJECT_HISTORY)

            entry = ProjectHistoryModel(
                seq=seq,
                project_id=project_id,
                change_type=change_type.value,
                changes=[c.to_dict() for c in changes],
                snapshot=snapshot,
                changed_by_id=actor_id,
                changed_by_email=actor_email,
                notes=notes,
                occurred_at=self._clock.now(),
                payload_hash=payload_hash,
                prev_hash=prev_hash,
                hash=entry_hash,
            )
            self.session.add(entry)
            self.session.flush()

            logger.info(
                "project_history_recorded",
                extra={
                    "seq": seq,
                    "change_type": change_type.value,
                    "changed_fields": [c.field for c in changes],
                },
            )
            return entry.to_dto()
