"""
Module: payroll_kernel.selectors.project_history_selector
Responsibility: Read-only project history timelines and per-project hash
    chain verification.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Timelines are ordered by ``seq`` (oldest first).
    - Chain verification recomputes every entry hash; the first entry of a
      project has no prev_hash and every later prev_hash equals its
      predecessor's hash.

Failure modes:
    - HistoryChainBrokenError from ``verify_chain`` on any mismatch.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.project_history import ProjectTimeline
from payroll_kernel.exceptions import HistoryChainBrokenError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.project_history import ProjectHistoryModel
from payroll_kernel.selectors.base import BaseSelector
from payroll_kernel.utils.hashing import hash_history_entry, hash_payload

logger = get_logger("selectors.project_history")


class ProjectHistorySelector(BaseSelector[ProjectHistoryModel]):

    def __init__(self, session: Session):
        super().__init__(session)

    def _entries(self, project_id: UUID) -> list[ProjectHistoryModel]:
        return list(
            self.session.execute(
                select(ProjectHistoryModel)
                .where(ProjectHistoryModel.project_id == project_id)
                .order_by(ProjectHistoryModel.seq)
            ).scalars()
        )

    def timeline(self, project_id: UUID) -> ProjectTimeline:
        return ProjectTimeline(
            project_id=project_id,
            entries=tuple(e.to_dto() for e in self._entries(project_id)),
        )

    def verify_chain(self, project_id: UUID) -> bool:
        """
        Recompute and check the project's hash chain.

        Raises:
            HistoryChainBrokenError: an entry's payload hash, hash or
                prev_hash does not match.
        """
        entries = self._entries(project_id)
        expected_prev: str | None = None

        for entry in entries:
            payload_hash = hash_payload(
                {"changes": entry.changes, "snapshot": entry.snapshot}
            )
            expected_hash = hash_history_entry(
                project_id=entry.project_id,
                change_type=entry.change_type,
                payload_hash=payload_hash,
                prev_hash=expected_prev,
            )

            if entry.prev_hash != expected_prev or entry.hash != expected_hash:
                logger.critical(
                    "project_history_chain_broken",
                    extra={"project_id": str(project_id), "seq": entry.seq},
                )
                raise HistoryChainBrokenError(
                    str(project_id), entry.seq, expected_hash, entry.hash,
                )
            expected_prev = entry.hash

        logger.info(
            "project_history_chain_valid",
            extra={"project_id": str(project_id), "entry_count": len(entries)},
        )
        return True
