"""
SequenceService -- named counters for ordering project history.

Project history entries carry a global ``seq`` so that a timeline can be
read back in recording order even when two entries share a timestamp.
Values come from a ``sequence_counters`` row locked with
``SELECT ... FOR UPDATE``; an aggregate ``max(seq) + 1`` is never used.

The increment belongs to the caller's transaction: a rollback gives the
value back, so gaps only appear when a later value has already committed.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:

    PROJECT_HISTORY = "project_history"

    def __init__(self, session: Session):
        self._session = session

    def _find(self, name: str, lock: bool = False) -> SequenceCounter | None:
        query = select(SequenceCounter).where(SequenceCounter.name == name)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(query).scalar_one_or_none()

    def _create(self, name: str) -> SequenceCounter | None:
        """
        Insert the counter at 0 inside a SAVEPOINT.  Returns None when a
        concurrent transaction created it first.
        """
        savepoint = self._session.begin_nested()
        try:
            counter = SequenceCounter(name=name, current_value=0)
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_created_concurrently", extra={"sequence_name": name})
            return None
        savepoint.commit()
        return counter

    def next_value(self, name: str) -> int:
        """Allocate the next value of ``name`` (1 on first use)."""
        counter = self._find(name, lock=True) or self._create(name)
        if counter is None:
            counter = self._find(name, lock=True)
            if counter is None:
                raise RuntimeError(f"Sequence counter {name!r} vanished after creation race")

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, name: str) -> int | None:
        """Last allocated value, or None if the sequence was never used."""
        counter = self._find(name)
        return counter.current_value if counter else None
