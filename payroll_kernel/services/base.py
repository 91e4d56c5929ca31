"""
BaseService -- abstract base for payroll kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for the
    write-side services.  Every service receives a SQLAlchemy ``Session``
    and persists with ``session.flush()``, never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back the outer transaction themselves.  Batch
    services open per-item SAVEPOINTs (``session.begin_nested()``) and only
    commit or roll back those.  The facade in ``payroll_services`` owns
    commit/rollback.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from payroll_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage the outer transaction (commit/rollback).
        - Does NOT provide query-only (read) methods; those belong in
          ``payroll_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
