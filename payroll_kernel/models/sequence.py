"""
Module: payroll_kernel.models.sequence
Responsibility: Named monotonic counters.  Each row is locked with
    SELECT ... FOR UPDATE by SequenceService when a value is allocated.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    # e.g. "project_history"
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
