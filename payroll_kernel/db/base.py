"""
Declarative base for the payroll models.

Every model gets a uuid4 primary key.  ``Base.type_annotation_map`` fixes
the column type behind each Python annotation so that money is always
``Numeric(38, 9)`` and ids are always 36-character strings, whatever the
backend.  ``TrackedBase`` adds who/when columns to the mutable entities
(employees, projects, revenue, salaries, settings).

Nothing here imports from models/, services/ or selectors/.

``updated_at`` / ``updated_by_id`` may change even on a paid salary; the
immutability listeners in db/immutability.py exempt them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as ``String(36)``; accepts UUID or str on bind, returns UUID."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


# Money columns: salary totals and line items in PKR, revenue in USD.
MONEY = Numeric(38, 9)


class Base(DeclarativeBase):

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        PyUUID: UUIDString(),
        datetime: DateTime(timezone=True),
        date: Date,
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Creator and last editor of a row.

    ``created_by_id`` is mandatory; ``updated_by_id`` stays NULL until the
    first edit.  Timestamps come from the database clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
    created_by_id: Mapped[PyUUID] = mapped_column()
    updated_by_id: Mapped[PyUUID | None] = mapped_column()


UUID = PyUUID
