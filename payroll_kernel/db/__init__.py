"""Database layer - engine, base classes, types, and immutability listeners."""

from payroll_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from payroll_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from payroll_kernel.db.types import BASE_CURRENCY, FOREIGN_CURRENCY, round_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "BASE_CURRENCY",
    "FOREIGN_CURRENCY",
    "round_money",
]
