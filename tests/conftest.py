"""
Pytest fixtures for the payroll kernel test suite.

Provides:
- A fresh in-memory SQLite database per test (tables created, immutability
  listeners registered)
- Clock, actor, converter and configuration fixtures
- Factories for employees, projects and revenue entries
- Captured structured logs

SQLite runs with explicit BEGIN handling (see payroll_kernel.db.engine) so
the per-employee SAVEPOINTs used by the batch services behave as they do on
PostgreSQL.  Row locks (SELECT ... FOR UPDATE) are ignored by SQLite.
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from payroll_config import PayrollConfiguration, get_active_config
from payroll_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.db.immutability import register_immutability_listeners
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.commission import CommissionFallbacks, CommissionRole, CommissionSpec
from payroll_kernel.domain.currency import CurrencyConverter
from payroll_kernel.domain.employee import EmployeeRole, EmployeeStatus
from payroll_kernel.domain.project import ProjectStatus
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_kernel.models.employee import EmployeeModel
from payroll_kernel.models.monthly_revenue import MonthlyProjectRevenueModel
from payroll_kernel.models.project import ProjectModel


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

# Rate used by most tests: 1 USD = 280 PKR
TEST_RATE = Decimal("280")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, generator):
            generator.generate("2025-03", actor_id)
            logs = captured_logs()
            assert any(r["message"] == "salary_generation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """A fresh in-memory database with all payroll tables."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    register_immutability_listeners()
    yield engine
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# Currency / configuration fixtures


@pytest.fixture
def converter() -> CurrencyConverter:
    return CurrencyConverter(TEST_RATE)


@pytest.fixture
def fallbacks() -> CommissionFallbacks:
    return CommissionFallbacks(
        pm_commission_percentage=Decimal("10"),
        team_lead_bonus_amount=Decimal("10000"),
        bidder_bonus_amount=Decimal("5000"),
    )


@pytest.fixture
def config() -> PayrollConfiguration:
    return get_active_config()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_employee(session: Session, test_actor_id: UUID):
    """Create and flush an employee."""
    counter = {"n": 0}

    def _make_employee(
        name: str | None = None,
        role: EmployeeRole = EmployeeRole.DEVELOPER,
        base_salary: Decimal | str = Decimal("100000"),
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        department_id: UUID | None = None,
    ) -> EmployeeModel:
        counter["n"] += 1
        name = name or f"Employee {counter['n']:03d}"
        employee = EmployeeModel(
            name=name,
            email=f"employee{counter['n']}.{uuid4().hex[:8]}@example.com",
            role=role.value,
            base_salary=Decimal(base_salary),
            status=status.value,
            department_id=department_id,
            tech_stack=[],
            created_by_id=test_actor_id,
        )
        session.add(employee)
        session.flush()
        return employee

    return _make_employee


@pytest.fixture
def make_project(session: Session, test_actor_id: UUID):
    """
    Create and flush a project.

    ``team`` maps CommissionRole to employee; ``commissions`` maps
    CommissionRole to CommissionSpec (unset roles use the organization
    fallback).
    """

    def _make_project(
        name: str = "Apollo",
        total_amount: Decimal | str = Decimal("10000"),
        bonus_pool: Decimal | str = Decimal("0"),
        status: ProjectStatus = ProjectStatus.ACTIVE,
        team: dict[CommissionRole, EmployeeModel] | None = None,
        developers: list[EmployeeModel] | None = None,
        commissions: dict[CommissionRole, CommissionSpec] | None = None,
    ) -> ProjectModel:
        project = ProjectModel(
            name=name,
            client_name=f"{name} Client",
            total_amount=Decimal(total_amount),
            bonus_pool=Decimal(bonus_pool),
            status=status.value,
            created_by_id=test_actor_id,
        )
        for role, employee in (team or {}).items():
            project.assign(role, employee.id)
        for role, spec in (commissions or {}).items():
            project.set_commission(role, spec)
        project.set_developers([d.id for d in developers or []], test_actor_id)
        session.add(project)
        session.flush()
        return project

    return _make_project


@pytest.fixture
def make_revenue(session: Session, test_actor_id: UUID):
    """Create and flush a MonthlyProjectRevenue entry (USD collected)."""

    def _make_revenue(
        project: ProjectModel,
        month: str,
        amount_collected: Decimal | str,
    ) -> MonthlyProjectRevenueModel:
        revenue = MonthlyProjectRevenueModel(
            project_id=project.id,
            month=month,
            amount_collected=Decimal(amount_collected),
            created_by_id=test_actor_id,
        )
        session.add(revenue)
        session.flush()
        return revenue

    return _make_revenue
