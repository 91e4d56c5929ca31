"""Tests for recording monthly collected revenue."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.domain.revenue import RevenueEntryInput
from payroll_kernel.exceptions import InvalidMonthError, ProjectNotFoundError, ValidationError
from payroll_kernel.services.monthly_revenue_service import MonthlyRevenueService


@pytest.fixture
def revenue_service(session):
    return MonthlyRevenueService(session)


class TestRecordRevenue:

    def test_creates_entry(self, revenue_service, make_project, test_actor_id):
        project = make_project("Apollo")

        revenue = revenue_service.record_revenue(project.id, "2025-03", "5000", test_actor_id, notes="March invoice")

        assert revenue.project_id == project.id
        assert revenue.month == "2025-03"
        assert revenue.amount_collected == Decimal("5000")
        assert revenue.notes == "March invoice"
        assert revenue.project_name == "Apollo"

    def test_second_call_replaces_entry(self, revenue_service, make_project, test_actor_id, captured_logs):
        project = make_project()
        first = revenue_service.record_revenue(project.id, "2025-03", "5000", test_actor_id)

        second = revenue_service.record_revenue(project.id, "2025-03", "6500", test_actor_id)

        assert second.id == first.id
        assert second.amount_collected == Decimal("6500")
        actions = [r["action"] for r in captured_logs() if r["message"] == "revenue_recorded"]
        assert actions == ["created", "updated"]

    def test_zero_is_allowed(self, revenue_service, make_project, test_actor_id):
        project = make_project()
        revenue = revenue_service.record_revenue(project.id, "2025-03", 0, test_actor_id)
        assert revenue.amount_collected == Decimal("0")

    @pytest.mark.parametrize("amount", ["-1", "NaN", "Infinity", "lots"])
    def test_rejects_bad_amounts(self, revenue_service, make_project, test_actor_id, amount):
        project = make_project()
        with pytest.raises(ValidationError) as exc_info:
            revenue_service.record_revenue(project.id, "2025-03", amount, test_actor_id)
        assert exc_info.value.field == "amount_collected"

    def test_unknown_project(self, revenue_service, test_actor_id):
        with pytest.raises(ProjectNotFoundError):
            revenue_service.record_revenue(uuid4(), "2025-03", "10", test_actor_id)

    def test_invalid_month(self, revenue_service, make_project, test_actor_id):
        project = make_project()
        with pytest.raises(InvalidMonthError):
            revenue_service.record_revenue(project.id, "03-2025", "10", test_actor_id)


class TestBulkRecordRevenue:

    def test_bad_entry_does_not_abort_batch(self, revenue_service, make_project, test_actor_id):
        good = make_project("Good")
        missing = uuid4()

        result = revenue_service.bulk_record_revenue(
            "2025-03",
            [
                RevenueEntryInput(good.id, Decimal("100")),
                RevenueEntryInput(missing, Decimal("200")),
                RevenueEntryInput(good.id, Decimal("-5")),
            ],
            test_actor_id,
        )

        assert [r.project_id for r in result.saved] == [good.id]
        assert [(e.project_id, e.error_code) for e in result.errors] == [
            (missing, "PROJECT_NOT_FOUND"),
            (good.id, "VALIDATION_ERROR"),
        ]


class TestDeleteRevenue:

    def test_delete_existing(self, revenue_service, make_project, make_revenue):
        project = make_project()
        make_revenue(project, "2025-03", "10")

        assert revenue_service.delete_revenue(project.id, "2025-03") is True
        assert revenue_service.delete_revenue(project.id, "2025-03") is False
