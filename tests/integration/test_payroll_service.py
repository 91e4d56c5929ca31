"""
End-to-end tests through the PayrollService facade.

The facade owns the transaction boundary, so these tests exercise commit
and rollback behavior on top of the kernel services.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.domain.commission import CommissionRole
from payroll_kernel.domain.project import ProjectStatus
from payroll_kernel.domain.project_history import ChangeType
from payroll_kernel.domain.revenue import RevenueEntryInput
from payroll_kernel.domain.salary import LineItemCategory, SalaryStatus
from payroll_kernel.exceptions import (
    EmployeeNotFoundError,
    InvalidMonthError,
    InvalidRateError,
    LockedRecordError,
    ProjectNotFoundError,
    SalaryNotFoundError,
    ValidationError,
)
from payroll_services import PayrollService


@pytest.fixture
def service(session, deterministic_clock, config, converter):
    return PayrollService(session, clock=deterministic_clock, config=config, converter=converter)


@pytest.fixture
def staffed_project(make_employee, make_project, make_revenue):
    """One developer on a 10,000 USD project with 1,000 USD collected in March."""
    developer = make_employee("Dev", base_salary="100000")
    project = make_project(
        "Apollo", total_amount="10000", bonus_pool="28000", developers=[developer],
    )
    make_revenue(project, "2025-03", "1000")
    return project, developer


class TestConstruction:

    def test_converter_built_from_seeded_settings(self, session, deterministic_clock, config):
        service = PayrollService(session, clock=deterministic_clock, config=config)

        assert service.converter.rate == Decimal("278.50")
        assert service.get_settings().usd_to_pkr_rate == Decimal("278.50")
        assert service.config is config

    def test_injected_converter_is_used(self, service, converter):
        assert service.converter is converter


class TestSalaryLifecycle:

    def test_generate_pay_recalculate(self, service, staffed_project, test_actor_id):
        _, developer = staffed_project

        generated = service.generate("2025-03", test_actor_id)
        assert generated.created_count == 1
        salary = generated.created[0]
        assert salary.employee_id == developer.id
        # 28000 * (1000 * 280) / (10000 * 280) / 1
        assert salary.project_bonuses[0].amount == Decimal("2800")
        assert salary.total_amount == Decimal("102800")

        paid = service.mark_paid(salary.id, date(2025, 4, 2), "BANK-42", test_actor_id)
        assert paid.status == SalaryStatus.PAID

        recalculated = service.recalculate("2025-03", test_actor_id)
        assert recalculated.updated_count == 0
        assert recalculated.locked_skipped == (developer.id,)

        breakdown = service.get_salary_breakdown(salary.id)
        assert breakdown.salary == paid
        assert breakdown.subtotals[LineItemCategory.PROJECT_BONUS] == Decimal("2800")

    def test_generate_twice_skips(self, service, staffed_project, test_actor_id):
        service.generate("2025-03", test_actor_id)
        second = service.generate("2025-03", test_actor_id)

        assert second.created_count == 0
        assert second.skipped_count == 1

    def test_late_revenue_recalculated(self, service, staffed_project, test_actor_id):
        project, _ = staffed_project
        service.generate("2025-03", test_actor_id)

        service.record_revenue(project.id, "2025-03", "2000", test_actor_id)
        result = service.recalculate("2025-03", test_actor_id)

        assert result.updated_count == 1
        assert result.updated[0].project_bonuses[0].amount == Decimal("5600")

    def test_second_payment_rejected(self, service, staffed_project, test_actor_id):
        salary = service.generate("2025-03", test_actor_id).created[0]
        service.mark_paid(salary.id, None, "BANK-1", test_actor_id)

        with pytest.raises(LockedRecordError):
            service.mark_paid(salary.id, None, "BANK-2", test_actor_id)

    def test_invalid_month_rolls_back(self, service, test_actor_id):
        with pytest.raises(InvalidMonthError):
            service.generate("2025-13", test_actor_id)
        assert service.list_salaries() == ()

    def test_unknown_salary(self, service):
        with pytest.raises(SalaryNotFoundError):
            service.get_salary_breakdown(uuid4())


class TestReadAccessors:

    def test_listing_and_dashboard(self, service, staffed_project, make_employee, test_actor_id):
        make_employee("Zed", base_salary="50000")
        created = service.generate("2025-03", test_actor_id).created
        dev_salary = next(s for s in created if s.employee_name == "Dev")
        service.mark_paid(dev_salary.id, None, "BANK-9", test_actor_id)

        assert [s.employee_name for s in service.list_salaries(month="2025-03")] == ["Dev", "Zed"]
        assert len(service.list_salaries(status="paid")) == 1
        assert service.employee_salary_history(dev_salary.employee_id)[0].id == dev_salary.id

        metrics = service.dashboard_metrics(month="2025-03")
        assert metrics.total_paid == Decimal("102800")
        assert metrics.total_pending == Decimal("50000")
        assert metrics.total_project_payout == Decimal("1000")

    def test_history_of_unknown_employee(self, service):
        with pytest.raises(EmployeeNotFoundError) as exc_info:
            service.employee_salary_history(uuid4())
        assert exc_info.value.code == "EMPLOYEE_NOT_FOUND"

    def test_history_of_employee_without_salaries(self, service, make_employee):
        employee = make_employee("Newcomer")
        assert service.employee_salary_history(employee.id) == ()


class TestSettings:

    def test_rate_update_reaches_converter(self, service, test_actor_id):
        settings = service.update_settings(test_actor_id, usd_to_pkr_rate="300")

        assert settings.usd_to_pkr_rate == Decimal("300")
        assert service.converter.rate == Decimal("300")
        assert service.converter.to_pkr(Decimal("2")) == Decimal("600")

    def test_invalid_rate_leaves_converter(self, service, converter, test_actor_id):
        with pytest.raises(InvalidRateError):
            service.update_settings(test_actor_id, usd_to_pkr_rate="0")
        assert service.converter.rate == converter.rate

    def test_fallback_update_without_rate(self, service, test_actor_id):
        settings = service.update_settings(test_actor_id, bidder_bonus_amount="7500")
        assert settings.bidder_bonus_amount == Decimal("7500")
        assert service.converter.rate == Decimal("280")

    def test_invalid_percentage(self, service, test_actor_id):
        with pytest.raises(ValidationError):
            service.update_settings(test_actor_id, pm_commission_percentage="150")


class TestProjectHistory:

    def test_record_and_verify(self, service, make_employee, make_project, test_actor_id):
        pm = make_employee("PM")
        project = make_project("Hermes", team={CommissionRole.PROJECT_MANAGER: pm})
        created_state = project.to_state()

        created = service.record_project_change(project.id, None, created_state, test_actor_id)
        closed = service.record_project_change(
            project.id,
            created_state,
            replace(created_state, status=ProjectStatus.COMPLETED),
            test_actor_id,
            notes="delivered",
        )
        unchanged = service.record_project_change(
            project.id, created_state, created_state, test_actor_id,
        )

        assert created.change_type == ChangeType.CREATED
        assert closed.change_type == ChangeType.CLOSED
        assert closed.prev_hash == created.hash
        assert unchanged is None

        timeline = service.project_timeline(project.id)
        assert [e.change_type for e in timeline.entries] == [ChangeType.CREATED, ChangeType.CLOSED]
        assert timeline.created_entry.hash == created.hash
        assert timeline.of_type(ChangeType.CLOSED)[0].notes == "delivered"
        assert timeline.latest.hash == closed.hash
        assert service.verify_project_history(project.id) is True


class TestRevenue:

    def test_record_list_delete(self, service, make_project, test_actor_id):
        apollo = make_project("Apollo")
        hermes = make_project("Hermes")

        service.record_revenue(apollo.id, "2025-03", "1500", test_actor_id, notes="wire")
        view = service.revenue_for_month("2025-03")
        assert view.total_collected == Decimal("1500")
        assert [p.name for p in view.projects_without_revenue] == ["Hermes"]

        assert service.delete_revenue(apollo.id, "2025-03") is True
        assert service.delete_revenue(apollo.id, "2025-03") is False
        assert service.revenue_for_month("2025-03").existing == ()

    def test_bulk_collects_errors(self, service, make_project, test_actor_id):
        apollo = make_project("Apollo")
        missing = uuid4()

        result = service.bulk_record_revenue(
            "2025-03",
            [RevenueEntryInput(apollo.id, Decimal("100")), RevenueEntryInput(missing, Decimal("5"))],
            test_actor_id,
        )

        assert [r.project_id for r in result.saved] == [apollo.id]
        assert [e.project_id for e in result.errors] == [missing]
        assert service.revenue_for_month("2025-03").total_collected == Decimal("100")

    def test_unknown_project_rolls_back(self, service, test_actor_id):
        with pytest.raises(ProjectNotFoundError):
            service.record_revenue(uuid4(), "2025-03", "10", test_actor_id)
        assert service.revenue_for_month("2025-03").existing == ()
