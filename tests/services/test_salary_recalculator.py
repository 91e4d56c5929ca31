"""
Tests for SalaryRecalculator.

Pending salaries are refreshed in place; Paid salaries are never touched
and are reported in ``locked_skipped``.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from payroll_kernel.domain.commission import CommissionRole, CommissionSpec
from payroll_kernel.domain.employee import EmployeeRole
from payroll_kernel.domain.salary import SalaryStatus
from payroll_kernel.exceptions import InvalidMonthError
from payroll_kernel.models.project import ProjectModel
from payroll_kernel.models.salary import SalaryModel
from payroll_kernel.selectors.salary_selector import SalarySelector
from payroll_kernel.services.salary_generator import SalaryGenerator
from payroll_kernel.services.salary_payment import SalaryPaymentService
from payroll_kernel.services.salary_recalculator import SalaryRecalculator


@pytest.fixture
def generator(session, converter, fallbacks):
    return SalaryGenerator(session, converter, fallbacks)


@pytest.fixture
def recalculator(session, converter, fallbacks):
    return SalaryRecalculator(session, converter, fallbacks)


@pytest.fixture
def payment_service(session, deterministic_clock):
    return SalaryPaymentService(session, deterministic_clock)


@pytest.fixture
def team(make_employee, make_project):
    """A PM and one developer on a project with no revenue yet."""
    pm = make_employee("PM", role=EmployeeRole.PROJECT_MANAGER)
    dev = make_employee("Dev")
    project = make_project(
        total_amount="10000", bonus_pool="2000",
        team={CommissionRole.PROJECT_MANAGER: pm}, developers=[dev],
        commissions={CommissionRole.PROJECT_MANAGER: CommissionSpec.percentage("10")},
    )
    return pm, dev, project


def _salary_for(result, employee_id):
    return next(s for s in result.updated if s.employee_id == employee_id)


class TestRecalculatePending:

    def test_late_revenue_is_picked_up(self, generator, recalculator, team, make_revenue, test_actor_id):
        pm, dev, project = team
        generator.generate("2025-03", test_actor_id)
        make_revenue(project, "2025-03", "5000")

        result = recalculator.recalculate("2025-03", test_actor_id)

        assert result.updated_count == 2
        assert result.locked_skipped_count == 0
        assert _salary_for(result, dev.id).project_bonuses[0].amount == Decimal("1000")
        assert _salary_for(result, pm.id).pm_commissions[0].amount == Decimal("140000")

    def test_line_items_replaced_not_appended(self, generator, recalculator, team, make_revenue, test_actor_id):
        pm, dev, project = team
        make_revenue(project, "2025-03", "5000")
        generator.generate("2025-03", test_actor_id)

        recalculator.recalculate("2025-03", test_actor_id)
        result = recalculator.recalculate("2025-03", test_actor_id)

        salary = _salary_for(result, dev.id)
        assert len(salary.project_bonuses) == 1
        assert salary.total_amount == salary.base_salary + Decimal("1000")

    def test_base_salary_is_resnapshotted(self, session, generator, recalculator, team, test_actor_id):
        pm, dev, project = team
        generator.generate("2025-03", test_actor_id)
        dev.base_salary = Decimal("150000")
        session.flush()

        result = recalculator.recalculate("2025-03", test_actor_id)

        salary = _salary_for(result, dev.id)
        assert salary.base_salary == Decimal("150000")
        assert salary.total_amount == Decimal("150000")

    def test_removed_revenue_clears_items(self, session, generator, recalculator, team, make_revenue, test_actor_id):
        pm, dev, project = team
        revenue = make_revenue(project, "2025-03", "5000")
        generator.generate("2025-03", test_actor_id)
        session.delete(revenue)
        session.flush()

        result = recalculator.recalculate("2025-03", test_actor_id)

        for salary in result.updated:
            assert salary.line_items == ()
            assert salary.total_amount == salary.base_salary

    def test_never_creates_salaries(self, session, generator, recalculator, team, make_employee, test_actor_id):
        generator.generate("2025-03", test_actor_id)
        make_employee("Late joiner")

        result = recalculator.recalculate("2025-03", test_actor_id)

        assert result.updated_count == 2
        count = session.execute(select(func.count(SalaryModel.id))).scalar_one()
        assert count == 2

    def test_empty_month(self, recalculator, test_actor_id):
        result = recalculator.recalculate("2025-03", test_actor_id)
        assert result.updated_count == 0
        assert result.locked_skipped == ()

    def test_invalid_month(self, recalculator, test_actor_id):
        with pytest.raises(InvalidMonthError):
            recalculator.recalculate("March", test_actor_id)


class TestLockedSalaries:

    def test_paid_salary_left_untouched(
        self, session, generator, recalculator, payment_service, team, make_revenue, test_actor_id,
    ):
        pm, dev, project = team
        make_revenue(project, "2025-03", "2500")
        created = {s.employee_id: s for s in generator.generate("2025-03", test_actor_id).created}
        paid = payment_service.mark_paid(created[dev.id].id, test_actor_id, "TRX-1")
        before = SalarySelector(session).get_salary(paid.id).salary

        # Bonus pool raised after the payment went out
        session.execute(
            update(ProjectModel)
            .where(ProjectModel.id == project.id)
            .values(bonus_pool=Decimal("4000"))
        )
        result = recalculator.recalculate("2025-03", test_actor_id)

        assert result.locked_skipped == (dev.id,)
        assert [s.employee_id for s in result.updated] == [pm.id]
        session.expire_all()
        after = SalarySelector(session).get_salary(paid.id).salary
        assert after == before
        assert after.status == SalaryStatus.PAID

    def test_status_reread_from_store(
        self, session, generator, recalculator, team, make_revenue, test_actor_id,
    ):
        """A payment committed elsewhere is observed even if this session saw Pending."""
        pm, dev, project = team
        make_revenue(project, "2025-03", "2500")
        created = {s.employee_id: s for s in generator.generate("2025-03", test_actor_id).created}
        salary_id = created[dev.id].id

        stale = session.get(SalaryModel, salary_id)
        assert stale.status == SalaryStatus.PENDING.value
        session.execute(
            update(SalaryModel.__table__)
            .where(SalaryModel.__table__.c.id == salary_id)
            .values(status=SalaryStatus.PAID.value, payment_reference="TRX-9")
        )

        result = recalculator.recalculate("2025-03", test_actor_id)

        assert dev.id in result.locked_skipped
        assert dev.id not in {s.employee_id for s in result.updated}

    def test_locked_skip_logged(
        self, generator, recalculator, payment_service, team, test_actor_id, captured_logs,
    ):
        pm, dev, project = team
        created = {s.employee_id: s for s in generator.generate("2025-03", test_actor_id).created}
        payment_service.mark_paid(created[pm.id].id, test_actor_id, "TRX-2")

        recalculator.recalculate("2025-03", test_actor_id)

        skips = [r for r in captured_logs() if r["message"] == "salary_locked_skip"]
        assert [r["employee_id"] for r in skips] == [str(pm.id)]

        completed = [r for r in captured_logs() if r["message"] == "salary_recalculation_completed"]
        assert completed[0]["updated_count"] == 1
        assert completed[0]["locked_skipped_count"] == 1
        assert completed[0]["error_count"] == 0
