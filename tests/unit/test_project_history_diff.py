"""
Tests for the pure half of project history: field diff, ordered change
classification and snapshots.
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.domain.commission import CommissionSpec
from payroll_kernel.domain.project import ProjectState, ProjectStatus, ProjectTeam
from payroll_kernel.domain.project_history import (
    ChangeType,
    ClassificationRule,
    FieldChange,
    build_snapshot,
    classify_changes,
    diff_project_states,
)

PM = uuid4()
DEV_A = uuid4()
DEV_B = uuid4()


@pytest.fixture
def base_state() -> ProjectState:
    return ProjectState(
        name="Apollo",
        client_name="Acme",
        total_amount=Decimal("10000"),
        status=ProjectStatus.ACTIVE,
        bonus_pool=Decimal("2000"),
        team=ProjectTeam(project_manager_id=PM, developer_ids=(DEV_A,)),
        pm_commission=CommissionSpec.percentage("10"),
    )


class TestDiffProjectStates:

    def test_no_changes(self, base_state):
        assert diff_project_states(base_state, replace(base_state)) == ()

    def test_equal_decimals_with_different_scale_are_unchanged(self, base_state):
        after = replace(base_state, total_amount=Decimal("10000.00"))
        assert diff_project_states(base_state, after) == ()

    def test_scalar_change(self, base_state):
        after = replace(base_state, name="Apollo II")
        (change,) = diff_project_states(base_state, after)
        assert change.field == "name"
        assert change.old_value == "Apollo"
        assert change.new_value == "Apollo II"
        assert change.description == "Name changed"

    def test_amount_rendered_as_string(self, base_state):
        after = replace(base_state, total_amount=Decimal("12500.50"))
        (change,) = diff_project_states(base_state, after)
        assert change.old_value == "10000"
        assert change.new_value == "12500.5"

    def test_commission_change(self, base_state):
        after = replace(base_state, pm_commission=CommissionSpec.fixed("5000"))
        (change,) = diff_project_states(base_state, after)
        assert change.field == "pmCommission"
        assert change.old_value == {"type": "percentage", "amount": "10"}
        assert change.new_value == {"type": "fixed", "amount": "5000"}

    def test_cleared_and_set_descriptions(self, base_state):
        after = replace(
            base_state,
            pm_commission=None,
            team=replace(base_state.team, bidder_id=uuid4()),
        )
        descriptions = {c.field: c.description for c in diff_project_states(base_state, after)}
        assert descriptions["pmCommission"] == "PM commission cleared"
        assert descriptions["team.bidder"] == "Bidder set"

    def test_developer_order_is_ignored(self, base_state):
        before = replace(base_state, team=ProjectTeam(developer_ids=(DEV_A, DEV_B)))
        after = replace(base_state, team=ProjectTeam(developer_ids=(DEV_B, DEV_A)))
        changes = diff_project_states(before, after)
        assert "team.developers" not in [c.field for c in changes]

    def test_emitted_in_tracked_order(self, base_state):
        after = replace(
            base_state,
            status=ProjectStatus.COMPLETED,
            name="Renamed",
            team=replace(base_state.team, team_lead_id=uuid4()),
        )
        fields = [c.field for c in diff_project_states(base_state, after)]
        assert fields == ["name", "status", "team.teamLead"]

    def test_creation_diff_reports_set_fields(self, base_state):
        changes = diff_project_states(None, base_state)
        fields = [c.field for c in changes]
        assert "name" in fields
        assert "team.projectManager" in fields
        assert "endDate" not in fields
        assert all(c.old_value is None for c in changes)


class TestClassifyChanges:

    def _classify(self, before, after):
        return classify_changes(diff_project_states(before, after))

    def test_team_change_wins_over_status(self, base_state):
        after = replace(
            base_state,
            status=ProjectStatus.COMPLETED,
            team=replace(base_state.team, developer_ids=(DEV_A, DEV_B)),
        )
        assert self._classify(base_state, after) == ChangeType.TEAM_CHANGED

    def test_close(self, base_state):
        after = replace(base_state, status=ProjectStatus.COMPLETED)
        assert self._classify(base_state, after) == ChangeType.CLOSED

    def test_reopen(self, base_state):
        before = replace(base_state, status=ProjectStatus.COMPLETED)
        assert self._classify(before, base_state) == ChangeType.REOPENED

    def test_other_status_change(self):
        changes = (FieldChange("status", "on_hold", "active"),)
        assert classify_changes(changes) == ChangeType.STATUS_CHANGED

    def test_plain_update(self, base_state):
        after = replace(base_state, bonus_pool=Decimal("3000"))
        assert self._classify(base_state, after) == ChangeType.UPDATED

    def test_first_matching_rule_wins(self):
        rules = (
            ClassificationRule(ChangeType.STATUS_CHANGED, lambda changes: True),
            ClassificationRule(ChangeType.TEAM_CHANGED, lambda changes: True),
        )
        assert classify_changes((), rules) == ChangeType.STATUS_CHANGED

    def test_never_classifies_as_created(self, base_state):
        changes = diff_project_states(None, base_state)
        assert classify_changes(changes) != ChangeType.CREATED


class TestBuildSnapshot:

    def test_snapshot_contents(self, base_state):
        snapshot = build_snapshot(base_state)
        assert snapshot == {
            "name": "Apollo",
            "status": "active",
            "totalAmount": "10000",
            "team": {
                "projectManager": str(PM),
                "teamLead": None,
                "manager": None,
                "bidder": None,
                "developers": [str(DEV_A)],
            },
        }

    def test_snapshot_developers_deduplicated(self, base_state):
        state = replace(base_state, team=ProjectTeam(developer_ids=(DEV_A, DEV_A, DEV_B)))
        assert build_snapshot(state)["team"]["developers"] == [str(DEV_A), str(DEV_B)]
