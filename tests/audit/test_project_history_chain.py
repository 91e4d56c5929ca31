"""
Project history hash chain validation.

Verifies:
- An untouched chain validates
- Tampering with a stored entry (bypassing the ORM) breaks the chain at
  that entry
"""

from dataclasses import replace
from decimal import Decimal

import pytest
from sqlalchemy import update

from payroll_kernel.domain.project import ProjectStatus
from payroll_kernel.exceptions import HistoryChainBrokenError
from payroll_kernel.models.project_history import ProjectHistoryModel
from payroll_kernel.selectors.project_history_selector import ProjectHistorySelector
from payroll_kernel.services.project_history_recorder import ProjectHistoryRecorder


@pytest.fixture
def history(session, make_project, deterministic_clock, test_actor_id):
    """A project with CREATED, UPDATED and CLOSED entries."""
    recorder = ProjectHistoryRecorder(session, deterministic_clock)
    project = make_project()
    created_state = project.to_state()
    updated_state = replace(created_state, total_amount=Decimal("15000"))
    closed_state = replace(updated_state, status=ProjectStatus.COMPLETED)

    entries = [
        recorder.record(project.id, None, created_state, test_actor_id),
        recorder.record(project.id, created_state, updated_state, test_actor_id),
        recorder.record(project.id, updated_state, closed_state, test_actor_id),
    ]
    return project, entries


class TestChainValidation:

    def test_valid_chain(self, session, history, captured_logs):
        project, entries = history

        assert ProjectHistorySelector(session).verify_chain(project.id) is True
        valid = [r for r in captured_logs() if r["message"] == "project_history_chain_valid"]
        assert valid[-1]["entry_count"] == 3

    def test_each_entry_links_to_previous(self, history):
        _, entries = history
        assert entries[0].prev_hash is None
        assert entries[1].prev_hash == entries[0].hash
        assert entries[2].prev_hash == entries[1].hash

    def test_empty_history_is_valid(self, session, make_project):
        project = make_project()
        assert ProjectHistorySelector(session).verify_chain(project.id) is True

    def test_tampered_changes_detected(self, session, history):
        project, entries = history
        table = ProjectHistoryModel.__table__
        session.execute(
            update(table)
            .where(table.c.id == entries[1].id)
            .values(changes=[{"field": "totalAmount", "old_value": "10000", "new_value": "99999", "description": None}])
        )
        session.expire_all()

        with pytest.raises(HistoryChainBrokenError) as exc_info:
            ProjectHistorySelector(session).verify_chain(project.id)
        assert exc_info.value.seq == entries[1].seq

    def test_tampered_link_detected(self, session, history, captured_logs):
        project, entries = history
        table = ProjectHistoryModel.__table__
        session.execute(
            update(table).where(table.c.id == entries[2].id).values(prev_hash="0" * 64)
        )
        session.expire_all()

        with pytest.raises(HistoryChainBrokenError):
            ProjectHistorySelector(session).verify_chain(project.id)
        assert any(r["message"] == "project_history_chain_broken" for r in captured_logs())
