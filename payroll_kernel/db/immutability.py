"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Two kinds of payroll rows must never change once written:

  - A salary that has been marked PAID (and its line items).  Money has
    gone out; regenerating or recalculating it would silently rewrite a
    payment record.
  - Project history entries.  The change log is an audit narrative; an
    edited entry is worthless.

The services already skip paid salaries and never update history rows.  The
listeners in this module are the second line: they catch any code path that
tries anyway, before the SQL is sent.

    session.flush()
         |
         v
    [before_update event] --> _check_*() --> LockedRecordError /
         |                                   ImmutabilityViolationError
         v
    [before_delete event] --> _check_*_delete()
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable                  | Error
----------------------|---------------------------------|----------------------------
SalaryModel           | After status = PAID             | LockedRecordError
SalaryLineItemModel   | When parent salary is PAID      | LockedRecordError
ProjectHistoryModel   | ALWAYS (from creation)          | ImmutabilityViolationError

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at / updated_by_id may change on a paid salary.  They are audit
   metadata, not payroll data.

2. The check is "WAS paid", not "IS paid".  The payment transition itself
   sets status=PAID; pending -> paid is allowed, every change after it is
   blocked.  SQLAlchemy attribute history tells the two apart.

3. Line items look up the parent's persisted status through the flush
   connection, because a line item being deleted as an orphan no longer has
   its ``salary`` relationship populated.

===============================================================================
USAGE
===============================================================================

    from payroll_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect, select
from sqlalchemy.orm.attributes import get_history

from payroll_kernel.exceptions import ImmutabilityViolationError, LockedRecordError
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_METADATA_FIELDS = ("updated_at", "updated_by_id")
_PAID = "paid"


def _check_salary_immutability(mapper, connection, target):
    """
    Prevent updates to a salary that was already paid.

    1. status changing FROM paid -> anything: block
    2. status unchanged AND paid: block any other field change
    3. status changing TO paid (pending -> paid): allow, this IS the payment
    """
    status_history = get_history(target, "status")

    was_paid_before = False
    if status_history.deleted:
        old_status = status_history.deleted[0]
        was_paid_before = getattr(old_status, "value", old_status) == _PAID
    elif not status_history.added:
        was_paid_before = getattr(target.status, "value", target.status) == _PAID

    if not was_paid_before:
        return

    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_METADATA_FIELDS:
            continue
        if attr.history.has_changes():
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Salary",
                    "entity_id": str(target.id),
                    "operation": "UPDATE",
                    "field": attr.key,
                },
            )
            raise LockedRecordError(
                salary_id=str(target.id),
                reason=f"cannot modify field '{attr.key}' on a paid salary",
            )


def _check_salary_delete(mapper, connection, target):
    if getattr(target.status, "value", target.status) == _PAID:
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "Salary",
                "entity_id": str(target.id),
                "operation": "DELETE",
            },
        )
        raise LockedRecordError(
            salary_id=str(target.id),
            reason="paid salaries cannot be deleted",
        )


def _parent_salary_is_paid(connection, target) -> tuple[bool, object]:
    from payroll_kernel.models.salary import SalaryModel

    salary_id = target.salary_id
    if salary_id is None:
        history = get_history(target, "salary_id")
        salary_id = history.deleted[0] if history.deleted else None
    if salary_id is None:
        return False, None

    table = SalaryModel.__table__
    status = connection.execute(
        select(table.c.status).where(table.c.id == salary_id)
    ).scalar_one_or_none()
    return status == _PAID, salary_id


def _check_line_item_immutability(mapper, connection, target):
    is_paid, salary_id = _parent_salary_is_paid(connection, target)
    if is_paid:
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "SalaryLineItem",
                "entity_id": str(target.id),
                "salary_id": str(salary_id),
                "operation": "UPDATE",
            },
        )
        raise LockedRecordError(
            salary_id=str(salary_id),
            reason="line items cannot be modified after the salary is paid",
        )


def _check_line_item_delete(mapper, connection, target):
    is_paid, salary_id = _parent_salary_is_paid(connection, target)
    if is_paid:
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "SalaryLineItem",
                "entity_id": str(target.id),
                "salary_id": str(salary_id),
                "operation": "DELETE",
            },
        )
        raise LockedRecordError(
            salary_id=str(salary_id),
            reason="line items cannot be deleted after the salary is paid",
        )


def _check_project_history_immutability(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "ProjectHistory",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="ProjectHistory",
        entity_id=str(target.id),
        reason="Project history entries are immutable and cannot be modified",
    )


def _check_project_history_delete(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "ProjectHistory",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="ProjectHistory",
        entity_id=str(target.id),
        reason="Project history entries cannot be deleted",
    )


def _listeners():
    from payroll_kernel.models.project_history import ProjectHistoryModel
    from payroll_kernel.models.salary import SalaryLineItemModel, SalaryModel

    return (
        (SalaryModel, "before_update", _check_salary_immutability),
        (SalaryModel, "before_delete", _check_salary_delete),
        (SalaryLineItemModel, "before_update", _check_line_item_immutability),
        (SalaryLineItemModel, "before_delete", _check_line_item_delete),
        (ProjectHistoryModel, "before_update", _check_project_history_immutability),
        (ProjectHistoryModel, "before_delete", _check_project_history_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are left alone.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to violate the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
