"""
Status transitions of generated schedule items.

``pending``/``rescheduled`` items are actionable. ``completed`` and
``skipped`` are terminal: the only way out is back to ``pending``. Each
accepted transition yields exactly one history record; a rejected one raises
before touching the item.
"""
from datetime import date, datetime, timezone
from typing import Optional

from stockaudit.core.exceptions import ScheduleTransitionError
from stockaudit.models.shared.enums import ScheduleAction, ScheduleStatus
from stockaudit.schemas.schedule.schedule_item import ScheduleHistoryCreate
from stockaudit.services.schedule.schedule_generator import iso_day_of_week

TERMINAL_STATUSES = {ScheduleStatus.COMPLETED, ScheduleStatus.SKIPPED}


def history_action_for(status: ScheduleStatus) -> ScheduleAction:
    if status == ScheduleStatus.COMPLETED:
        return ScheduleAction.COMPLETED
    if status == ScheduleStatus.SKIPPED:
        return ScheduleAction.SKIPPED
    return ScheduleAction.RESCHEDULED


def check_status_transition(current: ScheduleStatus, new_status: ScheduleStatus):
    if current in TERMINAL_STATUSES and new_status != ScheduleStatus.PENDING:
        raise ScheduleTransitionError(
            current.value,
            f"Schedule item is already {current.value}; reopen it as pending first"
        )


def apply_status(
    item,
    new_status: ScheduleStatus,
    actor_id: int,
    notes: Optional[str] = None,
    linked_count_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> ScheduleHistoryCreate:
    """Set the item's status in place and return the history record to append."""
    check_status_transition(ScheduleStatus(item.status), new_status)
    now = now or datetime.now(timezone.utc)

    item.status = new_status
    if notes is not None:
        item.notes = notes
    if linked_count_id is not None:
        item.linked_count_id = linked_count_id
    if new_status == ScheduleStatus.COMPLETED:
        item.completed_at = now
    elif new_status == ScheduleStatus.PENDING:
        item.completed_at = None

    return ScheduleHistoryCreate(
        schedule_item_id=item.id,
        action=history_action_for(new_status),
        reason=notes,
        actor_id=actor_id,
    )


def apply_reschedule(
    item,
    new_date: date,
    actor_id: int,
    reason: Optional[str] = None
) -> ScheduleHistoryCreate:
    """Move the item to ``new_date`` in place and return the history record to append."""
    current = ScheduleStatus(item.status)
    if current in TERMINAL_STATUSES:
        raise ScheduleTransitionError(
            current.value,
            f"Cannot reschedule an item that is already {current.value}"
        )

    old_date = item.scheduled_date
    item.scheduled_date = new_date
    item.day_of_week = iso_day_of_week(new_date)
    item.status = ScheduleStatus.RESCHEDULED

    return ScheduleHistoryCreate(
        schedule_item_id=item.id,
        action=ScheduleAction.RESCHEDULED,
        old_date=old_date,
        new_date=new_date,
        reason=reason,
        actor_id=actor_id,
    )
