from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import List, Optional

from ..storage.base import RecurrencePattern, ReminderState, ReminderStore
from ..timeutil import as_utc, utc_now
from .models import AdvanceOutcome, Advanced, Completed
from .recurrence import next_occurrence


logger = logging.getLogger("nanatech.reminders")


def create_reminder(
    store: ReminderStore,
    user_id: str,
    title: Optional[str],
    occurrence_time: Optional[dt.datetime],
    is_recurring: bool = False,
    recurrence_pattern: Optional[str] = None,
    recurrence_end: Optional[dt.datetime] = None,
    description: Optional[str] = None,
    reminder_type: Optional[str] = None,
) -> ReminderState:
    pattern = RecurrencePattern.parse(recurrence_pattern) if is_recurring else RecurrencePattern.NONE
    reminder = ReminderState(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=title.strip() if title else None,
        description=description.strip() if description else None,
        reminder_type=reminder_type,
        occurrence_time=as_utc(occurrence_time) if occurrence_time else None,
        is_completed=False,
        is_recurring=is_recurring,
        recurrence_pattern=pattern,
        recurrence_end=as_utc(recurrence_end) if is_recurring and recurrence_end else None,
        created_at=utc_now(),
    )
    store.create_reminder(reminder)
    return reminder


def list_reminders(
    store: ReminderStore, user_id: str, include_completed: bool = True
) -> List[ReminderState]:
    return store.list_reminders(user_id, include_completed=include_completed)


def complete_reminder(store: ReminderStore, reminder: ReminderState) -> ReminderState:
    store.mark_completed(reminder.id, reminder.user_id)
    return ReminderState(**{**reminder.__dict__, "is_completed": True})


def due_reminders(
    store: ReminderStore,
    user_id: str,
    now: dt.datetime,
    advance_notice: dt.timedelta,
) -> List[ReminderState]:
    """Incomplete reminders due by ``now + advance_notice``, earliest first.

    Store failures propagate as ReminderStoreError.
    """
    until = as_utc(now) + advance_notice
    reminders = store.list_due_reminders(user_id, until)
    # Backends already filter and sort; re-apply so a lax backend cannot
    # hand the loop a completed or out-of-window reminder.
    due = [
        reminder
        for reminder in reminders
        if not reminder.is_completed
        and reminder.occurrence_time is not None
        and reminder.occurrence_time <= until
    ]
    due.sort(key=lambda reminder: reminder.occurrence_time)
    return due


def advance(reminder: ReminderState, now: dt.datetime) -> AdvanceOutcome:
    if not reminder.is_recurring or reminder.recurrence_pattern is RecurrencePattern.NONE:
        return Completed()
    if reminder.occurrence_time is None:
        return Completed()
    next_time = next_occurrence(reminder.occurrence_time, reminder.recurrence_pattern, now)
    if next_time is None:
        return Completed()
    if reminder.recurrence_end is not None and next_time > as_utc(reminder.recurrence_end):
        return Completed()
    return Advanced(next_time=next_time)


def apply_advance(
    store: ReminderStore, reminder: ReminderState, outcome: AdvanceOutcome
) -> None:
    """Write the outcome back. Store failures propagate to the caller."""
    if isinstance(outcome, Advanced):
        store.update_occurrence_time(reminder.id, reminder.user_id, outcome.next_time)
        logger.info(
            "reminder_advanced id=%s next=%s", reminder.id, outcome.next_time.isoformat()
        )
        return
    store.mark_completed(reminder.id, reminder.user_id)
    logger.info("reminder_completed id=%s", reminder.id)
