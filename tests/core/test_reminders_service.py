import datetime as dt

import pytest

from packages.core.reminders.models import Advanced, Completed
from packages.core.reminders.service import (
    advance,
    apply_advance,
    complete_reminder,
    create_reminder,
    due_reminders,
)
from packages.core.storage.base import RecurrencePattern, ReminderState, ReminderStoreError
from packages.core.storage.sqlite import SQLiteReminderStore


UTC = dt.timezone.utc
NOW = dt.datetime(2024, 3, 15, 6, 0, tzinfo=UTC)
FIVE_MINUTES = dt.timedelta(minutes=5)


def _reminder(**overrides):
    fields = {
        "id": "r1",
        "user_id": "u1",
        "title": "Blood pressure pill",
        "occurrence_time": NOW,
        "is_recurring": False,
        "recurrence_pattern": RecurrencePattern.NONE,
    }
    fields.update(overrides)
    return ReminderState(**fields)


def test_create_reminder_normalises_fields(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))

    reminder = create_reminder(
        store,
        user_id="u1",
        title="  Call Maria  ",
        occurrence_time=dt.datetime(2024, 3, 15, 9, 0),
        is_recurring=False,
        recurrence_pattern="weekly",
        recurrence_end=dt.datetime(2024, 6, 1, tzinfo=UTC),
    )

    assert reminder.id
    assert reminder.title == "Call Maria"
    assert reminder.occurrence_time == dt.datetime(2024, 3, 15, 9, 0, tzinfo=UTC)
    assert reminder.recurrence_pattern is RecurrencePattern.NONE
    assert reminder.recurrence_end is None
    assert store.get_reminder(reminder.id, "u1") == reminder


def test_due_reminders_filters_and_orders(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))
    store.create_reminder(_reminder(id="later", occurrence_time=NOW + dt.timedelta(minutes=4)))
    store.create_reminder(_reminder(id="early", occurrence_time=NOW - dt.timedelta(hours=2)))
    store.create_reminder(_reminder(id="too-far", occurrence_time=NOW + dt.timedelta(minutes=6)))
    store.create_reminder(_reminder(id="done", is_completed=True))
    store.create_reminder(_reminder(id="unscheduled", occurrence_time=None))
    store.create_reminder(_reminder(id="other-user", user_id="u2"))
    store.create_reminder(_reminder(id="edge", occurrence_time=NOW + FIVE_MINUTES))

    due = due_reminders(store, "u1", NOW, FIVE_MINUTES)

    assert [reminder.id for reminder in due] == ["early", "later", "edge"]


def test_due_reminders_propagates_store_errors():
    class BrokenStore:
        def list_due_reminders(self, user_id, until):
            raise ReminderStoreError("offline")

    with pytest.raises(ReminderStoreError):
        due_reminders(BrokenStore(), "u1", NOW, FIVE_MINUTES)


def test_due_reminders_refilters_lax_backend():
    class LaxStore:
        def list_due_reminders(self, user_id, until):
            return [
                _reminder(id="b", occurrence_time=NOW),
                _reminder(id="done", is_completed=True),
                _reminder(id="a", occurrence_time=NOW - dt.timedelta(minutes=1)),
                _reminder(id="late", occurrence_time=NOW + dt.timedelta(hours=1)),
            ]

    due = due_reminders(LaxStore(), "u1", NOW, FIVE_MINUTES)
    assert [reminder.id for reminder in due] == ["a", "b"]


def test_advance_one_shot_completes():
    assert advance(_reminder(), NOW) == Completed()


def test_advance_recurring_with_none_pattern_completes():
    reminder = _reminder(is_recurring=True, recurrence_pattern=RecurrencePattern.NONE)
    assert advance(reminder, NOW) == Completed()


def test_advance_pattern_without_recurring_flag_completes():
    reminder = _reminder(is_recurring=False, recurrence_pattern=RecurrencePattern.DAILY)
    assert advance(reminder, NOW) == Completed()


def test_advance_daily_moves_past_now():
    reminder = _reminder(
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.DAILY,
        occurrence_time=dt.datetime(2024, 1, 1, 7, tzinfo=UTC),
    )
    assert advance(reminder, NOW) == Advanced(next_time=dt.datetime(2024, 3, 15, 7, tzinfo=UTC))


def test_advance_past_recurrence_end_completes():
    reminder = _reminder(
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.DAILY,
        occurrence_time=dt.datetime(2024, 3, 15, 5, 58, tzinfo=UTC),
        recurrence_end=dt.datetime(2024, 3, 15, 5, 58, tzinfo=UTC),
    )
    assert advance(reminder, NOW) == Completed()


def test_advance_recurrence_end_one_day_before_next_completes():
    occurrence = dt.datetime(2024, 3, 15, 5, 58, tzinfo=UTC)
    reminder = _reminder(
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.WEEKLY,
        occurrence_time=occurrence,
        recurrence_end=occurrence + dt.timedelta(days=6),
    )
    assert isinstance(advance(reminder, NOW), Completed)


def test_advance_on_recurrence_end_is_still_allowed():
    occurrence = dt.datetime(2024, 3, 15, 5, 58, tzinfo=UTC)
    reminder = _reminder(
        is_recurring=True,
        recurrence_pattern=RecurrencePattern.DAILY,
        occurrence_time=occurrence,
        recurrence_end=occurrence + dt.timedelta(days=1),
    )
    assert advance(reminder, NOW) == Advanced(next_time=occurrence + dt.timedelta(days=1))


def test_apply_advance_writes_next_time_and_completion(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))
    recurring = _reminder(id="daily", is_recurring=True, recurrence_pattern=RecurrencePattern.DAILY)
    one_shot = _reminder(id="once")
    store.create_reminder(recurring)
    store.create_reminder(one_shot)

    next_time = NOW + dt.timedelta(days=1)
    apply_advance(store, recurring, Advanced(next_time=next_time))
    apply_advance(store, one_shot, Completed())

    updated = store.get_reminder("daily", "u1")
    assert updated.occurrence_time == next_time
    assert updated.is_completed is False
    completed = store.get_reminder("once", "u1")
    assert completed.is_completed is True
    assert completed.occurrence_time == NOW


def test_apply_advance_missing_reminder_raises(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))
    with pytest.raises(ReminderStoreError):
        apply_advance(store, _reminder(id="ghost"), Completed())


def test_complete_reminder_returns_updated_state(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))
    store.create_reminder(_reminder())

    updated = complete_reminder(store, _reminder())

    assert updated.is_completed is True
    assert store.list_reminders("u1", include_completed=False) == []
