from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable


class ReminderStoreError(RuntimeError):
    """Raised when the reminder store cannot be read or written."""


class RecurrencePattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RecurrencePattern":
        """Unknown or missing values map to NONE so the reminder completes."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NONE


@dataclass(frozen=True)
class ReminderState:
    id: str
    user_id: str
    title: Optional[str]
    occurrence_time: Optional[dt.datetime]
    is_completed: bool = False
    is_recurring: bool = False
    recurrence_pattern: RecurrencePattern = RecurrencePattern.NONE
    recurrence_end: Optional[dt.datetime] = None
    description: Optional[str] = None
    reminder_type: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    @property
    def display_title(self) -> str:
        title = (self.title or "").strip()
        return title or "Reminder"


@runtime_checkable
class ReminderStore(Protocol):
    def create_reminder(self, reminder: ReminderState) -> None:
        """Persist a new reminder."""

    def get_reminder(self, reminder_id: str, user_id: str) -> Optional[ReminderState]:
        """Return the user's reminder by id, or None."""

    def list_reminders(
        self, user_id: str, include_completed: bool = True
    ) -> List[ReminderState]:
        """List a user's reminders ordered by occurrence time."""

    def list_due_reminders(self, user_id: str, until: dt.datetime) -> List[ReminderState]:
        """Incomplete reminders with occurrence_time <= until, earliest first."""

    def update_occurrence_time(
        self, reminder_id: str, user_id: str, occurrence_time: dt.datetime
    ) -> None:
        """Move a reminder to its next occurrence."""

    def mark_completed(self, reminder_id: str, user_id: str) -> None:
        """Flip is_completed to true."""

    def delete_reminder(self, reminder_id: str, user_id: str) -> bool:
        """Delete a reminder. Returns True if deleted."""
