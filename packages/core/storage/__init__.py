from .base import (
    RecurrencePattern,
    ReminderState,
    ReminderStore,
    ReminderStoreError,
)
from .postgrest import PostgrestReminderStore
from .sqlite import SQLiteReminderStore

__all__ = [
    "RecurrencePattern",
    "ReminderState",
    "ReminderStore",
    "ReminderStoreError",
    "PostgrestReminderStore",
    "SQLiteReminderStore",
]
