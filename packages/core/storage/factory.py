from __future__ import annotations

from typing import Optional

from ..reminders.config import db_path, store_backend
from .base import ReminderStore
from .postgrest import PostgrestReminderStore
from .sqlite import SQLiteReminderStore


def open_store(backend: Optional[str] = None) -> ReminderStore:
    backend = (backend or store_backend()).lower()
    if backend == "sqlite":
        return SQLiteReminderStore(db_path=db_path())
    if backend == "postgrest":
        return PostgrestReminderStore()
    raise ValueError(f"Unknown reminder store backend: {backend}")
