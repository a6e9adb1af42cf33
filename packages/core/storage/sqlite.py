from __future__ import annotations

import datetime as dt
import os
import sqlite3
from typing import Any, Callable, List, Optional, TypeVar

from ..timeutil import format_timestamp, parse_timestamp
from .base import RecurrencePattern, ReminderState, ReminderStore, ReminderStoreError

T = TypeVar("T")

_COLUMNS = (
    "id, user_id, title, description, reminder_type, occurrence_time, "
    "is_completed, is_recurring, recurrence_pattern, recurrence_end, created_at"
)


class SQLiteReminderStore(ReminderStore):
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT,
                    description TEXT,
                    reminder_type TEXT,
                    occurrence_time TEXT,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    is_recurring INTEGER NOT NULL DEFAULT 0,
                    recurrence_pattern TEXT NOT NULL DEFAULT 'none',
                    recurrence_end TEXT,
                    created_at TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS reminders_user_due_idx
                ON reminders (user_id, is_completed, occurrence_time)
                """
            )

    def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        try:
            with self._connect() as conn:
                return fn(conn)
        except sqlite3.Error as exc:
            raise ReminderStoreError(f"sqlite {operation} failed: {exc}") from exc

    def _row_to_reminder(self, row: Any) -> ReminderState:
        return ReminderState(
            id=row[0],
            user_id=row[1],
            title=row[2],
            description=row[3],
            reminder_type=row[4],
            occurrence_time=parse_timestamp(row[5]),
            is_completed=bool(row[6]),
            is_recurring=bool(row[7]),
            recurrence_pattern=RecurrencePattern.parse(row[8]),
            recurrence_end=parse_timestamp(row[9]),
            created_at=parse_timestamp(row[10]),
        )

    def create_reminder(self, reminder: ReminderState) -> None:
        def _insert(conn: sqlite3.Connection) -> None:
            conn.execute(
                f"""
                INSERT INTO reminders ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    reminder.id,
                    reminder.user_id,
                    reminder.title,
                    reminder.description,
                    reminder.reminder_type,
                    format_timestamp(reminder.occurrence_time),
                    1 if reminder.is_completed else 0,
                    1 if reminder.is_recurring else 0,
                    reminder.recurrence_pattern.value,
                    format_timestamp(reminder.recurrence_end),
                    format_timestamp(reminder.created_at),
                ),
            )

        self._run("insert", _insert)

    def get_reminder(self, reminder_id: str, user_id: str) -> Optional[ReminderState]:
        row = self._run(
            "select",
            lambda conn: conn.execute(
                f"SELECT {_COLUMNS} FROM reminders WHERE id = ? AND user_id = ?",
                (reminder_id, user_id),
            ).fetchone(),
        )
        if row is None:
            return None
        return self._row_to_reminder(row)

    def list_reminders(
        self, user_id: str, include_completed: bool = True
    ) -> List[ReminderState]:
        query = f"SELECT {_COLUMNS} FROM reminders WHERE user_id = ?"
        if not include_completed:
            query += " AND is_completed = 0"
        # Unscheduled reminders sort last.
        query += " ORDER BY occurrence_time IS NULL, occurrence_time ASC, id ASC"
        rows = self._run(
            "select", lambda conn: conn.execute(query, (user_id,)).fetchall()
        )
        return [self._row_to_reminder(row) for row in rows]

    def list_due_reminders(self, user_id: str, until: dt.datetime) -> List[ReminderState]:
        rows = self._run(
            "select",
            lambda conn: conn.execute(
                f"""
                SELECT {_COLUMNS}
                FROM reminders
                WHERE user_id = ?
                  AND is_completed = 0
                  AND occurrence_time IS NOT NULL
                  AND occurrence_time <= ?
                ORDER BY occurrence_time ASC, id ASC
                """,
                (user_id, format_timestamp(until)),
            ).fetchall(),
        )
        return [self._row_to_reminder(row) for row in rows]

    def update_occurrence_time(
        self, reminder_id: str, user_id: str, occurrence_time: dt.datetime
    ) -> None:
        self._update(
            "UPDATE reminders SET occurrence_time = ? WHERE id = ? AND user_id = ?",
            (format_timestamp(occurrence_time), reminder_id, user_id),
            reminder_id,
        )

    def mark_completed(self, reminder_id: str, user_id: str) -> None:
        self._update(
            "UPDATE reminders SET is_completed = 1 WHERE id = ? AND user_id = ?",
            (reminder_id, user_id),
            reminder_id,
        )

    def _update(self, statement: str, params: tuple, reminder_id: str) -> None:
        rowcount = self._run(
            "update", lambda conn: conn.execute(statement, params).rowcount
        )
        if rowcount == 0:
            raise ReminderStoreError(f"Reminder not found: {reminder_id}")

    def delete_reminder(self, reminder_id: str, user_id: str) -> bool:
        rowcount = self._run(
            "delete",
            lambda conn: conn.execute(
                "DELETE FROM reminders WHERE id = ? AND user_id = ?",
                (reminder_id, user_id),
            ).rowcount,
        )
        return rowcount > 0
