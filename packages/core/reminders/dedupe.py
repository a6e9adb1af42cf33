from __future__ import annotations

import datetime as dt
import threading
from typing import Dict

DEFAULT_RETENTION = dt.timedelta(hours=24)


class NotifiedCache:
    """Reminder ids already notified, each remembered for ``retention``.

    Entries expire lazily when checked and in bulk on ``prune``. ``mark`` is
    the only way in and does its check-then-insert under a lock, so two
    overlapping scans cannot both claim the same reminder.
    """

    def __init__(self, retention: dt.timedelta = DEFAULT_RETENTION) -> None:
        self._retention = retention
        self._expires_at: Dict[str, dt.datetime] = {}
        self._lock = threading.Lock()

    @property
    def retention(self) -> dt.timedelta:
        return self._retention

    def mark(self, reminder_id: str, now: dt.datetime) -> bool:
        """Claim ``reminder_id``. Returns False if it was already claimed."""
        with self._lock:
            expires_at = self._expires_at.get(reminder_id)
            if expires_at is not None and expires_at > now:
                return False
            self._expires_at[reminder_id] = now + self._retention
            return True

    def is_notified(self, reminder_id: str, now: dt.datetime) -> bool:
        with self._lock:
            expires_at = self._expires_at.get(reminder_id)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._expires_at[reminder_id]
                return False
            return True

    def prune(self, now: dt.datetime) -> int:
        with self._lock:
            expired = [key for key, expires in self._expires_at.items() if expires <= now]
            for key in expired:
                del self._expires_at[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._expires_at.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._expires_at)

    def __contains__(self, reminder_id: object) -> bool:
        with self._lock:
            return reminder_id in self._expires_at
