from __future__ import annotations

import datetime as dt
import logging
import threading
from collections import deque
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Protocol

from ..storage.base import ReminderState
from ..timeutil import utc_now


logger = logging.getLogger("nanatech.notifications")


class AlertPermission(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


@dataclass(frozen=True)
class Alert:
    tag: str
    title: str
    body: str
    reminder_id: str
    created_at: dt.datetime
    require_interaction: bool = True
    auto_close_seconds: Optional[int] = 10


class AlertSurface(Protocol):
    def permission(self) -> AlertPermission:
        """Whether visual alerts may be shown."""

    def show_alert(self, alert: Alert) -> None:
        """Show or replace the alert carrying ``alert.tag``."""

    def speak(self, text: str) -> None:
        """Render ``text`` as speech audio."""

    def acknowledge(self, tag: str) -> bool:
        """Dismiss an alert. Returns True if it was pending."""


def alert_tag(reminder: ReminderState) -> str:
    return f"reminder-{reminder.id}"


def speech_text(reminder: ReminderState) -> str:
    return f"Reminder: {reminder.display_title}"


class NotificationDispatcher:
    """Turns a due reminder into a visual alert plus a spoken message.

    The visual alert is only shown when permission is granted; otherwise the
    reminder is spoken only. Speech goes through ``executor`` so a slow voice
    backend never holds up the scan. Errors are logged, never raised.
    """

    def __init__(
        self,
        surface: AlertSurface,
        executor: Optional[Executor] = None,
        clock: Callable[[], dt.datetime] = utc_now,
        auto_close_seconds: Optional[int] = 10,
    ) -> None:
        self._surface = surface
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="reminder-speech"
        )
        self._clock = clock
        self._auto_close_seconds = auto_close_seconds

    @property
    def surface(self) -> AlertSurface:
        return self._surface

    def permission(self) -> AlertPermission:
        try:
            return AlertPermission(self._surface.permission())
        except Exception:
            logger.exception("alert_permission_check_failed")
            return AlertPermission.DEFAULT

    def build_alert(self, reminder: ReminderState) -> Alert:
        title = reminder.display_title
        return Alert(
            tag=alert_tag(reminder),
            title=title,
            body=f"Don't forget: {title}",
            reminder_id=reminder.id,
            created_at=self._clock(),
            auto_close_seconds=self._auto_close_seconds,
        )

    def notify(self, reminder: ReminderState) -> None:
        if self.permission() is AlertPermission.GRANTED:
            try:
                self._surface.show_alert(self.build_alert(reminder))
            except Exception:
                logger.exception("alert_show_failed id=%s", reminder.id)
        try:
            self._executor.submit(self._speak, speech_text(reminder))
        except RuntimeError:
            logger.exception("speech_submit_failed id=%s", reminder.id)
        logger.info("reminder_notified id=%s title=%s", reminder.id, reminder.display_title)

    def _speak(self, text: str) -> None:
        try:
            self._surface.speak(text)
        except Exception:
            logger.exception("speech_failed text=%s", text)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


class InboxAlertSurface(AlertSurface):
    """In-memory alert surface that a browser client polls.

    Alerts are keyed by tag, so showing a reminder twice replaces the pending
    alert instead of stacking a duplicate. Alerts that do not require
    interaction disappear after their auto-close timeout.
    """

    def __init__(
        self,
        permission: AlertPermission = AlertPermission.GRANTED,
        clock: Callable[[], dt.datetime] = utc_now,
        spoken_limit: int = 50,
    ) -> None:
        self._permission = AlertPermission(permission)
        self._clock = clock
        self._alerts: Dict[str, Alert] = {}
        self._spoken: Deque[str] = deque(maxlen=spoken_limit)
        self._lock = threading.Lock()

    def permission(self) -> AlertPermission:
        return self._permission

    def set_permission(self, permission: AlertPermission) -> None:
        self._permission = AlertPermission(permission)

    def show_alert(self, alert: Alert) -> None:
        with self._lock:
            self._alerts[alert.tag] = alert

    def speak(self, text: str) -> None:
        with self._lock:
            self._spoken.append(text)

    def acknowledge(self, tag: str) -> bool:
        with self._lock:
            return self._alerts.pop(tag, None) is not None

    def pending(self) -> List[Alert]:
        now = self._clock()
        with self._lock:
            expired = [
                tag
                for tag, alert in self._alerts.items()
                if not alert.require_interaction
                and alert.auto_close_seconds is not None
                and alert.created_at + dt.timedelta(seconds=alert.auto_close_seconds) <= now
            ]
            for tag in expired:
                del self._alerts[tag]
            return sorted(self._alerts.values(), key=lambda alert: alert.created_at)

    def spoken(self) -> List[str]:
        with self._lock:
            return list(self._spoken)
