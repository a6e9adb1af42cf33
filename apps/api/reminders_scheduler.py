from __future__ import annotations

import datetime as dt
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from opentelemetry import trace

from packages.core.reminders.config import SchedulerConfig
from packages.core.reminders.dedupe import NotifiedCache
from packages.core.reminders.dispatcher import AlertPermission, NotificationDispatcher
from packages.core.reminders.models import Advanced, ScanResult
from packages.core.reminders.service import advance, apply_advance, due_reminders
from packages.core.storage.base import ReminderStore
from packages.core.timeutil import utc_now


logger = logging.getLogger("nanatech.reminders")

SCAN_JOB_ID = "reminder-scan"


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ReminderScheduler:
    """Periodic due-reminder scan for the signed-in user.

    Runs while a user session is active, the app is visible and alerting has
    not been denied; any signal that breaks one of those conditions stops it.
    Stopping removes the interval job, invalidates an in-flight scan and
    clears the notified cache so a resume re-evaluates everything due.
    """

    def __init__(
        self,
        store: ReminderStore,
        dispatcher: NotificationDispatcher,
        config: Optional[SchedulerConfig] = None,
        clock: Callable[[], dt.datetime] = utc_now,
        scheduler: Optional[BaseScheduler] = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._config = config or SchedulerConfig()
        self._clock = clock
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._notified = NotifiedCache(self._config.retention)
        self._lock = threading.RLock()
        self._tracer = trace.get_tracer("nanatech.reminders")
        self._state = SchedulerState.STOPPED
        self._generation = 0
        self._user_id: Optional[str] = None
        self._visible = True
        self._last_scan_at: Optional[dt.datetime] = None
        self._last_result: Optional[ScanResult] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def notified(self) -> NotifiedCache:
        return self._notified

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    def set_session(self, user_id: Optional[str]) -> None:
        with self._lock:
            if user_id != self._user_id and self.is_active:
                self.stop(reason="session_changed")
            self._user_id = user_id
        self.refresh()

    def set_visibility(self, visible: bool) -> None:
        with self._lock:
            self._visible = visible
        self.refresh()

    def refresh(self) -> None:
        """Start or stop to match the current session, visibility and permission."""
        if self._should_run():
            self.start()
        elif self.is_active:
            self.stop(reason=self._stop_reason())

    def _should_run(self) -> bool:
        return (
            self._user_id is not None
            and self._visible
            and self._dispatcher.permission() is not AlertPermission.DENIED
        )

    def _stop_reason(self) -> str:
        if self._user_id is None:
            return "session_ended"
        if not self._visible:
            return "hidden"
        return "permission_denied"

    def start(self) -> bool:
        with self._lock:
            if self.is_active or self._user_id is None:
                return False
            self._state = SchedulerState.RUNNING
            self._generation += 1
            generation = self._generation
            user_id = self._user_id
        logger.info(
            "reminder_scheduler_started user_id=%s interval_ms=%s",
            user_id,
            self._config.check_interval_ms,
        )

        self._run_scan(user_id, generation)

        with self._lock:
            if self._generation != generation:
                return False
            self._scheduler.add_job(
                self._tick,
                "interval",
                seconds=self._config.check_interval.total_seconds(),
                id=SCAN_JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            if self._owns_scheduler and not self._scheduler.running:
                self._scheduler.start()
        return True

    def stop(self, reason: str = "paused") -> None:
        with self._lock:
            was_running = self.is_active
            self._state = SchedulerState.STOPPED
            self._generation += 1
            try:
                self._scheduler.remove_job(SCAN_JOB_ID)
            except JobLookupError:
                pass
            self._notified.clear()
        if was_running:
            logger.info("reminder_scheduler_stopped reason=%s", reason)

    def shutdown(self) -> None:
        self.stop(reason="shutdown")
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._dispatcher.shutdown()

    def check_reminders(self) -> ScanResult:
        """Run one scan now, whether or not the interval job is armed."""
        with self._lock:
            user_id = self._user_id
            generation = self._generation
        if user_id is None:
            return ScanResult()
        return self._run_scan(user_id, generation)

    def _tick(self) -> None:
        with self._lock:
            if not self.is_active or self._user_id is None:
                return
            user_id = self._user_id
            generation = self._generation
        self._run_scan(user_id, generation)

    def _run_scan(self, user_id: str, generation: int) -> ScanResult:
        now = self._clock()
        with self._tracer.start_as_current_span(
            "reminders.scan", attributes={"reminders.user_id": user_id}
        ) as span:
            result = self._scan(user_id, generation, now)
            span.set_attribute("reminders.due", result.due)
            span.set_attribute("reminders.notified", result.notified)
            span.set_attribute("reminders.failed", result.failed)
        self._last_scan_at = now
        self._last_result = result
        return result

    def _scan(self, user_id: str, generation: int, now: dt.datetime) -> ScanResult:
        result = ScanResult()
        self._notified.prune(now)
        try:
            due = due_reminders(self._store, user_id, now, self._config.advance_notice)
        except Exception:
            logger.exception("reminder_query_failed user_id=%s", user_id)
            result.query_failed = True
            return result

        result.due = len(due)
        for reminder in due:
            with self._lock:
                if self._generation != generation:
                    logger.info("reminder_scan_cancelled user_id=%s", user_id)
                    break
                claimed = self._notified.mark(reminder.id, now)
            if not claimed:
                result.skipped += 1
                continue

            self._dispatcher.notify(reminder)
            result.notified += 1

            try:
                outcome = advance(reminder, now)
                apply_advance(self._store, reminder, outcome)
            except Exception:
                # The reminder stays due; the notified cache holds back
                # repeats until its retention window lapses.
                logger.exception("reminder_advance_failed id=%s", reminder.id)
                result.failed += 1
                continue
            if isinstance(outcome, Advanced):
                result.advanced += 1
            else:
                result.completed += 1
        return result

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "active": self.is_active,
            "user_id": self._user_id,
            "visible": self._visible,
            "permission": self._dispatcher.permission().value,
            "check_interval_ms": self._config.check_interval_ms,
            "advance_notice_minutes": self._config.advance_notice_minutes,
            "notified_count": len(self._notified),
            "last_scan_at": self._last_scan_at,
            "last_result": self._last_result,
        }


_SCHEDULER: Optional[ReminderScheduler] = None


def get_scheduler() -> Optional[ReminderScheduler]:
    return _SCHEDULER


def set_scheduler(scheduler: Optional[ReminderScheduler]) -> None:
    global _SCHEDULER
    _SCHEDULER = scheduler
