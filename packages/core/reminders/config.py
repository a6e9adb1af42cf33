from __future__ import annotations

import datetime as dt
import math
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_CHECK_INTERVAL_MS = 30000
DEFAULT_ADVANCE_NOTICE_MINUTES = 5
# The voice-entry flow warns two minutes ahead instead of five.
VOICE_ADVANCE_NOTICE_MINUTES = 2
DEFAULT_RETENTION_HOURS = 24
_REPO_ROOT = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)
DEFAULT_DB_PATH = os.path.join(_REPO_ROOT, "apps", "api", "data", "reminders.db")


@dataclass(frozen=True)
class SchedulerConfig:
    check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS
    advance_notice_minutes: float = DEFAULT_ADVANCE_NOTICE_MINUTES
    retention_hours: float = DEFAULT_RETENTION_HOURS

    def __post_init__(self) -> None:
        for name in ("check_interval_ms", "advance_notice_minutes", "retention_hours"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")
        if self.check_interval_ms <= 0:
            raise ValueError("check_interval_ms must be positive")
        if self.advance_notice_minutes < 0:
            raise ValueError("advance_notice_minutes must not be negative")
        if self.retention_hours <= 0:
            raise ValueError("retention_hours must be positive")

    @property
    def check_interval(self) -> dt.timedelta:
        return dt.timedelta(milliseconds=self.check_interval_ms)

    @property
    def advance_notice(self) -> dt.timedelta:
        return dt.timedelta(minutes=self.advance_notice_minutes)

    @property
    def retention(self) -> dt.timedelta:
        return dt.timedelta(hours=self.retention_hours)


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {raw!r}")
    return value


def load_scheduler_config(
    default_advance_notice_minutes: float = DEFAULT_ADVANCE_NOTICE_MINUTES,
) -> SchedulerConfig:
    return SchedulerConfig(
        check_interval_ms=int(
            _env_number("REMINDERS_CHECK_INTERVAL_MS", DEFAULT_CHECK_INTERVAL_MS)
        ),
        advance_notice_minutes=_env_number(
            "REMINDERS_ADVANCE_NOTICE_MINUTES", default_advance_notice_minutes
        ),
        retention_hours=_env_number("REMINDERS_RETENTION_HOURS", DEFAULT_RETENTION_HOURS),
    )


def scheduler_enabled() -> bool:
    return os.getenv("REMINDERS_SCHEDULER_ENABLED", "true").lower() == "true"


def store_backend() -> str:
    return os.getenv("REMINDERS_STORE", "sqlite").lower()


def db_path(path: Optional[str] = None) -> str:
    return path or os.getenv("REMINDERS_DB_PATH", DEFAULT_DB_PATH)
