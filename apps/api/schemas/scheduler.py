from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel

from packages.core.reminders.dispatcher import AlertPermission


class SessionRequest(BaseModel):
    user_id: Optional[str] = None


class VisibilityRequest(BaseModel):
    visible: bool


class PermissionRequest(BaseModel):
    permission: AlertPermission


class ScanResultResponse(BaseModel):
    due: int
    notified: int
    skipped: int
    advanced: int
    completed: int
    failed: int
    query_failed: bool


class SchedulerStatusResponse(BaseModel):
    state: str
    active: bool
    user_id: Optional[str]
    visible: bool
    permission: AlertPermission
    check_interval_ms: int
    advance_notice_minutes: float
    notified_count: int
    last_scan_at: Optional[dt.datetime]
    last_result: Optional[ScanResultResponse]


class AlertResponse(BaseModel):
    tag: str
    title: str
    body: str
    reminder_id: str
    created_at: dt.datetime
    require_interaction: bool
    auto_close_seconds: Optional[int]
