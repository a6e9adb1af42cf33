from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException

from apps.api.reminders_scheduler import ReminderScheduler, get_scheduler
from apps.api.schemas.scheduler import (
    AlertResponse,
    PermissionRequest,
    ScanResultResponse,
    SchedulerStatusResponse,
    SessionRequest,
    VisibilityRequest,
)
from packages.core.reminders.dispatcher import InboxAlertSurface
from packages.core.reminders.models import ScanResult


router = APIRouter(prefix="/scheduler", tags=["scheduler"])


def _scheduler() -> Optional[ReminderScheduler]:
    return get_scheduler()


def _require_scheduler() -> ReminderScheduler:
    scheduler = _scheduler()
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Reminder scheduler is disabled")
    return scheduler


def _inbox(scheduler: ReminderScheduler) -> InboxAlertSurface:
    surface = scheduler.dispatcher.surface
    if not isinstance(surface, InboxAlertSurface):
        raise HTTPException(status_code=404, detail="Alert inbox is not available")
    return surface


def _scan_response(result: ScanResult) -> ScanResultResponse:
    return ScanResultResponse(**result.__dict__)


def _status_response(scheduler: ReminderScheduler) -> SchedulerStatusResponse:
    status = scheduler.get_status()
    last_result = status.pop("last_result")
    return SchedulerStatusResponse(
        **status,
        last_result=_scan_response(last_result) if last_result else None,
    )


@router.get("/status", response_model=SchedulerStatusResponse)
def status() -> SchedulerStatusResponse:
    return _status_response(_require_scheduler())


@router.post("/session", response_model=SchedulerStatusResponse)
def session(payload: SessionRequest) -> SchedulerStatusResponse:
    scheduler = _require_scheduler()
    scheduler.set_session(payload.user_id or None)
    return _status_response(scheduler)


@router.post("/visibility", response_model=SchedulerStatusResponse)
def visibility(payload: VisibilityRequest) -> SchedulerStatusResponse:
    scheduler = _require_scheduler()
    scheduler.set_visibility(payload.visible)
    return _status_response(scheduler)


@router.post("/permission", response_model=SchedulerStatusResponse)
def permission(payload: PermissionRequest) -> SchedulerStatusResponse:
    scheduler = _require_scheduler()
    _inbox(scheduler).set_permission(payload.permission)
    scheduler.refresh()
    return _status_response(scheduler)


@router.post("/check", response_model=ScanResultResponse)
def check() -> ScanResultResponse:
    scheduler = _require_scheduler()
    if scheduler.user_id is None:
        raise HTTPException(status_code=400, detail="No active session")
    return _scan_response(scheduler.check_reminders())


@router.get("/alerts", response_model=List[AlertResponse])
def alerts() -> List[AlertResponse]:
    inbox = _inbox(_require_scheduler())
    return [AlertResponse(**alert.__dict__) for alert in inbox.pending()]


@router.post("/alerts/{tag}/ack")
def acknowledge(tag: str) -> Dict[str, Any]:
    inbox = _inbox(_require_scheduler())
    if not inbox.acknowledge(tag):
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"status": "acknowledged", "tag": tag}
