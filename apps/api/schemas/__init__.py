from .reminders import ReminderCreateRequest, ReminderResponse
from .scheduler import (
    AlertResponse,
    PermissionRequest,
    ScanResultResponse,
    SchedulerStatusResponse,
    SessionRequest,
    VisibilityRequest,
)

__all__ = [
    "AlertResponse",
    "PermissionRequest",
    "ReminderCreateRequest",
    "ReminderResponse",
    "ScanResultResponse",
    "SchedulerStatusResponse",
    "SessionRequest",
    "VisibilityRequest",
]
