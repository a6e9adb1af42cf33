from .dedupe import NotifiedCache
from .dispatcher import (
    Alert,
    AlertPermission,
    AlertSurface,
    InboxAlertSurface,
    NotificationDispatcher,
)
from .models import Advanced, AdvanceOutcome, Completed, ScanResult
from .recurrence import next_occurrence
from .service import (
    advance,
    apply_advance,
    complete_reminder,
    create_reminder,
    due_reminders,
    list_reminders,
)

__all__ = [
    "Advanced",
    "AdvanceOutcome",
    "Alert",
    "AlertPermission",
    "AlertSurface",
    "Completed",
    "InboxAlertSurface",
    "NotificationDispatcher",
    "NotifiedCache",
    "ScanResult",
    "advance",
    "apply_advance",
    "complete_reminder",
    "create_reminder",
    "due_reminders",
    "list_reminders",
    "next_occurrence",
]
