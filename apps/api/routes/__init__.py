from .reminders import router as reminders_router
from .scheduler import router as scheduler_router

__all__ = [
    "reminders_router",
    "scheduler_router",
]
