from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from apps.api.observability import init_observability
from apps.api.reminders_scheduler import ReminderScheduler, get_scheduler, set_scheduler
from apps.api.routes.reminders import router as reminders_router
from apps.api.routes.scheduler import router as scheduler_router
from packages.core.logging_config import configure_logging
from packages.core.reminders.config import (
    VOICE_ADVANCE_NOTICE_MINUTES,
    load_scheduler_config,
    scheduler_enabled,
)
from packages.core.reminders.dispatcher import InboxAlertSurface, NotificationDispatcher
from packages.core.storage.factory import open_store


configure_logging()

init_observability()
app = FastAPI(title="Nanatech Reminders API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
FastAPIInstrumentor.instrument_app(app)
app.include_router(reminders_router)
app.include_router(scheduler_router)

logger = logging.getLogger("nanatech.api")


@app.on_event("startup")
def _start_reminder_scheduler() -> None:
    if not scheduler_enabled():
        logger.info("reminder_scheduler_disabled")
        return
    if get_scheduler() is not None:
        return
    config = load_scheduler_config(
        default_advance_notice_minutes=VOICE_ADVANCE_NOTICE_MINUTES
    )
    dispatcher = NotificationDispatcher(InboxAlertSurface())
    # Stays stopped until a client posts an active session.
    set_scheduler(ReminderScheduler(open_store(), dispatcher, config=config))


@app.on_event("shutdown")
def _stop_reminder_scheduler() -> None:
    scheduler = get_scheduler()
    if scheduler is None:
        return
    scheduler.shutdown()
    set_scheduler(None)
