from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class ReminderCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    reminder_type: Optional[str] = None
    occurrence_time: Optional[dt.datetime] = None
    is_recurring: bool = False
    recurrence_pattern: str = "none"
    recurrence_end: Optional[dt.datetime] = None


class ReminderResponse(BaseModel):
    id: str
    user_id: str
    title: Optional[str]
    description: Optional[str]
    reminder_type: Optional[str]
    occurrence_time: Optional[dt.datetime]
    is_completed: bool
    is_recurring: bool
    recurrence_pattern: str
    recurrence_end: Optional[dt.datetime]
    created_at: Optional[dt.datetime]
