from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from apps.api.schemas.reminders import ReminderCreateRequest, ReminderResponse
from packages.core.reminders.service import (
    complete_reminder,
    create_reminder,
    list_reminders,
)
from packages.core.storage.base import ReminderStore, ReminderStoreError
from packages.core.storage.factory import open_store


router = APIRouter(prefix="/reminders", tags=["reminders"])


def _store() -> ReminderStore:
    return open_store()


def _to_response(reminder) -> ReminderResponse:
    return ReminderResponse(
        id=reminder.id,
        user_id=reminder.user_id,
        title=reminder.title,
        description=reminder.description,
        reminder_type=reminder.reminder_type,
        occurrence_time=reminder.occurrence_time,
        is_completed=reminder.is_completed,
        is_recurring=reminder.is_recurring,
        recurrence_pattern=reminder.recurrence_pattern.value,
        recurrence_end=reminder.recurrence_end,
        created_at=reminder.created_at,
    )


@router.post("", response_model=ReminderResponse)
def create(payload: ReminderCreateRequest) -> ReminderResponse:
    try:
        reminder = create_reminder(
            _store(),
            user_id=payload.user_id,
            title=payload.title,
            occurrence_time=payload.occurrence_time,
            is_recurring=payload.is_recurring,
            recurrence_pattern=payload.recurrence_pattern,
            recurrence_end=payload.recurrence_end,
            description=payload.description,
            reminder_type=payload.reminder_type,
        )
    except ReminderStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_response(reminder)


@router.get("", response_model=List[ReminderResponse])
def list_all(user_id: str, include_completed: bool = True) -> List[ReminderResponse]:
    try:
        reminders = list_reminders(_store(), user_id, include_completed=include_completed)
    except ReminderStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [_to_response(reminder) for reminder in reminders]


@router.get("/{reminder_id}", response_model=ReminderResponse)
def get(reminder_id: str, user_id: str) -> ReminderResponse:
    try:
        reminder = _store().get_reminder(reminder_id, user_id)
    except ReminderStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if reminder is None:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return _to_response(reminder)


@router.post("/{reminder_id}/complete", response_model=ReminderResponse)
def complete(reminder_id: str, user_id: str) -> ReminderResponse:
    store = _store()
    try:
        reminder = store.get_reminder(reminder_id, user_id)
        if reminder is None:
            raise HTTPException(status_code=404, detail="Reminder not found")
        updated = complete_reminder(store, reminder)
    except ReminderStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_response(updated)


@router.delete("/{reminder_id}")
def delete(reminder_id: str, user_id: str) -> Dict[str, Any]:
    try:
        deleted = _store().delete_reminder(reminder_id, user_id)
    except ReminderStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return {"status": "deleted", "id": reminder_id}
