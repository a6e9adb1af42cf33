from __future__ import annotations

import datetime as dt
import os
from typing import Any, Dict, List, Optional

import httpx

from ..timeutil import format_timestamp, parse_timestamp
from .base import RecurrencePattern, ReminderState, ReminderStore, ReminderStoreError


class PostgrestReminderStore(ReminderStore):
    """Reminder store backed by a hosted Supabase/PostgREST ``reminders`` table.

    Column names follow the hosted schema: ``reminder_time`` holds the
    occurrence time and ``end_recurrence_date`` the recurrence end. Row-level
    security scopes rows to the token's user; every query filters on
    ``user_id`` as well.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        table: str = "reminders",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        base_url = base_url or os.getenv("SUPABASE_URL", "")
        api_key = api_key or os.getenv("SUPABASE_ANON_KEY", "")
        if not base_url or not api_key:
            raise RuntimeError(
                "Hosted reminder store is not configured. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        access_token = access_token or os.getenv("SUPABASE_ACCESS_TOKEN") or api_key
        self._table = table
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        params: Dict[str, str],
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = self._client.request(
                method, f"/{self._table}", params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ReminderStoreError(
                f"reminder store HTTP {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ReminderStoreError(f"reminder store unreachable: {exc}") from exc
        return response

    def _row_to_reminder(self, row: Dict[str, Any]) -> ReminderState:
        return ReminderState(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("title"),
            description=row.get("description"),
            reminder_type=row.get("type"),
            occurrence_time=parse_timestamp(row.get("reminder_time")),
            is_completed=bool(row.get("is_completed")),
            is_recurring=bool(row.get("is_recurring")),
            recurrence_pattern=RecurrencePattern.parse(row.get("recurrence_pattern")),
            recurrence_end=parse_timestamp(row.get("end_recurrence_date")),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def _to_row(self, reminder: ReminderState) -> Dict[str, Any]:
        row = {
            "id": reminder.id,
            "user_id": reminder.user_id,
            "title": reminder.title,
            "description": reminder.description,
            "type": reminder.reminder_type,
            "reminder_time": format_timestamp(reminder.occurrence_time),
            "is_completed": reminder.is_completed,
            "is_recurring": reminder.is_recurring,
            "recurrence_pattern": reminder.recurrence_pattern.value,
            "end_recurrence_date": format_timestamp(reminder.recurrence_end),
        }
        if reminder.created_at is not None:
            row["created_at"] = format_timestamp(reminder.created_at)
        return row

    def _select(self, params: Dict[str, str]) -> List[ReminderState]:
        response = self._request("GET", {"select": "*", **params})
        return [self._row_to_reminder(row) for row in response.json()]

    def create_reminder(self, reminder: ReminderState) -> None:
        self._request(
            "POST",
            {},
            json=self._to_row(reminder),
            headers={"Prefer": "return=minimal"},
        )

    def get_reminder(self, reminder_id: str, user_id: str) -> Optional[ReminderState]:
        rows = self._select(
            {"id": f"eq.{reminder_id}", "user_id": f"eq.{user_id}", "limit": "1"}
        )
        return rows[0] if rows else None

    def list_reminders(
        self, user_id: str, include_completed: bool = True
    ) -> List[ReminderState]:
        params = {
            "user_id": f"eq.{user_id}",
            "order": "reminder_time.asc.nullslast",
        }
        if not include_completed:
            params["is_completed"] = "eq.false"
        return self._select(params)

    def list_due_reminders(self, user_id: str, until: dt.datetime) -> List[ReminderState]:
        return self._select(
            {
                "user_id": f"eq.{user_id}",
                "is_completed": "eq.false",
                "reminder_time": f"lte.{format_timestamp(until)}",
                "order": "reminder_time.asc",
            }
        )

    def _patch(self, reminder_id: str, user_id: str, fields: Dict[str, Any]) -> None:
        response = self._request(
            "PATCH",
            {"id": f"eq.{reminder_id}", "user_id": f"eq.{user_id}"},
            json=fields,
            headers={"Prefer": "return=representation"},
        )
        if not response.json():
            raise ReminderStoreError(f"Reminder not found: {reminder_id}")

    def update_occurrence_time(
        self, reminder_id: str, user_id: str, occurrence_time: dt.datetime
    ) -> None:
        self._patch(
            reminder_id, user_id, {"reminder_time": format_timestamp(occurrence_time)}
        )

    def mark_completed(self, reminder_id: str, user_id: str) -> None:
        self._patch(reminder_id, user_id, {"is_completed": True})

    def delete_reminder(self, reminder_id: str, user_id: str) -> bool:
        response = self._request(
            "DELETE",
            {"id": f"eq.{reminder_id}", "user_id": f"eq.{user_id}"},
            headers={"Prefer": "return=representation"},
        )
        return bool(response.json())
