import datetime as dt
from concurrent.futures import Executor, Future

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi.testclient import TestClient

from apps.api.main import app
from apps.api.reminders_scheduler import ReminderScheduler
from apps.api.routes import scheduler as scheduler_module
from packages.core.reminders.config import SchedulerConfig
from packages.core.reminders.dispatcher import InboxAlertSurface, NotificationDispatcher
from packages.core.storage.base import ReminderState
from packages.core.storage.sqlite import SQLiteReminderStore


NOW = dt.datetime(2024, 3, 15, 6, 0, tzinfo=dt.timezone.utc)


class InlineExecutor(Executor):
    def submit(self, fn, *args, **kwargs):
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


def _setup(monkeypatch, tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "reminders.db"))
    clock = lambda: NOW
    surface = InboxAlertSurface(clock=clock)
    scheduler = ReminderScheduler(
        store,
        NotificationDispatcher(surface, executor=InlineExecutor(), clock=clock),
        config=SchedulerConfig(advance_notice_minutes=2),
        clock=clock,
        scheduler=BackgroundScheduler(timezone="UTC"),
    )
    monkeypatch.setattr(scheduler_module, "_scheduler", lambda: scheduler)
    return TestClient(app), store, scheduler


def test_status_reports_stopped_scheduler(monkeypatch, tmp_path):
    client, _, _ = _setup(monkeypatch, tmp_path)

    response = client.get("/scheduler/status")

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "stopped"
    assert body["active"] is False
    assert body["permission"] == "granted"
    assert body["advance_notice_minutes"] == 2
    assert body["last_result"] is None


def test_session_starts_scan_and_alerts_can_be_acknowledged(monkeypatch, tmp_path):
    client, store, _ = _setup(monkeypatch, tmp_path)
    store.create_reminder(
        ReminderState(id="r1", user_id="u1", title="Lunch", occurrence_time=NOW)
    )

    response = client.post("/scheduler/session", json={"user_id": "u1"})
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "running"
    assert body["last_result"]["notified"] == 1
    assert body["last_result"]["completed"] == 1

    alerts = client.get("/scheduler/alerts").json()
    assert [alert["tag"] for alert in alerts] == ["reminder-r1"]
    assert alerts[0]["body"] == "Don't forget: Lunch"

    ack = client.post("/scheduler/alerts/reminder-r1/ack")
    assert ack.status_code == 200
    assert client.get("/scheduler/alerts").json() == []
    assert client.post("/scheduler/alerts/reminder-r1/ack").status_code == 404


def test_visibility_and_permission_signals(monkeypatch, tmp_path):
    client, _, scheduler = _setup(monkeypatch, tmp_path)
    client.post("/scheduler/session", json={"user_id": "u1"})

    hidden = client.post("/scheduler/visibility", json={"visible": False})
    assert hidden.json()["state"] == "stopped"

    visible = client.post("/scheduler/visibility", json={"visible": True})
    assert visible.json()["state"] == "running"

    denied = client.post("/scheduler/permission", json={"permission": "denied"})
    assert denied.json()["state"] == "stopped"
    assert denied.json()["permission"] == "denied"

    invalid = client.post("/scheduler/permission", json={"permission": "maybe"})
    assert invalid.status_code == 422

    client.post("/scheduler/session", json={"user_id": None})
    assert scheduler.user_id is None


def test_manual_check(monkeypatch, tmp_path):
    client, store, _ = _setup(monkeypatch, tmp_path)

    assert client.post("/scheduler/check").status_code == 400

    client.post("/scheduler/session", json={"user_id": "u1"})
    store.create_reminder(
        ReminderState(
            id="r2",
            user_id="u1",
            title="Walk",
            occurrence_time=NOW + dt.timedelta(minutes=1),
        )
    )

    response = client.post("/scheduler/check")

    assert response.status_code == 200
    assert response.json()["due"] == 1
    assert response.json()["notified"] == 1


def test_disabled_scheduler_returns_503(monkeypatch):
    monkeypatch.setattr(scheduler_module, "_scheduler", lambda: None)
    client = TestClient(app)

    assert client.get("/scheduler/status").status_code == 503
