"""Tests for the BubbleLife REST service."""
import calendar
import math
from datetime import datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from bubble_server import codec
from bubble_server.config import BubbleConfig
from bubble_server.models import Event
from bubble_server.preferences import MemoryPreferenceStore
from bubble_server.store import BubbleStore
from services.bubble_service.app import create_app


@pytest.fixture
def prefs() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture
def client(prefs, tmp_path):
    store = BubbleStore(prefs, debounce_seconds=0)
    config = BubbleConfig(data_path=tmp_path / "unused.db", first_weekday=calendar.SUNDAY)
    with TestClient(create_app(store=store, config=config)) as client:
        yield client


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_and_list_notes(client) -> None:
    first = client.post("/notes", json={"title": "Alpha", "content": "a"}).json()
    client.post("/notes", json={"title": "Beta"})

    response = client.post(f"/notes/{first['id']}/favorite")
    assert response.json() == {"id": first["id"], "value": True}

    favorites = client.get("/notes", params={"sort": "favorites"}).json()
    assert favorites[0]["title"] == "Alpha"
    assert favorites[0]["is_favorite"] is True

    found = client.get("/notes", params={"search": "bet"}).json()
    assert [n["title"] for n in found] == ["Beta"]


def test_blank_title_is_rejected(client) -> None:
    assert client.post("/notes", json={"title": "   "}).status_code == 422
    assert client.get("/notes").json() == []


def test_unknown_ids_give_404(client) -> None:
    missing = uuid4()
    assert client.post(f"/notes/{missing}/favorite").status_code == 404
    assert client.post(f"/reminders/{missing}/complete").status_code == 404
    assert client.post(f"/reminders/{missing}/snooze").status_code == 404
    assert client.delete(f"/reminders/{missing}").status_code == 404


def test_reminder_lifecycle(client) -> None:
    created = client.post(
        "/reminders", json={"title": "Stretch", "time": "2025-03-01T09:00:00", "is_repeating": True}
    )
    assert created.status_code == 201
    rid = created.json()["id"]

    snoozed = client.post(f"/reminders/{rid}/snooze").json()
    assert snoozed["time"] == "2025-03-01T09:30:00"
    snoozed = client.post(f"/reminders/{rid}/snooze", json={"minutes": 15}).json()
    assert snoozed["time"] == "2025-03-01T09:45:00"
    assert client.post(f"/reminders/{rid}/snooze", json={"minutes": 0}).status_code == 422
    too_far = client.post(f"/reminders/{rid}/snooze", json={"minutes": 10**12})
    assert too_far.status_code == 422
    assert "out of range" in too_far.json()["detail"]

    assert client.post(f"/reminders/{rid}/complete").json()["value"] is True

    groups = client.get("/reminders").json()
    assert groups == [
        {
            "day": "2025-03-01",
            "reminders": [
                {
                    "id": rid,
                    "title": "Stretch",
                    "time": "2025-03-01T09:45:00",
                    "is_repeating": True,
                    "is_completed": True,
                    "is_due": False,
                }
            ],
        }
    ]

    assert client.delete(f"/reminders/{rid}").status_code == 204
    assert client.get("/reminders").json() == []


def test_events_filter_by_day(client) -> None:
    client.post("/events", json={"title": "Concert", "date": "2025-05-06T20:00:00"})
    client.post("/events", json={"title": "Brunch", "date": "2025-05-07T11:00:00"})

    assert len(client.get("/events").json()) == 2
    on_day = client.get("/events", params={"on": "2025-05-06"}).json()
    assert [e["title"] for e in on_day] == ["Concert"]


def test_settings_patch_merges(client) -> None:
    assert client.get("/settings").json() == {"animations_enabled": True, "notifications_enabled": True}
    patched = client.patch("/settings", json={"notifications_enabled": False}).json()
    assert patched == {"animations_enabled": True, "notifications_enabled": False}
    assert client.patch("/settings", json={"dark_mode": True}).status_code == 422


def test_today_view(client) -> None:
    now = datetime.now()
    client.post("/notes", json={"title": "Any day note"})
    client.post("/events", json={"title": "Today event", "date": now.replace(hour=23, minute=59).isoformat()})

    body = client.get("/views/today").json()
    assert body["summary"]["event_count"] == 1
    assert body["summary"]["daily_goal"] == 5
    assert {item["type"] for item in body["items"]} == {"note", "event"}


def test_calendar_view(client) -> None:
    client.post("/events", json={"title": "Launch", "date": "2023-03-15T10:00:00"})
    body = client.get("/views/calendar", params={"reference": "2023-03-15"}).json()

    assert body["weekdays"][0] == calendar.day_abbr[calendar.SUNDAY]
    assert body["weeks"][0][:4] == ["2023-02-26", "2023-02-27", "2023-02-28", "2023-03-01"]
    assert [e["title"] for e in body["events"]] == ["Launch"]


def test_stats_view(client) -> None:
    client.post("/notes", json={"title": "n"})
    client.post("/reminders", json={"title": "r", "time": "2025-01-01T08:00:00"})
    client.post("/events", json={"title": "e1", "date": "2025-01-02T08:00:00"})
    client.post("/events", json={"title": "e2", "date": "2025-01-03T08:00:00"})

    body = client.get("/views/stats").json()
    assert [(s["label"], s["end_angle"] - s["start_angle"]) for s in body["segments"]] == [
        ("Notes", 90.0),
        ("Reminders", 90.0),
        ("Events", 180.0),
    ]
    # Notes span 0-90 degrees, so their label sits on the 45 degree diagonal
    x, y = body["segments"][0]["label_position"]
    assert x == pytest.approx(y)
    assert x == pytest.approx(1.2 * math.cos(math.radians(45)))
    assert body["total_completed"] == 0


def test_flush_writes_to_preferences(client, prefs) -> None:
    client.post("/events", json={"title": "Trip", "date": "2025-08-01T00:00:00"})
    assert client.post("/persistence/flush").status_code == 204

    [event] = codec.decode("events", prefs.get("events"))
    assert isinstance(event, Event)
    assert event.title == "Trip"
    assert client.get("/persistence/errors").json() == []


def test_shutdown_flushes_store(prefs, tmp_path) -> None:
    store = BubbleStore(prefs, debounce_seconds=60)
    app = create_app(store=store, config=BubbleConfig(data_path=tmp_path / "unused.db"))
    with TestClient(app) as client:
        client.post("/notes", json={"title": "kept"})
        assert prefs.get("notes") is None

    assert [n.title for n in codec.decode("notes", prefs.get("notes"))] == ["kept"]
