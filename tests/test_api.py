"""HTTP endpoint tests."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from rx_companion.main import app
from rx_companion.schemas.models import DosageInstruction, MedicationPlan
from rx_companion.services import event_store, notifier
from rx_companion.services.planning import expand_plan

START = "2026-03-02T07:00:00+00:00"


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_parse_endpoint(client, sample_text):
    resp = client.post("/rx/parse", json={"text": sample_text})
    assert resp.status_code == 200
    plans = resp.json()["plans"]
    assert [p["name"] for p in plans] == ["Amoxicillin", "Melatonin"]
    assert plans[0]["instructions"][0]["frequency"] == "TID"


def test_parse_empty_text_is_not_an_error(client):
    resp = client.post("/rx/parse", json={"text": ""})
    assert resp.status_code == 200
    assert resp.json()["plans"] == []


def test_expand_endpoint(client, sample_text):
    plan = client.post("/rx/parse", json={"text": sample_text}).json()["plans"][0]
    resp = client.post("/rx/expand", json={"plan": plan, "start": START, "horizon_days": 14})
    assert resp.status_code == 200
    events = resp.json()["events"]
    assert len(events) == 21
    assert events[0]["at"].startswith("2026-03-02T08:00:00")
    assert events[0]["window_mins"] == 30
    assert events[0]["dose"] == "1 tab"


def test_expand_rejects_structurally_invalid_plan(client):
    plan = {"id": "p", "name": "p", "instructions": []}
    resp = client.post("/rx/expand", json={"plan": plan, "start": START})
    assert resp.status_code == 422


def test_expand_rejects_oversized_horizon(client, sample_text):
    plan = client.post("/rx/parse", json={"text": sample_text}).json()["plans"][0]
    resp = client.post("/rx/expand", json={"plan": plan, "start": START, "horizon_days": 10_000})
    assert resp.status_code == 422


def test_review_flow_schedules_events_and_reminders(client, sample_text):
    started = client.post("/review/start", json={"text": sample_text, "start": START, "horizon_days": 7})
    assert started.status_code == 200
    body = started.json()
    assert body["next_step"] == "NEED_REVIEW"
    assert len(body["events"]) == 28  # preview
    assert client.get("/events").json() == []

    approved = client.post("/review/approve", json={"session_id": body["session_id"]})
    assert approved.status_code == 200
    done = approved.json()
    assert done["next_step"] == "DONE"
    assert done["reminders"] == 28
    assert len(client.get("/events").json()) == 28

    again = client.post("/review/approve", json={"session_id": body["session_id"]})
    assert again.status_code == 409

    audit = client.get("/review/audit", params={"session_id": body["session_id"]}).json()
    assert audit["audit"][-1]["event"] == "notify.done"


def test_review_with_nothing_found(client):
    resp = client.post("/review/start", json={"text": "\n\n", "start": START})
    assert resp.status_code == 200
    assert resp.json()["next_step"] == "NOTHING_FOUND"
    assert resp.json()["plans"] == []


def test_approve_unknown_session(client):
    resp = client.post("/review/approve", json={"session_id": "rx_missing"})
    assert resp.status_code == 404


def test_mark_and_delete(client, sample_text):
    body = client.post("/review/start", json={"text": sample_text, "start": START, "horizon_days": 2}).json()
    client.post("/review/approve", json={"session_id": body["session_id"]})

    events = client.get("/events").json()
    first = events[0]

    taken = client.post("/events/mark", json={"event_id": first["id"], "status": "taken"})
    assert taken.status_code == 200
    assert taken.json()["status"] == "taken"
    reminder_events = {r["event_id"] for r in client.get("/events/reminders").json()["reminders"]}
    assert first["id"] not in reminder_events

    snoozed = client.post("/events/mark", json={"event_id": events[1]["id"], "status": "snoozed"})
    assert snoozed.json()["status"] == "snoozed"

    assert client.post("/events/mark", json={"event_id": "nope", "status": "taken"}).status_code == 404

    plan_id = first["med_plan_id"]
    deleted = client.delete(f"/events/plans/{plan_id}")
    assert deleted.status_code == 200
    assert client.get("/events", params={"plan_id": plan_id}).json() == []
    # the snoozed reminder belongs to the plan and goes with it
    assert client.get("/events/reminders", params={"plan_id": plan_id}).json()["reminders"] == []
    assert client.delete(f"/events/plans/{plan_id}").status_code == 404


@pytest.fixture
def prn_event():
    plan = MedicationPlan(
        id="prn", name="Ibuprofen",
        instructions=[DosageInstruction(frequency="PRN", times_of_day=["12:00"])],
    )
    event_store.upsert_plans([plan])
    event_store.set_events_for_plan(plan.id, expand_plan(plan, datetime.fromisoformat(START), 2))
    ev = event_store.list_events(plan_id="prn")[0]
    assert ev.window_mins is None
    return ev


@pytest.mark.parametrize("status", ["snoozed", "scheduled"])
def test_marking_prn_event_never_creates_a_reminder(client, prn_event, status):
    resp = client.post("/events/mark", json={"event_id": prn_event.id, "status": status})
    assert resp.status_code == 200
    assert resp.json()["status"] == status
    assert client.get("/events/reminders").json()["reminders"] == []
    assert notifier.list_reminders("prn") == []


def test_marking_scheduled_event_again_restores_its_reminder(client, sample_text):
    body = client.post("/review/start", json={"text": sample_text, "start": START, "horizon_days": 1}).json()
    client.post("/review/approve", json={"session_id": body["session_id"]})
    first = client.get("/events").json()[0]

    client.post("/events/mark", json={"event_id": first["id"], "status": "missed"})
    resp = client.post("/events/mark", json={"event_id": first["id"], "status": "scheduled"})
    assert resp.status_code == 200

    reminders = [r for r in client.get("/events/reminders").json()["reminders"] if r["event_id"] == first["id"]]
    assert len(reminders) == 1
    assert reminders[0]["body"] == "Dose 1 tab for Amoxicillin"
