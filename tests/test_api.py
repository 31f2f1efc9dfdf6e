"""End-to-end tests for the HTTP adapter and the client."""

from __future__ import annotations

import pytest

from lawcal.client import ApiError, CalendarClient
from lawcal.services.messages import friendly_error_message

BA = "America/Argentina/Buenos_Aires"


def _booking(**overrides) -> dict:
    body = {
        "subject": "Consulta",
        "mode": "VIDEO_CALL",
        "startsAtLocal": "2024-03-10T01:30",
        "durationMinutes": 30,
        "scheduledTimeZone": BA,
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_db_probe_counts_time_zones(client):
    assert client.get("/db").json() == {"ok": True, "timeZones": 0}
    client.post("/api/bootstrap")
    assert client.get("/db").json()["timeZones"] == 1


def test_bootstrap_is_idempotent(client):
    first = client.post("/api/bootstrap").json()
    second = client.post("/api/bootstrap").json()

    assert first["ok"] is True
    assert set(first["ids"]) == {"timeZoneId", "countryId", "officeId", "lawyerId", "calendarId"}
    assert first == second


def test_list_lawyers_includes_demo(client):
    items = client.get("/api/lawyers").json()["items"]
    assert len(items) == 1
    assert items[0]["email"] == "demo.lawyer@challenge.local"
    assert items[0]["fullName"] == "Demo Lawyer"
    assert items[0]["personalCalendar"]["name"] == "Demo Lawyer (personal)"


def test_register_lawyer(client):
    resp = client.post("/api/lawyers", json={"email": " Ana@Firm.test ", "fullName": " Ana Pérez "})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["lawyer"]["email"] == "ana@firm.test"
    assert body["lawyer"]["fullName"] == "Ana Pérez"
    assert body["calendar"]["name"] == "Ana Pérez (personal)"

    names = [i["fullName"] for i in client.get("/api/lawyers").json()["items"]]
    assert names == ["Ana Pérez", "Demo Lawyer"]


def test_register_duplicate_lawyer_conflicts(client):
    client.post("/api/lawyers", json={"email": "ana@firm.test", "fullName": "Ana Pérez"})
    resp = client.post("/api/lawyers", json={"email": "ANA@firm.test", "fullName": "Otra Ana"})

    assert resp.status_code == 409
    assert resp.json() == {
        "ok": False,
        "error": "lawyer already registered with that email",
        "kind": "duplicate_lawyer",
    }


@pytest.mark.parametrize(
    "body, field",
    [
        ({"email": "", "fullName": "Ana"}, "email"),
        ({"email": "ana@firm.test", "fullName": "  "}, "fullName"),
        ({"email": None, "fullName": "Ana"}, "email"),
        ({"email": "ana@firm.test", "fullName": None}, "fullName"),
        ({"email": 42, "fullName": "Ana"}, "email"),
    ],
)
def test_register_requires_fields(client, body, field):
    resp = client.post("/api/lawyers", json=body)
    assert resp.status_code == 400
    assert resp.json()["field"] == field


def test_create_appointment(client):
    resp = client.post("/api/appointments", json=_booking())
    assert resp.status_code == 200
    appointment = resp.json()["appointment"]
    assert appointment["subject"] == "Consulta"
    assert appointment["mode"] == "VIDEO_CALL"
    assert appointment["startsAtUtc"] == "2024-03-10T04:30:00.000Z"
    assert appointment["endsAtUtc"] == "2024-03-10T05:00:00.000Z"
    assert appointment["scheduledTimeZone"] == BA
    assert appointment["scheduledOffsetMinutes"] == -180


def test_create_appointment_defaults(client):
    resp = client.post("/api/appointments", json={"subject": "Llamada", "startsAtLocal": "2024-05-02T10:00"})
    appointment = resp.json()["appointment"]
    assert appointment["mode"] == "VIDEO_CALL"
    assert appointment["scheduledTimeZone"] == "UTC"
    assert appointment["endsAtUtc"] == "2024-05-02T10:30:00.000Z"


def test_overlap_conflict_and_abutting_slot(client):
    first = client.post("/api/appointments", json=_booking()).json()["appointment"]

    clash = client.post("/api/appointments", json=_booking(startsAtLocal="2024-03-10T01:45"))
    assert clash.status_code == 409
    body = clash.json()
    assert body["kind"] == "scheduling_conflict"
    assert body["conflict"] == {
        "id": first["id"],
        "startsAtUtc": "2024-03-10T04:30:00.000Z",
        "endsAtUtc": "2024-03-10T05:00:00.000Z",
    }

    abut = client.post("/api/appointments", json=_booking(startsAtLocal="2024-03-10T02:00"))
    assert abut.status_code == 200


def test_create_appointment_validation(client):
    resp = client.post("/api/appointments", json=_booking(durationMinutes=25))
    assert resp.status_code == 400
    assert resp.json()["field"] == "durationMinutes"
    assert resp.json()["error"] == "durationMinutes must be one of: 15, 30, 45, 60, 90, 120"


def test_create_appointment_invalid_time(client):
    resp = client.post(
        "/api/appointments",
        json=_booking(startsAtLocal="2024-11-03T01:30", scheduledTimeZone="America/New_York"),
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "invalid_time_input"
    assert resp.json()["reason"] == "ambiguous_local_time"


def test_invalid_mode_is_a_validation_error(client):
    resp = client.post("/api/appointments", json=_booking(mode="CARRIER_PIGEON"))
    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "validation_error"
    assert body["field"] == "mode"
    assert body["error"] == "mode must be one of: IN_PERSON, VIDEO_CALL, PHONE_CALL"


def test_null_subject_is_reported_as_missing(client):
    resp = client.post(
        "/api/appointments", json={"subject": None, "startsAtLocal": "2024-03-10T01:30"}
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "ok": False,
        "error": "subject is required",
        "kind": "validation_error",
        "field": "subject",
    }


def test_null_optional_fields_take_their_defaults(client):
    resp = client.post(
        "/api/appointments",
        json=_booking(mode=None, durationMinutes=None, scheduledTimeZone=None, lawyerEmail=None),
    )
    assert resp.status_code == 200
    appointment = resp.json()["appointment"]
    assert appointment["mode"] == "VIDEO_CALL"
    assert appointment["scheduledTimeZone"] == "UTC"
    assert appointment["endsAtUtc"] == "2024-03-10T02:00:00.000Z"


@pytest.mark.parametrize("duration", ["half an hour", 30.5, [30]])
def test_non_integer_duration_is_a_validation_error(client, duration):
    resp = client.post("/api/appointments", json=_booking(durationMinutes=duration))
    assert resp.status_code == 400
    assert resp.json()["field"] == "durationMinutes"
    assert friendly_error_message(ApiError(400, resp.json())) == (
        "La duración debe ser de 15, 30, 45, 60, 90 o 120 minutos."
    )


def test_out_of_range_start_is_invalid_time_input(client):
    resp = client.post(
        "/api/appointments",
        json=_booking(startsAtLocal="9999-12-31T23:00", scheduledTimeZone="America/New_York"),
    )
    assert resp.status_code == 400
    assert resp.json()["reason"] == "out_of_range_local_time"


def test_list_appointments_for_lawyer(client):
    client.post("/api/appointments", json=_booking())
    client.post("/api/appointments", json=_booking(startsAtLocal="2024-03-11T09:00"))
    client.post("/api/appointments", json=_booking(lawyerEmail="otro@firm.test"))

    items = client.get("/api/appointments").json()["items"]
    assert [i["startsAtUtc"] for i in items] == [
        "2024-03-11T12:00:00.000Z",
        "2024-03-10T04:30:00.000Z",
    ]
    assert set(items[0]) == {
        "id",
        "subject",
        "mode",
        "startsAtUtc",
        "endsAtUtc",
        "scheduledTimeZone",
        "scheduledOffsetMinutes",
    }

    other = client.get("/api/appointments", params={"lawyerEmail": "OTRO@firm.test"}).json()
    assert len(other["items"]) == 1


def test_preview_endpoint(client):
    client.post("/api/appointments", json=_booking())

    busy = client.post("/api/appointments/preview", json=_booking(startsAtLocal="2024-03-10T01:45")).json()
    free = client.post("/api/appointments/preview", json=_booking(startsAtLocal="2024-03-10T02:00")).json()

    assert busy["available"] is False
    assert busy["conflict"]["startsAtUtc"] == "2024-03-10T04:30:00.000Z"
    assert free == {"ok": True, "available": True, "conflict": None}


def test_client_round_trip(client):
    api = CalendarClient(client=client)

    registered = api.register_lawyer("ana@firm.test", "Ana Pérez")
    assert registered["calendar"]["name"] == "Ana Pérez (personal)"

    created = api.create_appointment(
        "Consulta", "2024-03-10T01:30", scheduled_time_zone=BA, lawyer_email="ana@firm.test"
    )
    assert created["startsAtUtc"] == "2024-03-10T04:30:00.000Z"
    assert [a["id"] for a in api.list_appointments("ana@firm.test")] == [created["id"]]
    assert api.preview_appointment("2024-03-10T01:45", scheduled_time_zone=BA, lawyer_email="ana@firm.test")[
        "available"
    ] is False

    with pytest.raises(ApiError) as excinfo:
        api.register_lawyer("ana@firm.test", "Ana Pérez")
    assert excinfo.value.status == 409
    assert friendly_error_message(excinfo.value) == "Ya existe un abogado registrado con ese email."
