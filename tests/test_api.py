"""Tests for the HTTP API."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from clinic_scheduler.config import settings

APPOINTMENTS = "/api/v1/appointments"


def _payload(patient, dentist, start: str = "10:00", end: str = "10:30", duration: int = 30):
    return {
        "patient_id": str(patient.id),
        "dentist_id": str(dentist.id),
        "appointment_date": "2024-01-15",
        "start_time": start,
        "end_time": end,
        "duration_minutes": duration,
        "appointment_type": "consultation",
        "reason_for_visit": "Toothache",
    }


async def _book(client: AsyncClient, auth_headers, patient, dentist, **kwargs) -> dict:
    response = await client.post(
        f"{APPOINTMENTS}/", json=_payload(patient, dentist, **kwargs), headers=auth_headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health_and_ping(client: AsyncClient) -> None:
    """Test the unauthenticated health endpoints."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = await client.get("/api/v1/ping")
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_create_appointment(client, auth_headers, patient, dentist, clinic_id) -> None:
    """Test booking returns the stored appointment."""
    data = await _book(client, auth_headers, patient, dentist)

    assert data["status"] == "scheduled"
    assert data["clinic_id"] == str(clinic_id)
    assert data["start_time"] == "10:00:00"
    assert data["duration_minutes"] == 30


@pytest.mark.asyncio
async def test_create_conflict_returns_409(client, auth_headers, patient, dentist) -> None:
    """Test an overlapping booking reports the conflicting window."""
    existing = await _book(client, auth_headers, patient, dentist)

    response = await client.post(
        f"{APPOINTMENTS}/",
        json=_payload(patient, dentist, "10:15", "10:45"),
        headers=auth_headers,
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "ConflictException"
    assert body["conflict"]["appointment_id"] == existing["id"]
    assert body["conflict"]["start_time"] == "10:00"
    assert body["conflict"]["end_time"] == "10:30"


@pytest.mark.asyncio
async def test_create_invalid_window_returns_422(client, auth_headers, patient, dentist) -> None:
    response = await client.post(
        f"{APPOINTMENTS}/",
        json=_payload(patient, dentist, "10:00", "10:30", duration=45),
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_list_and_get(client, auth_headers, patient, dentist) -> None:
    """Test listing with pagination and fetching by ID."""
    first = await _book(client, auth_headers, patient, dentist)
    await _book(client, auth_headers, patient, dentist, start="11:00", end="11:30")

    response = await client.get(f"{APPOINTMENTS}/", params={"limit": 1}, headers=auth_headers)

    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 2
    assert page["total_pages"] == 2
    assert [item["id"] for item in page["items"]] == [first["id"]]

    response = await client.get(f"{APPOINTMENTS}/{first['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["reason_for_visit"] == "Toothache"


@pytest.mark.asyncio
async def test_get_missing_returns_404(client, auth_headers) -> None:
    response = await client.get(f"{APPOINTMENTS}/{uuid4()}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_stats(client, auth_headers, patient, dentist) -> None:
    await _book(client, auth_headers, patient, dentist)

    response = await client.get(f"{APPOINTMENTS}/stats", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()
    assert stats["total_appointments"] == 1
    assert stats["by_status"] == {"scheduled": 1}
    assert stats["upcoming_appointments"] == 1


@pytest.mark.asyncio
async def test_check_conflicts(client, auth_headers, patient, dentist) -> None:
    """Test the pre-check reports overlaps without booking."""
    existing = await _book(client, auth_headers, patient, dentist)
    params = {
        "appointment_date": "2024-01-15",
        "start_time": "10:20",
        "end_time": "10:50",
        "dentist_id": str(dentist.id),
        "patient_id": str(patient.id),
    }

    response = await client.get(
        f"{APPOINTMENTS}/check-conflicts", params=params, headers=auth_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["has_conflicts"] is True
    assert {c["conflict_type"] for c in body["conflicts"]} == {"dentist_busy", "patient_busy"}

    params["exclude_appointment_id"] = existing["id"]
    response = await client.get(
        f"{APPOINTMENTS}/check-conflicts", params=params, headers=auth_headers
    )
    assert response.json() == {"has_conflicts": False, "conflicts": []}


@pytest.mark.asyncio
async def test_reschedule(client, auth_headers, patient, dentist) -> None:
    """Test moving an appointment to a free window."""
    created = await _book(client, auth_headers, patient, dentist)

    response = await client.put(
        f"{APPOINTMENTS}/{created['id']}",
        json={"start_time": "14:00", "end_time": "14:45", "notes": "moved"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["start_time"] == "14:00:00"
    assert data["duration_minutes"] == 45
    assert data["notes"] == "moved"


@pytest.mark.asyncio
async def test_status_progression(client, auth_headers, patient, dentist) -> None:
    """Test a valid transition, then an invalid one."""
    created = await _book(client, auth_headers, patient, dentist)
    url = f"{APPOINTMENTS}/{created['id']}/status"

    response = await client.patch(url, json={"status": "confirmed"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    response = await client.patch(url, json={"status": "scheduled"}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cancel_requires_reason(client, auth_headers, patient, dentist) -> None:
    created = await _book(client, auth_headers, patient, dentist)

    response = await client.patch(
        f"{APPOINTMENTS}/{created['id']}/status",
        json={"status": "cancelled"},
        headers=auth_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_cancels_and_frees_window(client, auth_headers, patient, dentist) -> None:
    """Test deletion keeps the record as cancelled and frees its window."""
    created = await _book(client, auth_headers, patient, dentist)

    response = await client.delete(f"{APPOINTMENTS}/{created['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"{APPOINTMENTS}/{created['id']}", headers=auth_headers)
    assert response.json()["status"] == "cancelled"

    await _book(client, auth_headers, patient, dentist)


@pytest.mark.asyncio
async def test_list_reminders(client, auth_headers, patient, dentist) -> None:
    """Test booking schedules reminders listed earliest first."""
    created = await _book(client, auth_headers, patient, dentist)

    response = await client.get(
        f"{APPOINTMENTS}/{created['id']}/reminders", headers=auth_headers
    )

    assert response.status_code == 200
    reminders = response.json()
    assert [r["type"] for r in reminders] == [
        "appointment_confirmation",
        "appointment_reminder",
    ]
    assert all(r["status"] == "scheduled" for r in reminders)


@pytest.mark.asyncio
async def test_requires_bearer_token(client) -> None:
    """Test requests without credentials are rejected."""
    response = await client.get(f"{APPOINTMENTS}/")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_rejects_invalid_token(client) -> None:
    response = await client.get(
        f"{APPOINTMENTS}/", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_process_reminders(client, auth_headers, patient, dentist, clock) -> None:
    """Test the admin trigger runs a sweep and reports its counters."""
    await _book(client, auth_headers, patient, dentist)
    clock.advance(days=5)

    response = await client.post(
        "/api/v1/reminders/process", headers={"X-Admin-Secret": settings.admin_secret}
    )

    assert response.status_code == 200
    assert response.json() == {"due": 2, "sent": 2, "failed": 0, "skipped": 0}


@pytest.mark.asyncio
async def test_process_reminders_wrong_secret(client) -> None:
    response = await client.post(
        "/api/v1/reminders/process", headers={"X-Admin-Secret": "wrong"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_process_reminders_while_sweep_running(
    client, auth_headers, patient, dentist, clock, redis_client, email_adapter
) -> None:
    """Test the admin trigger is refused while the background sweep holds the lock."""
    await _book(client, auth_headers, patient, dentist)
    clock.advance(days=5)
    redis_client.lock.return_value.acquire.return_value = False

    response = await client.post(
        "/api/v1/reminders/process", headers={"X-Admin-Secret": settings.admin_secret}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "SweepInProgressException"
    assert email_adapter.sent == []


@pytest.mark.asyncio
async def test_update_clears_notes(client, auth_headers, patient, dentist) -> None:
    """Test an explicit null removes the notes."""
    created = await _book(client, auth_headers, patient, dentist)
    url = f"{APPOINTMENTS}/{created['id']}"
    await client.put(url, json={"notes": "bring x-rays"}, headers=auth_headers)

    response = await client.put(url, json={"notes": None}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["notes"] is None
    assert response.json()["reason_for_visit"] == "Toothache"
