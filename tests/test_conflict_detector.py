"""Tests for overlap detection."""

from datetime import time
from uuid import uuid4

import pytest

from clinic_scheduler.schemas.appointments import AppointmentStatus, ConflictType
from clinic_scheduler.services.conflict_detector import (
    ConflictDetector,
    select_primary_conflict,
    windows_overlap,
)
from tests.fakes import APPOINTMENT_DAY


async def _book(
    store, clinic_id, dentist_id, patient_id, start, end, status=AppointmentStatus.SCHEDULED
):
    start_time = time.fromisoformat(start)
    end_time = time.fromisoformat(end)
    return await store.create(
        {
            "clinic_id": clinic_id,
            "patient_id": patient_id,
            "dentist_id": dentist_id,
            "appointment_date": APPOINTMENT_DAY,
            "start_time": start_time,
            "end_time": end_time,
            "duration_minutes": (end_time.hour - start_time.hour) * 60
            + end_time.minute
            - start_time.minute,
            "appointment_type": "consultation",
            "status": status,
            "created_by": uuid4(),
        }
    )


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ((600, 630), (615, 645), True),
        ((600, 630), (630, 660), False),
        ((630, 660), (600, 630), False),
        ((600, 700), (620, 640), True),
        ((600, 630), (540, 600), False),
    ],
)
def test_windows_overlap(a, b, expected) -> None:
    """Test half-open window overlap."""
    assert windows_overlap(*a, *b) is expected


@pytest.mark.asyncio
async def test_same_dentist_overlap_is_dentist_busy(appointment_store, clinic_id) -> None:
    """Test overlapping window for the same dentist."""
    dentist_id = uuid4()
    existing = await _book(appointment_store, clinic_id, dentist_id, uuid4(), "10:00", "10:30")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(10, 15), time(10, 45), dentist_id, uuid4(), clinic_id
    )

    assert len(conflicts) == 1
    assert conflicts[0].conflict_type == ConflictType.DENTIST_BUSY
    assert conflicts[0].conflicting_appointment.id == existing.id
    assert "10:00" in conflicts[0].message
    assert "10:30" in conflicts[0].message


@pytest.mark.asyncio
async def test_back_to_back_never_conflicts(appointment_store, clinic_id) -> None:
    """Test touching windows for the same dentist and patient."""
    dentist_id, patient_id = uuid4(), uuid4()
    await _book(appointment_store, clinic_id, dentist_id, patient_id, "10:00", "10:30")

    detector = ConflictDetector(appointment_store)
    after = await detector.find_conflicts(
        APPOINTMENT_DAY, time(10, 30), time(11, 0), dentist_id, patient_id, clinic_id
    )
    before = await detector.find_conflicts(
        APPOINTMENT_DAY, time(9, 30), time(10, 0), dentist_id, patient_id, clinic_id
    )

    assert after == []
    assert before == []


@pytest.mark.asyncio
async def test_shared_dentist_and_patient_yields_both_conflicts(
    appointment_store, clinic_id
) -> None:
    """Test one appointment blocking both the dentist and the patient."""
    dentist_id, patient_id = uuid4(), uuid4()
    await _book(appointment_store, clinic_id, dentist_id, patient_id, "10:00", "10:30")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(10, 0), time(10, 30), dentist_id, patient_id, clinic_id
    )

    assert [c.conflict_type for c in conflicts] == [
        ConflictType.DENTIST_BUSY,
        ConflictType.PATIENT_BUSY,
    ]


@pytest.mark.asyncio
async def test_patient_busy_with_other_dentist(appointment_store, clinic_id) -> None:
    """Test the patient being booked elsewhere at the same time."""
    patient_id = uuid4()
    await _book(appointment_store, clinic_id, uuid4(), patient_id, "14:00", "15:00")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(14, 30), time(15, 0), uuid4(), patient_id, clinic_id
    )

    assert len(conflicts) == 1
    assert conflicts[0].conflict_type == ConflictType.PATIENT_BUSY
    assert conflicts[0].message == "Patient already has an appointment from 14:00 to 15:00"


@pytest.mark.asyncio
async def test_inactive_appointments_do_not_block(appointment_store, clinic_id) -> None:
    """Test cancelled, completed and no-show appointments free their window."""
    dentist_id = uuid4()
    for status in (
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    ):
        await _book(appointment_store, clinic_id, dentist_id, uuid4(), "10:00", "10:30", status)

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(10, 0), time(10, 30), dentist_id, uuid4(), clinic_id
    )

    assert conflicts == []


@pytest.mark.asyncio
async def test_excluded_appointment_is_ignored(appointment_store, clinic_id) -> None:
    """Test rescheduling an appointment over its own window."""
    dentist_id = uuid4()
    existing = await _book(appointment_store, clinic_id, dentist_id, uuid4(), "10:00", "10:30")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY,
        time(10, 15),
        time(10, 45),
        dentist_id,
        existing.patient_id,
        clinic_id,
        exclude_appointment_id=existing.id,
    )

    assert conflicts == []


@pytest.mark.asyncio
async def test_other_clinic_is_ignored(appointment_store, clinic_id) -> None:
    """Test appointments in another clinic never conflict."""
    dentist_id = uuid4()
    await _book(appointment_store, uuid4(), dentist_id, uuid4(), "10:00", "10:30")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(10, 0), time(10, 30), dentist_id, uuid4(), clinic_id
    )

    assert conflicts == []


@pytest.mark.asyncio
async def test_select_primary_conflict_priorities(appointment_store, clinic_id) -> None:
    """Test which conflict is surfaced under each priority."""
    dentist_id, patient_id = uuid4(), uuid4()
    await _book(appointment_store, clinic_id, uuid4(), patient_id, "09:00", "10:00")
    await _book(appointment_store, clinic_id, dentist_id, uuid4(), "10:00", "11:00")

    conflicts = await ConflictDetector(appointment_store).find_conflicts(
        APPOINTMENT_DAY, time(9, 30), time(10, 30), dentist_id, patient_id, clinic_id
    )

    assert [c.conflict_type for c in conflicts] == [
        ConflictType.PATIENT_BUSY,
        ConflictType.DENTIST_BUSY,
    ]
    assert select_primary_conflict(conflicts).conflict_type == ConflictType.PATIENT_BUSY
    assert (
        select_primary_conflict(conflicts, "dentist_first").conflict_type
        == ConflictType.DENTIST_BUSY
    )
    assert (
        select_primary_conflict(conflicts, "patient_first").conflict_type
        == ConflictType.PATIENT_BUSY
    )
    assert select_primary_conflict([], "dentist_first") is None
