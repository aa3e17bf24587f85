"""Tests for appointment window rules and request schemas."""

from datetime import date, time
from uuid import uuid4

import pytest
from pydantic import ValidationError

from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentType,
    AppointmentUpdate,
)
from clinic_scheduler.services.appointment_validations import (
    validate_appointment_duration,
    validate_appointment_window,
    validate_business_hours,
    validate_time_sequence,
    validate_window_duration,
)


@pytest.mark.parametrize(
    "appointment_type,duration,valid,warned",
    [
        (AppointmentType.CONSULTATION, 30, True, False),
        (AppointmentType.CONSULTATION, 15, False, False),
        (AppointmentType.CONSULTATION, 90, False, True),
        (AppointmentType.CLEANING, 50, True, True),
        (AppointmentType.ROOT_CANAL, 45, False, False),
        (AppointmentType.SURGERY, 240, True, False),
        (AppointmentType.FOLLOW_UP, 15, True, False),
    ],
)
def test_duration_rules(appointment_type, duration, valid, warned) -> None:
    """Test per-type bounds are errors and off-slot durations are warnings."""
    result = validate_appointment_duration(appointment_type, duration)

    assert result.is_valid is valid
    assert bool(result.warnings) is warned


def test_duration_error_messages() -> None:
    result = validate_appointment_duration(AppointmentType.ROOT_CANAL, 45)

    assert result.errors == ["Minimum duration for root_canal is 60 minutes"]


def test_type_without_rules_only_warns() -> None:
    """Test a type with no rule table passes with a warning."""
    result = validate_appointment_duration(AppointmentType.CROWN, 15)

    assert result.is_valid
    assert result.warnings == ["No duration rules for crown, using basic validation"]


def test_time_sequence() -> None:
    assert validate_time_sequence(time(10, 0), time(10, 30)).is_valid
    assert validate_time_sequence(time(10, 30), time(10, 30)).errors == [
        "Start time must be before end time"
    ]


def test_window_duration() -> None:
    assert validate_window_duration(time(10, 0), time(10, 30), 30).is_valid
    assert not validate_window_duration(time(10, 0), time(10, 30), 45).is_valid


def test_business_hours() -> None:
    """Test both ends are checked against opening hours."""
    assert validate_business_hours(time(8, 0), time(20, 0)).is_valid

    result = validate_business_hours(time(7, 30), time(20, 30))

    assert result.errors == [
        "Start time must be between 08:00 and 20:00",
        "End time must be between 08:00 and 20:00",
    ]


def test_window_combines_rules() -> None:
    result = validate_appointment_window(
        time(10, 0), time(10, 15), 15, AppointmentType.CONSULTATION
    )

    assert result.errors == ["Minimum duration for consultation is 30 minutes"]


def _create(**overrides) -> dict:
    data = {
        "patient_id": uuid4(),
        "dentist_id": uuid4(),
        "appointment_date": date(2024, 1, 15),
        "start_time": time(10, 0),
        "end_time": time(10, 30),
        "duration_minutes": 30,
        "appointment_type": AppointmentType.CONSULTATION,
    }
    data.update(overrides)
    return data


def test_create_schema_accepts_valid_window() -> None:
    assert AppointmentCreate(**_create()).duration_minutes == 30


@pytest.mark.parametrize(
    "overrides",
    [
        {"duration_minutes": 45},
        {"end_time": time(10, 25), "duration_minutes": 25},
        {"start_time": time(7, 0), "duration_minutes": 210},
        {"end_time": time(21, 0), "duration_minutes": 660},
        {"start_time": time(11, 0), "end_time": time(10, 0), "duration_minutes": 60},
    ],
)
def test_create_schema_rejects(overrides) -> None:
    """Test mismatched, off-grid, out-of-hours and inverted windows."""
    with pytest.raises(ValidationError):
        AppointmentCreate(**_create(**overrides))


def test_update_schema() -> None:
    assert AppointmentUpdate(notes="bring x-rays").start_time is None
    with pytest.raises(ValidationError):
        AppointmentUpdate(start_time=time(11, 0), end_time=time(10, 0))


def test_cancellation_requires_reason() -> None:
    """Test cancelling without a reason is rejected."""
    with pytest.raises(ValidationError):
        AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED)
    with pytest.raises(ValidationError):
        AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED, cancellation_reason="  ")

    update = AppointmentStatusUpdate(
        status=AppointmentStatus.CANCELLED, cancellation_reason="patient is ill"
    )
    assert update.cancellation_reason == "patient is ill"
    assert AppointmentStatusUpdate(status=AppointmentStatus.CONFIRMED).cancellation_reason is None
