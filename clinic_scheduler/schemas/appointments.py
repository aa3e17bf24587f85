"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from clinic_scheduler.config import settings


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that occupy the dentist's and patient's calendar
ACTIVE_STATUSES = frozenset(
    {AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS}
)
TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class AppointmentType(str, Enum):
    """Dental appointment type enumeration."""

    CONSULTATION = "consultation"
    CLEANING = "cleaning"
    FILLING = "filling"
    EXTRACTION = "extraction"
    ROOT_CANAL = "root_canal"
    CROWN = "crown"
    ORTHODONTICS = "orthodontics"
    SURGERY = "surgery"
    EMERGENCY = "emergency"
    FOLLOW_UP = "follow_up"


class ConflictType(str, Enum):
    """Why an existing appointment blocks a proposed window."""

    DENTIST_BUSY = "dentist_busy"
    PATIENT_BUSY = "patient_busy"


def minutes_since_midnight(value: time) -> int:
    """Convert a wall-clock time to minutes since midnight."""
    return value.hour * 60 + value.minute


def _parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def _check_business_hours(value: time) -> time:
    opening = _parse_hhmm(settings.business_hours_start)
    closing = _parse_hhmm(settings.business_hours_end)
    if not opening <= value <= closing:
        raise ValueError(
            f"Time must be between {settings.business_hours_start} "
            f"and {settings.business_hours_end}"
        )
    return value


def _check_duration(value: int) -> int:
    if value < 15 or value > 240 or value % 15 != 0:
        raise ValueError("Duration must be 15-240 minutes, in multiples of 15")
    return value


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    patient_id: UUID
    dentist_id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    appointment_type: AppointmentType
    reason_for_visit: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_business_hours(cls, v: time) -> time:
        """Validate that the time falls within clinic business hours."""
        return _check_business_hours(v)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        """Validate duration bounds and granularity."""
        return _check_duration(v)

    @model_validator(mode="after")
    def validate_window(self) -> "AppointmentCreate":
        """Validate end after start and duration matching the window."""
        start = minutes_since_midnight(self.start_time)
        end = minutes_since_midnight(self.end_time)
        if end <= start:
            raise ValueError("End time must be after start time")
        if end - start != self.duration_minutes:
            raise ValueError("Duration does not match the specified time window")
        return self


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment.

    The patient cannot be changed; status changes go through
    :class:`AppointmentStatusUpdate`.
    """

    dentist_id: UUID | None = None
    appointment_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    duration_minutes: int | None = None
    appointment_type: AppointmentType | None = None
    reason_for_visit: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_business_hours(cls, v: time | None) -> time | None:
        """Validate that the time falls within clinic business hours."""
        return _check_business_hours(v) if v is not None else v

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int | None) -> int | None:
        """Validate duration bounds and granularity."""
        return _check_duration(v) if v is not None else v

    @model_validator(mode="after")
    def validate_window(self) -> "AppointmentUpdate":
        """Validate end after start when both are provided."""
        if self.start_time is not None and self.end_time is not None:
            if self.end_time <= self.start_time:
                raise ValueError("End time must be after start time")
        return self


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    cancellation_reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_reason(self) -> "AppointmentStatusUpdate":
        """Require a cancellation reason when cancelling."""
        if self.status == AppointmentStatus.CANCELLED:
            if not self.cancellation_reason or not self.cancellation_reason.strip():
                raise ValueError("A cancellation reason is required when cancelling")
        return self


class Appointment(BaseModel):
    """Stored appointment, as returned by the appointment store and the API."""

    id: UUID
    clinic_id: UUID
    patient_id: UUID
    dentist_id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    appointment_type: AppointmentType
    status: AppointmentStatus
    reason_for_visit: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    reminder_sent: bool = False
    reminder_sent_at: datetime | None = None
    created_by: UUID
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_active(self) -> bool:
        """Whether this appointment still blocks its time window."""
        return self.status in ACTIVE_STATUSES

    @property
    def starts_at(self) -> datetime:
        """Naive clinic-local start timestamp."""
        return datetime.combine(self.appointment_date, self.start_time)


class AppointmentConflict(BaseModel):
    """An existing active appointment that overlaps a proposed window."""

    conflict_type: ConflictType
    conflicting_appointment: Appointment
    message: str


class ConflictCheckResponse(BaseModel):
    """Schema for the availability pre-check."""

    has_conflicts: bool
    conflicts: list[AppointmentConflict]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    date_from: date | None = None
    date_to: date | None = None
    patient_id: UUID | None = None
    dentist_id: UUID | None = None
    status: AppointmentStatus | None = None
    appointment_type: AppointmentType | None = None
    sort_by: Literal["appointment_date", "created_at"] = "appointment_date"
    sort_order: Literal["asc", "desc"] = "asc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    limit: int
    total_pages: int
    items: list[Appointment]


class AppointmentStats(BaseModel):
    """Per-clinic appointment counters."""

    total_appointments: int
    by_status: dict[AppointmentStatus, int]
    by_type: dict[AppointmentType, int]
    today_appointments: int
    upcoming_appointments: int
