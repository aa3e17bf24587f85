"""Reminder and notification schemas."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clinic_scheduler.schemas.appointments import Appointment
from clinic_scheduler.schemas.directory import ClinicSnapshot, DentistSnapshot, PatientSnapshot


class NotificationChannel(str, Enum):
    """Delivery medium for a rendered message."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"
    IN_APP = "IN_APP"


# Channels a reminder can be delivered on; IN_APP has no dispatcher route
REMINDER_CHANNELS = frozenset(
    {NotificationChannel.EMAIL, NotificationChannel.SMS, NotificationChannel.PUSH}
)


class NotificationStatus(str, Enum):
    """Status of a single dispatch attempt."""

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ReminderType(str, Enum):
    """Independently schedulable reminder kinds."""

    APPOINTMENT_REMINDER = "APPOINTMENT_REMINDER"
    APPOINTMENT_CONFIRMATION = "APPOINTMENT_CONFIRMATION"


class ReminderStatus(str, Enum):
    """Reminder schedule lifecycle. SENT and CANCELLED are final."""

    SCHEDULED = "SCHEDULED"
    SENT = "SENT"
    CANCELLED = "CANCELLED"


class NotificationPreferences(BaseModel):
    """Notification preferences of a patient or staff user within a clinic."""

    clinic_id: UUID
    patient_id: UUID | None = None
    user_id: UUID | None = None
    email_enabled: bool
    sms_enabled: bool
    push_enabled: bool
    appointment_reminder_enabled: bool
    appointment_confirmation_enabled: bool
    appointment_reminder_hours: int
    appointment_confirmation_hours: int
    is_default: bool = False

    model_config = {"from_attributes": True}

    def enabled_channels(self) -> list[NotificationChannel]:
        """Channels currently switched on, in a stable order."""
        channels = []
        if self.email_enabled:
            channels.append(NotificationChannel.EMAIL)
        if self.sms_enabled:
            channels.append(NotificationChannel.SMS)
        if self.push_enabled:
            channels.append(NotificationChannel.PUSH)
        return channels

    def is_enabled(self, reminder_type: ReminderType) -> bool:
        """Whether the subject wants this kind of reminder."""
        if reminder_type == ReminderType.APPOINTMENT_REMINDER:
            return self.appointment_reminder_enabled
        return self.appointment_confirmation_enabled

    def offset_hours(self, reminder_type: ReminderType) -> int:
        """Hours before the appointment at which this reminder fires."""
        if reminder_type == ReminderType.APPOINTMENT_REMINDER:
            return self.appointment_reminder_hours
        return self.appointment_confirmation_hours


class ReminderScheduleCreate(BaseModel):
    """Values for a new reminder schedule row."""

    appointment_id: UUID
    clinic_id: UUID
    patient_id: UUID
    dentist_id: UUID
    appointment_date: datetime
    reminder_date: datetime
    type: ReminderType
    notification_types: list[NotificationChannel]

    @field_validator("notification_types")
    @classmethod
    def validate_channels(cls, v: list[NotificationChannel]) -> list[NotificationChannel]:
        """Only channels the dispatcher can route may be scheduled."""
        unsupported = [channel.value for channel in v if channel not in REMINDER_CHANNELS]
        if unsupported:
            raise ValueError(f"Unsupported reminder channels: {', '.join(unsupported)}")
        return v


class ReminderSchedule(ReminderScheduleCreate):
    """Stored reminder schedule."""

    id: UUID
    status: ReminderStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ScheduledReminder(BaseModel):
    """Summary of one reminder created by the scheduler."""

    id: UUID
    type: ReminderType
    scheduled_for: datetime
    notification_types: list[NotificationChannel]


class ReminderResponse(BaseModel):
    """Outcome of scheduling reminders for an appointment."""

    success: bool
    message: str
    reminders: list[ScheduledReminder] = Field(default_factory=list)
    error: str | None = None


class NotificationRequestCreate(BaseModel):
    """Audit record of one dispatch attempt."""

    clinic_id: UUID
    appointment_id: UUID | None = None
    type: NotificationChannel
    reminder_type: ReminderType
    recipient_email: str | None = None
    recipient_phone: str | None = None
    subject: str
    body: str
    status: NotificationStatus
    attempts: int = 1
    max_attempts: int = 3
    sent_at: datetime | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationRequest(NotificationRequestCreate):
    """Stored dispatch attempt."""

    id: UUID
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class NotificationResult(BaseModel):
    """Outcome of a single channel dispatch."""

    success: bool
    message: str
    notification_id: UUID | None = None
    status: NotificationStatus
    sent_at: datetime | None = None
    error: str | None = None


class DueReminder(BaseModel):
    """A due reminder joined with the snapshots needed to render it."""

    reminder: ReminderSchedule
    appointment: Appointment | None = None
    patient: PatientSnapshot | None = None
    dentist: DentistSnapshot | None = None
    clinic: ClinicSnapshot | None = None


class SweepSummary(BaseModel):
    """Counters from one reminder sweep."""

    due: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
