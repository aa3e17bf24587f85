"""Storage and reminder ports the scheduling services depend on.

The SQLAlchemy Core implementations live beside this module; tests swap in
in-memory implementations.
"""

from datetime import date, datetime
from typing import Any, Literal, Protocol, runtime_checkable
from uuid import UUID

from clinic_scheduler.schemas.appointments import (
    Appointment,
    AppointmentFilters,
    AppointmentStats,
    AppointmentStatus,
)
from clinic_scheduler.schemas.directory import ClinicSnapshot, DentistSnapshot, PatientSnapshot
from clinic_scheduler.schemas.notifications import (
    DueReminder,
    NotificationPreferences,
    NotificationRequest,
    NotificationRequestCreate,
    ReminderResponse,
    ReminderSchedule,
    ReminderScheduleCreate,
)

SubjectType = Literal["patient", "user"]


@runtime_checkable
class AppointmentStore(Protocol):
    """Appointment persistence, scoped by clinic."""

    async def get(self, appointment_id: UUID, clinic_id: UUID) -> Appointment | None: ...

    async def list_active_on_date(
        self,
        clinic_id: UUID,
        appointment_date: date,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        """Appointments on a date whose status still occupies the calendar."""
        ...

    async def list_appointments(
        self, clinic_id: UUID, filters: AppointmentFilters
    ) -> tuple[list[Appointment], int]:
        """One page of appointments and the total matching the filters."""
        ...

    async def create(self, values: dict[str, Any]) -> Appointment: ...

    async def update(
        self,
        appointment_id: UUID,
        clinic_id: UUID,
        values: dict[str, Any],
        expected_status: AppointmentStatus | None = None,
    ) -> Appointment | None:
        """Apply values and return the new row.

        Returns None when no row matched, including when ``expected_status``
        is given and the stored status differs.
        """
        ...

    async def mark_reminder_sent(self, appointment_id: UUID, sent_at: datetime) -> None: ...

    async def stats(self, clinic_id: UUID, today: date) -> AppointmentStats: ...


@runtime_checkable
class DirectoryStore(Protocol):
    """Read-only access to patients, dentists and clinics."""

    async def get_patient(self, patient_id: UUID, clinic_id: UUID) -> PatientSnapshot | None: ...

    async def get_dentist(self, dentist_id: UUID, clinic_id: UUID) -> DentistSnapshot | None: ...

    async def get_clinic(self, clinic_id: UUID) -> ClinicSnapshot | None: ...


@runtime_checkable
class PreferenceStore(Protocol):
    """Stored notification preferences."""

    async def get(
        self,
        subject_id: UUID,
        clinic_id: UUID,
        subject_type: SubjectType = "patient",
    ) -> NotificationPreferences | None: ...


@runtime_checkable
class ReminderStore(Protocol):
    """Reminder schedule persistence."""

    async def create(self, data: ReminderScheduleCreate) -> ReminderSchedule: ...

    async def list_for_appointment(
        self, appointment_id: UUID, clinic_id: UUID
    ) -> list[ReminderSchedule]: ...

    async def cancel_for_appointment(self, appointment_id: UUID, clinic_id: UUID) -> int:
        """Move SCHEDULED reminders of an appointment to CANCELLED.

        Returns:
            Number of reminders cancelled
        """
        ...

    async def list_due(self, now: datetime, limit: int | None = None) -> list[DueReminder]:
        """SCHEDULED reminders with ``reminder_date <= now``, across clinics."""
        ...

    async def mark_sent(self, reminder_id: UUID) -> bool: ...

    async def mark_cancelled(self, reminder_id: UUID) -> bool: ...


@runtime_checkable
class NotificationStore(Protocol):
    """Append-only log of dispatch attempts."""

    async def record(self, data: NotificationRequestCreate) -> NotificationRequest: ...

    async def cancel_pending_for_appointment(self, appointment_id: UUID, clinic_id: UUID) -> int:
        """Move PENDING requests of an appointment to CANCELLED."""
        ...


@runtime_checkable
class AuditSink(Protocol):
    """Audit trail of appointment changes."""

    async def record(
        self,
        table: str,
        record_id: UUID,
        action: str,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        user_id: UUID | None,
    ) -> None: ...


@runtime_checkable
class ReminderPort(Protocol):
    """What the appointment lifecycle needs from reminder scheduling.

    Implementations are best-effort and never raise.
    """

    async def schedule(
        self,
        appointment_id: UUID,
        appointment_datetime: datetime,
        clinic_id: UUID,
    ) -> ReminderResponse: ...

    async def cancel(self, appointment_id: UUID, clinic_id: UUID) -> tuple[int, int]: ...
