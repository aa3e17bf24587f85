"""Appointment lifecycle: booking, rescheduling and status changes."""

import math
from datetime import date, time
from typing import Any
from uuid import UUID

import structlog

from clinic_scheduler.config import settings
from clinic_scheduler.core.clock import Clock, SystemClock
from clinic_scheduler.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from clinic_scheduler.repositories.ports import (
    AppointmentStore,
    AuditSink,
    DirectoryStore,
    ReminderPort,
)
from clinic_scheduler.schemas.appointments import (
    TERMINAL_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentStats,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentType,
    AppointmentUpdate,
    ConflictCheckResponse,
    minutes_since_midnight,
)
from clinic_scheduler.services.appointment_validations import validate_appointment_window
from clinic_scheduler.services.conflict_detector import ConflictDetector, select_primary_conflict
from clinic_scheduler.services.reminder_scheduler import resolve_timezone

logger = structlog.get_logger(__name__)

# Allowed status changes; terminal statuses have no way out
STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Statuses after which pending reminders must not fire
REMINDER_CANCELLING_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})

WINDOW_FIELDS = frozenset(
    {
        "appointment_date",
        "start_time",
        "end_time",
        "duration_minutes",
        "appointment_type",
        "dentist_id",
    }
)

# Optional details a patch may clear by sending null
CLEARABLE_FIELDS = frozenset({"reason_for_visit", "notes"})

ADMINISTRATIVE_DELETION_REASON = "administrative deletion"


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Whether ``current`` may move to ``new``."""
    return new in STATUS_TRANSITIONS[current]


class AppointmentService:
    """Service for managing the appointment lifecycle."""

    def __init__(
        self,
        appointments: AppointmentStore,
        directory: DirectoryStore,
        reminders: ReminderPort,
        audit: AuditSink,
        clock: Clock | None = None,
        conflict_priority: str | None = None,
    ):
        """Initialize service with its stores, reminder port and time source."""
        self.appointments = appointments
        self.directory = directory
        self.reminders = reminders
        self.audit = audit
        self.clock = clock or SystemClock()
        self.conflict_priority = conflict_priority or settings.conflict_priority
        self.detector = ConflictDetector(appointments)

    async def create(
        self,
        data: AppointmentCreate,
        clinic_id: UUID,
        created_by: UUID,
    ) -> Appointment:
        """
        Book a new appointment.

        Args:
            data: Appointment creation data
            clinic_id: Clinic the appointment belongs to
            created_by: User booking the appointment

        Returns:
            Created appointment, status SCHEDULED

        Raises:
            ValidationException: If the window breaks a business rule
            NotFoundException: If the patient or dentist is not in the clinic
            ConflictException: If the dentist or patient is already booked
        """
        self._validate_window(
            data.start_time, data.end_time, data.duration_minutes, data.appointment_type
        )

        if await self.directory.get_patient(data.patient_id, clinic_id) is None:
            raise NotFoundException("Patient not found")
        if await self.directory.get_dentist(data.dentist_id, clinic_id) is None:
            raise NotFoundException("Dentist not found")

        await self._ensure_available(
            data.appointment_date,
            data.start_time,
            data.end_time,
            data.dentist_id,
            data.patient_id,
            clinic_id,
        )

        values = data.model_dump()
        values.update(
            clinic_id=clinic_id,
            status=AppointmentStatus.SCHEDULED,
            reminder_sent=False,
            created_by=created_by,
            updated_by=created_by,
        )
        appointment = await self.appointments.create(values)

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            clinic_id=str(clinic_id),
            dentist_id=str(appointment.dentist_id),
        )

        await self._schedule_reminders(appointment)
        await self._audit(appointment.id, "CREATE", None, appointment, created_by)
        return appointment

    async def get(self, appointment_id: UUID, clinic_id: UUID) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If the appointment does not exist in the clinic
        """
        appointment = await self.appointments.get(appointment_id, clinic_id)
        if appointment is None:
            raise NotFoundException("Appointment not found")
        return appointment

    async def list_appointments(
        self, clinic_id: UUID, filters: AppointmentFilters
    ) -> AppointmentListResponse:
        """List appointments with filtering, sorting and pagination."""
        items, total = await self.appointments.list_appointments(clinic_id, filters)
        return AppointmentListResponse(
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=math.ceil(total / filters.limit) if total else 0,
            items=items,
        )

    async def stats(self, clinic_id: UUID) -> AppointmentStats:
        """Counters for the clinic, with "today" taken in the clinic's timezone."""
        clinic = await self.directory.get_clinic(clinic_id)
        tz = resolve_timezone(clinic.timezone if clinic else None)
        today = self.clock.now().astimezone(tz).date()
        return await self.appointments.stats(clinic_id, today)

    async def check_conflicts(
        self,
        clinic_id: UUID,
        appointment_date: date,
        start_time: time,
        end_time: time,
        dentist_id: UUID,
        patient_id: UUID,
        exclude_appointment_id: UUID | None = None,
    ) -> ConflictCheckResponse:
        """Report every conflict for a proposed window without booking it."""
        conflicts = await self.detector.find_conflicts(
            appointment_date,
            start_time,
            end_time,
            dentist_id,
            patient_id,
            clinic_id,
            exclude_appointment_id=exclude_appointment_id,
        )
        return ConflictCheckResponse(has_conflicts=bool(conflicts), conflicts=conflicts)

    async def update(
        self,
        appointment_id: UUID,
        data: AppointmentUpdate,
        clinic_id: UUID,
        updated_by: UUID,
    ) -> Appointment:
        """
        Update an appointment's details or reschedule it.

        Window changes are re-validated and re-checked for conflicts, ignoring
        the appointment itself. Moving the date or start time, or changing the
        dentist, replaces its reminders. Sending null for the notes or the
        reason for visit clears them.

        Raises:
            NotFoundException: If the appointment does not exist
            ValidationException: If the new window is invalid or the
                appointment is already finished
            ConflictException: If the new window is taken
        """
        existing = await self.get(appointment_id, clinic_id)

        changes: dict[str, Any] = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if (value is not None or field in CLEARABLE_FIELDS)
            and getattr(existing, field) != value
        }
        if not changes:
            return existing

        window_changed = bool(WINDOW_FIELDS & changes.keys())
        if window_changed:
            if existing.status in TERMINAL_STATUSES:
                raise ValidationException(
                    f"Cannot reschedule an appointment with status {existing.status.value}"
                )

            appointment_date = changes.get("appointment_date", existing.appointment_date)
            start_time = changes.get("start_time", existing.start_time)
            end_time = changes.get("end_time", existing.end_time)
            appointment_type = changes.get("appointment_type", existing.appointment_type)
            dentist_id = changes.get("dentist_id", existing.dentist_id)

            if "duration_minutes" in changes:
                duration = changes["duration_minutes"]
            elif {"start_time", "end_time"} & changes.keys():
                # Window moved without an explicit duration: derive it
                duration = minutes_since_midnight(end_time) - minutes_since_midnight(start_time)
                changes["duration_minutes"] = duration
            else:
                duration = existing.duration_minutes

            self._validate_window(start_time, end_time, duration, appointment_type)

            if "dentist_id" in changes:
                if await self.directory.get_dentist(dentist_id, clinic_id) is None:
                    raise NotFoundException("Dentist not found")

            await self._ensure_available(
                appointment_date,
                start_time,
                end_time,
                dentist_id,
                existing.patient_id,
                clinic_id,
                exclude_appointment_id=appointment_id,
            )

        changes["updated_by"] = updated_by
        updated = await self.appointments.update(appointment_id, clinic_id, changes)
        if updated is None:
            raise NotFoundException("Appointment not found")

        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            fields=sorted(k for k in changes if k != "updated_by"),
        )

        # Reminder rows snapshot the fire time and the dentist
        moved = (
            updated.appointment_date != existing.appointment_date
            or updated.start_time != existing.start_time
            or updated.dentist_id != existing.dentist_id
        )
        if moved and updated.is_active:
            await self.reminders.cancel(appointment_id, clinic_id)
            await self._schedule_reminders(updated)

        await self._audit(appointment_id, "UPDATE", existing, updated, updated_by)
        return updated

    async def update_status(
        self,
        appointment_id: UUID,
        data: AppointmentStatusUpdate,
        clinic_id: UUID,
        updated_by: UUID,
    ) -> Appointment:
        """
        Move an appointment to a new status.

        Re-applying the current status changes nothing. Cancelling or marking
        a no-show cancels every pending reminder of the appointment.

        Raises:
            NotFoundException: If the appointment does not exist
            ValidationException: If the transition is not allowed
            ConflictException: If the status changed while this call ran
        """
        existing = await self.get(appointment_id, clinic_id)

        if data.status == existing.status:
            if data.status in REMINDER_CANCELLING_STATUSES:
                await self.reminders.cancel(appointment_id, clinic_id)
            return existing

        if not can_transition(existing.status, data.status):
            raise ValidationException(
                f"Cannot change status from {existing.status.value} to {data.status.value}"
            )

        values: dict[str, Any] = {"status": data.status, "updated_by": updated_by}
        if data.status == AppointmentStatus.CANCELLED:
            values["cancellation_reason"] = data.cancellation_reason

        updated = await self.appointments.update(
            appointment_id, clinic_id, values, expected_status=existing.status
        )
        if updated is None:
            raise ConflictException("Appointment status was changed by another request")

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=existing.status.value,
            new_status=data.status.value,
        )

        if data.status in REMINDER_CANCELLING_STATUSES:
            await self.reminders.cancel(appointment_id, clinic_id)

        await self._audit(appointment_id, "STATUS_CHANGE", existing, updated, updated_by)
        return updated

    async def cancel_with_reason(
        self,
        appointment_id: UUID,
        clinic_id: UUID,
        cancelled_by: UUID,
        reason: str,
    ) -> Appointment:
        """Cancel an appointment, recording why."""
        return await self.update_status(
            appointment_id,
            AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED, cancellation_reason=reason),
            clinic_id,
            cancelled_by,
        )

    async def delete(self, appointment_id: UUID, clinic_id: UUID, deleted_by: UUID) -> Appointment:
        """Soft delete: cancels the appointment and keeps the row."""
        return await self.cancel_with_reason(
            appointment_id, clinic_id, deleted_by, ADMINISTRATIVE_DELETION_REASON
        )

    def _validate_window(
        self,
        start_time: time,
        end_time: time,
        duration_minutes: int,
        appointment_type: AppointmentType,
    ) -> None:
        result = validate_appointment_window(
            start_time, end_time, duration_minutes, appointment_type
        )
        if result.warnings:
            logger.info("appointment_validation_warnings", warnings=result.warnings)
        if not result.is_valid:
            raise ValidationException(result.errors[0], errors=result.errors)

    async def _ensure_available(
        self,
        appointment_date: date,
        start_time: time,
        end_time: time,
        dentist_id: UUID,
        patient_id: UUID,
        clinic_id: UUID,
        exclude_appointment_id: UUID | None = None,
    ) -> None:
        conflicts = await self.detector.find_conflicts(
            appointment_date,
            start_time,
            end_time,
            dentist_id,
            patient_id,
            clinic_id,
            exclude_appointment_id=exclude_appointment_id,
        )
        primary = select_primary_conflict(conflicts, self.conflict_priority)
        if primary is not None:
            raise ConflictException(primary.message, conflict=primary)

    async def _schedule_reminders(self, appointment: Appointment) -> None:
        try:
            response = await self.reminders.schedule(
                appointment.id, appointment.starts_at, appointment.clinic_id
            )
            if not response.success:
                logger.warning(
                    "appointment_reminders_not_scheduled",
                    appointment_id=str(appointment.id),
                    error=response.error,
                )
        except Exception as e:
            logger.warning(
                "appointment_reminders_not_scheduled",
                appointment_id=str(appointment.id),
                error=str(e),
            )

    async def _audit(
        self,
        appointment_id: UUID,
        action: str,
        old: Appointment | None,
        new: Appointment | None,
        user_id: UUID,
    ) -> None:
        try:
            await self.audit.record(
                "appointments",
                appointment_id,
                action,
                old.model_dump(mode="json") if old else None,
                new.model_dump(mode="json") if new else None,
                user_id,
            )
        except Exception as e:
            logger.warning(
                "audit_log_failed",
                appointment_id=str(appointment_id),
                action=action,
                error=str(e),
            )
