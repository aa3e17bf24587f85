"""Reminder scheduling and cancellation for appointments."""

from datetime import datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from clinic_scheduler.config import settings
from clinic_scheduler.repositories.ports import (
    AppointmentStore,
    DirectoryStore,
    NotificationStore,
    PreferenceStore,
    ReminderStore,
)
from clinic_scheduler.schemas.notifications import (
    NotificationPreferences,
    ReminderResponse,
    ReminderSchedule,
    ReminderScheduleCreate,
    ReminderType,
    ScheduledReminder,
)

logger = structlog.get_logger(__name__)


def default_preferences(clinic_id: UUID, patient_id: UUID | None = None) -> NotificationPreferences:
    """Preferences used when a patient has none stored."""
    return NotificationPreferences(
        clinic_id=clinic_id,
        patient_id=patient_id,
        email_enabled=settings.default_email_enabled,
        sms_enabled=settings.default_sms_enabled,
        push_enabled=settings.default_push_enabled,
        appointment_reminder_enabled=settings.default_reminder_enabled,
        appointment_confirmation_enabled=settings.default_confirmation_enabled,
        appointment_reminder_hours=settings.default_reminder_hours,
        appointment_confirmation_hours=settings.default_confirmation_hours,
        is_default=True,
    )


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Clinic timezone, falling back to the configured default."""
    for candidate in (name, settings.default_timezone):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("unknown_timezone", timezone=candidate)
    return ZoneInfo("UTC")


class ReminderScheduler:
    """Create and cancel reminder schedules. Failures are logged, never raised."""

    def __init__(
        self,
        appointments: AppointmentStore,
        directory: DirectoryStore,
        preferences: PreferenceStore,
        reminders: ReminderStore,
        notifications: NotificationStore,
    ):
        """Initialize scheduler with its stores."""
        self.appointments = appointments
        self.directory = directory
        self.preferences = preferences
        self.reminders = reminders
        self.notifications = notifications

    async def schedule(
        self,
        appointment_id: UUID,
        appointment_datetime: datetime,
        clinic_id: UUID,
    ) -> ReminderResponse:
        """
        Schedule the reminder types the patient has enabled.

        Args:
            appointment_id: Appointment to remind about
            appointment_datetime: Appointment start; naive values are clinic-local
            clinic_id: Clinic scope

        Returns:
            Scheduling outcome with one entry per reminder created
        """
        try:
            appointment = await self.appointments.get(appointment_id, clinic_id)
            if appointment is None:
                logger.warning(
                    "reminder_schedule_skipped",
                    appointment_id=str(appointment_id),
                    reason="appointment_not_found",
                )
                return ReminderResponse(
                    success=False,
                    message="Failed to schedule reminders",
                    error="Appointment not found",
                )

            prefs = await self.preferences.get(appointment.patient_id, clinic_id, "patient")
            if prefs is None:
                prefs = default_preferences(clinic_id, appointment.patient_id)

            starts_at = appointment_datetime
            if starts_at.tzinfo is None:
                clinic = await self.directory.get_clinic(clinic_id)
                tz = resolve_timezone(clinic.timezone if clinic else None)
                starts_at = starts_at.replace(tzinfo=tz)

            channels = prefs.enabled_channels()
            scheduled: list[ScheduledReminder] = []

            for reminder_type in ReminderType:
                if not prefs.is_enabled(reminder_type):
                    continue

                offset = prefs.offset_hours(reminder_type)
                if offset <= 0 or not channels:
                    logger.info(
                        "reminder_type_skipped",
                        appointment_id=str(appointment_id),
                        reminder_type=reminder_type.value,
                        offset_hours=offset,
                        channels=len(channels),
                    )
                    continue

                reminder_date = starts_at - timedelta(hours=offset)
                reminder = await self.reminders.create(
                    ReminderScheduleCreate(
                        appointment_id=appointment_id,
                        clinic_id=clinic_id,
                        patient_id=appointment.patient_id,
                        dentist_id=appointment.dentist_id,
                        appointment_date=starts_at,
                        reminder_date=reminder_date,
                        type=reminder_type,
                        notification_types=channels,
                    )
                )
                scheduled.append(
                    ScheduledReminder(
                        id=reminder.id,
                        type=reminder_type,
                        scheduled_for=reminder_date,
                        notification_types=channels,
                    )
                )

            logger.info(
                "reminders_scheduled",
                appointment_id=str(appointment_id),
                clinic_id=str(clinic_id),
                count=len(scheduled),
                default_preferences=prefs.is_default,
            )
            return ReminderResponse(
                success=True,
                message=f"{len(scheduled)} reminders scheduled",
                reminders=scheduled,
            )
        except Exception as e:
            logger.error(
                "reminder_schedule_failed",
                appointment_id=str(appointment_id),
                error=str(e),
            )
            return ReminderResponse(
                success=False,
                message="Failed to schedule reminders",
                error=str(e),
            )

    async def cancel(self, appointment_id: UUID, clinic_id: UUID) -> tuple[int, int]:
        """
        Cancel SCHEDULED reminders and PENDING notifications of an appointment.

        Calling this again is harmless; SENT rows are never touched.

        Returns:
            Number of reminders and notification requests cancelled
        """
        reminders_cancelled = 0
        notifications_cancelled = 0
        try:
            reminders_cancelled = await self.reminders.cancel_for_appointment(
                appointment_id, clinic_id
            )
            notifications_cancelled = await self.notifications.cancel_pending_for_appointment(
                appointment_id, clinic_id
            )
            logger.info(
                "reminders_cancelled",
                appointment_id=str(appointment_id),
                clinic_id=str(clinic_id),
                reminders=reminders_cancelled,
                notifications=notifications_cancelled,
            )
        except Exception as e:
            logger.error(
                "reminder_cancel_failed",
                appointment_id=str(appointment_id),
                error=str(e),
            )
        return reminders_cancelled, notifications_cancelled

    async def list_for_appointment(
        self, appointment_id: UUID, clinic_id: UUID
    ) -> list[ReminderSchedule]:
        """Every reminder of an appointment, in firing order."""
        return await self.reminders.list_for_appointment(appointment_id, clinic_id)
