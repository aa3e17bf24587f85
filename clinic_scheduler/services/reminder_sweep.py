"""Periodic processing of due reminders."""

from datetime import datetime

import structlog

from clinic_scheduler.core.clock import Clock, SystemClock
from clinic_scheduler.repositories.ports import AppointmentStore, ReminderStore
from clinic_scheduler.schemas.notifications import DueReminder, ReminderType, SweepSummary
from clinic_scheduler.services.notification_dispatcher import NotificationDispatcher
from clinic_scheduler.services.template_renderer import build_context, render_template

logger = structlog.get_logger(__name__)


class ReminderSweep:
    """Dispatch every due reminder, one failure never stopping the rest."""

    def __init__(
        self,
        reminders: ReminderStore,
        appointments: AppointmentStore,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        batch_size: int | None = None,
    ):
        """Initialize sweep with its stores, dispatcher and time source."""
        self.reminders = reminders
        self.appointments = appointments
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.batch_size = batch_size

    async def process_due(self, now: datetime | None = None) -> SweepSummary:
        """
        Send all SCHEDULED reminders whose fire time has passed.

        Args:
            now: Cut-off instant; defaults to the clock's current time

        Returns:
            How many reminders were due, sent, failed and skipped. A failed
            reminder stays SCHEDULED and is picked up by the next sweep.
        """
        now = now or self.clock.now()
        due = await self.reminders.list_due(now, limit=self.batch_size)
        summary = SweepSummary(due=len(due))

        for item in due:
            try:
                if await self._process(item, now):
                    summary.sent += 1
                else:
                    summary.skipped += 1
            except Exception as e:
                summary.failed += 1
                logger.error(
                    "reminder_processing_failed",
                    reminder_id=str(item.reminder.id),
                    appointment_id=str(item.reminder.appointment_id),
                    error=str(e),
                )

        logger.info(
            "reminder_sweep_completed",
            due=summary.due,
            sent=summary.sent,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

    async def _process(self, item: DueReminder, now: datetime) -> bool:
        """Deliver one reminder. Returns False when it was skipped."""
        reminder = item.reminder
        appointment = item.appointment

        if appointment is None or not appointment.is_active:
            await self.reminders.mark_cancelled(reminder.id)
            logger.info(
                "reminder_skipped",
                reminder_id=str(reminder.id),
                reason="appointment_inactive" if appointment else "appointment_missing",
            )
            return False

        context = build_context(appointment, item.patient, item.dentist, item.clinic)
        subject, body = render_template(reminder.type, context)
        email = item.patient.email if item.patient else None
        phone = item.patient.phone if item.patient else None
        metadata = {
            "appointment_id": str(appointment.id),
            "reminder_id": str(reminder.id),
            "reminder_type": reminder.type.value,
        }

        for channel in reminder.notification_types:
            result = await self.dispatcher.send(
                channel,
                email,
                phone,
                subject,
                body,
                reminder.clinic_id,
                metadata,
                reminder_type=reminder.type,
            )
            if not result.success:
                logger.warning(
                    "reminder_channel_failed",
                    reminder_id=str(reminder.id),
                    channel=channel.value,
                    error=result.error,
                )

        await self.reminders.mark_sent(reminder.id)
        if reminder.type == ReminderType.APPOINTMENT_REMINDER:
            await self.appointments.mark_reminder_sent(appointment.id, now)

        logger.info(
            "reminder_sent",
            reminder_id=str(reminder.id),
            appointment_id=str(appointment.id),
            reminder_type=reminder.type.value,
        )
        return True
