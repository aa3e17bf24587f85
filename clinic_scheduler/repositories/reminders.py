"""Reminder schedule store."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Table, and_, insert, select, update

from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.clinics import clinics
from clinic_scheduler.models.dentists import dentists
from clinic_scheduler.models.patients import patients
from clinic_scheduler.models.reminders import reminder_schedules
from clinic_scheduler.repositories.base import SqlRepository
from clinic_scheduler.schemas.appointments import Appointment
from clinic_scheduler.schemas.directory import ClinicSnapshot, DentistSnapshot, PatientSnapshot
from clinic_scheduler.schemas.notifications import (
    DueReminder,
    ReminderSchedule,
    ReminderScheduleCreate,
    ReminderStatus,
)

_JOINED = {
    "appointment": (appointments, Appointment),
    "patient": (patients, PatientSnapshot),
    "dentist": (dentists, DentistSnapshot),
    "clinic": (clinics, ClinicSnapshot),
}


def _labelled(table: Table, prefix: str) -> list[Any]:
    return [column.label(f"{prefix}__{column.name}") for column in table.c]


def _unprefix(mapping: Any, prefix: str) -> dict[str, Any] | None:
    marker = f"{prefix}__"
    values = {key[len(marker) :]: value for key, value in mapping.items() if key.startswith(marker)}
    # Outer join with no match
    if values.get("id") is None:
        return None
    return values


class SqlReminderStore(SqlRepository):
    """Reminder schedule persistence using SQLAlchemy Core."""

    async def create(self, data: ReminderScheduleCreate) -> ReminderSchedule:
        values = data.model_dump()
        values["type"] = data.type.value
        values["notification_types"] = [channel.value for channel in data.notification_types]
        values["status"] = ReminderStatus.SCHEDULED.value
        stmt = insert(reminder_schedules).values(**values).returning(reminder_schedules)
        result = await self._execute(stmt)
        row = result.fetchone()
        await self._commit()
        return ReminderSchedule.model_validate(dict(row._mapping))

    async def list_for_appointment(
        self, appointment_id: UUID, clinic_id: UUID
    ) -> list[ReminderSchedule]:
        stmt = (
            select(reminder_schedules)
            .where(
                and_(
                    reminder_schedules.c.appointment_id == appointment_id,
                    reminder_schedules.c.clinic_id == clinic_id,
                )
            )
            .order_by(reminder_schedules.c.reminder_date)
        )
        result = await self._execute(stmt)
        return [ReminderSchedule.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def cancel_for_appointment(self, appointment_id: UUID, clinic_id: UUID) -> int:
        stmt = (
            update(reminder_schedules)
            .where(
                and_(
                    reminder_schedules.c.appointment_id == appointment_id,
                    reminder_schedules.c.clinic_id == clinic_id,
                    reminder_schedules.c.status == ReminderStatus.SCHEDULED.value,
                )
            )
            .values(status=ReminderStatus.CANCELLED.value, updated_at=datetime.now(UTC))
        )
        result = await self._execute(stmt)
        await self._commit()
        return result.rowcount or 0

    async def list_due(self, now: datetime, limit: int | None = None) -> list[DueReminder]:
        """
        Get due reminders with the records needed to render them.

        Args:
            now: Reminders firing at or before this instant are due
            limit: Optional cap on the number of rows returned

        Returns:
            Due reminders, oldest first, each with appointment, patient,
            dentist and clinic snapshots (None where the row is missing)
        """
        columns = list(reminder_schedules.c)
        for prefix, (table, _) in _JOINED.items():
            columns.extend(_labelled(table, prefix))

        joined = (
            reminder_schedules.outerjoin(
                appointments, appointments.c.id == reminder_schedules.c.appointment_id
            )
            # Current participants, not the ones copied when the reminder was made
            .outerjoin(patients, patients.c.id == appointments.c.patient_id)
            .outerjoin(dentists, dentists.c.id == appointments.c.dentist_id)
            .outerjoin(clinics, clinics.c.id == reminder_schedules.c.clinic_id)
        )
        stmt = (
            select(*columns)
            .select_from(joined)
            .where(
                and_(
                    reminder_schedules.c.status == ReminderStatus.SCHEDULED.value,
                    reminder_schedules.c.reminder_date <= now,
                )
            )
            .order_by(reminder_schedules.c.reminder_date)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._execute(stmt)
        due = []
        for row in result.fetchall():
            mapping = row._mapping
            reminder = ReminderSchedule.model_validate(
                {column.name: mapping[column.name] for column in reminder_schedules.c}
            )
            snapshots = {}
            for prefix, (_, model) in _JOINED.items():
                values = _unprefix(mapping, prefix)
                snapshots[prefix] = model.model_validate(values) if values else None
            due.append(DueReminder(reminder=reminder, **snapshots))
        return due

    async def mark_sent(self, reminder_id: UUID) -> bool:
        return await self._set_status(reminder_id, ReminderStatus.SENT)

    async def mark_cancelled(self, reminder_id: UUID) -> bool:
        return await self._set_status(reminder_id, ReminderStatus.CANCELLED)

    async def _set_status(self, reminder_id: UUID, status: ReminderStatus) -> bool:
        # Only SCHEDULED rows move; SENT and CANCELLED are final
        stmt = (
            update(reminder_schedules)
            .where(
                and_(
                    reminder_schedules.c.id == reminder_id,
                    reminder_schedules.c.status == ReminderStatus.SCHEDULED.value,
                )
            )
            .values(status=status.value, updated_at=datetime.now(UTC))
        )
        result = await self._execute(stmt)
        await self._commit()
        return bool(result.rowcount)
