"""Overlap detection for proposed appointment windows."""

from datetime import date, time
from uuid import UUID

import structlog

from clinic_scheduler.repositories.ports import AppointmentStore
from clinic_scheduler.schemas.appointments import (
    Appointment,
    AppointmentConflict,
    ConflictType,
    minutes_since_midnight,
)

logger = structlog.get_logger(__name__)

PRIORITY_DETECTION = "detection"
PRIORITY_DENTIST_FIRST = "dentist_first"
PRIORITY_PATIENT_FIRST = "patient_first"


def windows_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open windows ``[start, end)`` overlap; touching edges do not."""
    return start_a < end_b and end_a > start_b


def _time_range(appointment: Appointment) -> str:
    return f"{appointment.start_time.strftime('%H:%M')} to {appointment.end_time.strftime('%H:%M')}"


def select_primary_conflict(
    conflicts: list[AppointmentConflict],
    priority: str = PRIORITY_DETECTION,
) -> AppointmentConflict | None:
    """
    Pick the conflict surfaced to the caller.

    Args:
        conflicts: Conflicts in detection order
        priority: ``detection`` keeps the first one found, ``dentist_first``
            and ``patient_first`` prefer that conflict type when present

    Returns:
        The primary conflict, or None when there are none
    """
    if not conflicts:
        return None

    preferred = {
        PRIORITY_DENTIST_FIRST: ConflictType.DENTIST_BUSY,
        PRIORITY_PATIENT_FIRST: ConflictType.PATIENT_BUSY,
    }.get(priority)

    if preferred is not None:
        for conflict in conflicts:
            if conflict.conflict_type == preferred:
                return conflict

    return conflicts[0]


class ConflictDetector:
    """Find active appointments that block a proposed window."""

    def __init__(self, appointments: AppointmentStore):
        """Initialize detector with the appointment store."""
        self.appointments = appointments

    async def find_conflicts(
        self,
        appointment_date: date,
        start_time: time,
        end_time: time,
        dentist_id: UUID,
        patient_id: UUID,
        clinic_id: UUID,
        exclude_appointment_id: UUID | None = None,
    ) -> list[AppointmentConflict]:
        """
        Find overlapping active appointments for a dentist or patient.

        Args:
            appointment_date: Clinic-local date of the proposed window
            start_time: Proposed start
            end_time: Proposed end
            dentist_id: Dentist who would attend
            patient_id: Patient who would attend
            clinic_id: Clinic scope
            exclude_appointment_id: Appointment being rescheduled, ignored

        Returns:
            Conflicts in detection order; empty when the window is free.
            A single appointment that shares both dentist and patient yields
            two conflicts.
        """
        existing = await self.appointments.list_active_on_date(
            clinic_id, appointment_date, exclude_id=exclude_appointment_id
        )

        new_start = minutes_since_midnight(start_time)
        new_end = minutes_since_midnight(end_time)

        conflicts: list[AppointmentConflict] = []
        for appointment in existing:
            if not appointment.is_active:
                continue
            if not windows_overlap(
                new_start,
                new_end,
                minutes_since_midnight(appointment.start_time),
                minutes_since_midnight(appointment.end_time),
            ):
                continue

            if appointment.dentist_id == dentist_id:
                conflicts.append(
                    AppointmentConflict(
                        conflict_type=ConflictType.DENTIST_BUSY,
                        conflicting_appointment=appointment,
                        message="Dentist already has an appointment from "
                        f"{_time_range(appointment)}",
                    )
                )
            if appointment.patient_id == patient_id:
                conflicts.append(
                    AppointmentConflict(
                        conflict_type=ConflictType.PATIENT_BUSY,
                        conflicting_appointment=appointment,
                        message="Patient already has an appointment from "
                        f"{_time_range(appointment)}",
                    )
                )

        if conflicts:
            logger.info(
                "appointment_conflicts_found",
                clinic_id=str(clinic_id),
                appointment_date=appointment_date.isoformat(),
                count=len(conflicts),
            )
        return conflicts
