"""Appointment endpoints."""

from datetime import date, time
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import (
    AppointmentServiceDep,
    CurrentPrincipal,
    ReminderSchedulerDep,
)
from clinic_scheduler.schemas.appointments import (
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
)
from clinic_scheduler.schemas.notifications import ReminderSchedule

router = APIRouter()


@router.post(
    "/",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Book an appointment in the caller's clinic.

    Args:
        data: Appointment creation data
        principal: Authenticated user and clinic
        service: Appointment service

    Returns:
        Created appointment
    """
    return await service.create(data, principal.clinic_id, principal.user_id)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    patient_id: UUID | None = Query(None),
    dentist_id: UUID | None = Query(None),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    appointment_type: AppointmentType | None = Query(None),
    sort_by: Literal["appointment_date", "created_at"] = Query("appointment_date"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> AppointmentListResponse:
    """List the clinic's appointments with filtering, sorting and pagination."""
    filters = AppointmentFilters(
        date_from=date_from,
        date_to=date_to,
        patient_id=patient_id,
        dentist_id=dentist_id,
        status=status_filter,
        appointment_type=appointment_type,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return await service.list_appointments(principal.clinic_id, filters)


@router.get(
    "/stats",
    response_model=AppointmentStats,
    status_code=status.HTTP_200_OK,
    summary="Appointment statistics",
)
async def get_appointment_stats(
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> AppointmentStats:
    return await service.stats(principal.clinic_id)


@router.get(
    "/check-conflicts",
    response_model=ConflictCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Check a time window for conflicts",
)
async def check_conflicts(
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
    appointment_date: date = Query(...),
    start_time: time = Query(...),
    end_time: time = Query(...),
    dentist_id: UUID = Query(...),
    patient_id: UUID = Query(...),
    exclude_appointment_id: UUID | None = Query(None),
) -> ConflictCheckResponse:
    """
    Report conflicts for a proposed window without booking it.

    Args:
        principal: Authenticated user and clinic
        service: Appointment service
        appointment_date: Proposed date
        start_time: Proposed start (HH:MM)
        end_time: Proposed end (HH:MM)
        dentist_id: Dentist to check
        patient_id: Patient to check
        exclude_appointment_id: Appointment being rescheduled

    Returns:
        Every conflict found
    """
    return await service.check_conflicts(
        principal.clinic_id,
        appointment_date,
        start_time,
        end_time,
        dentist_id,
        patient_id,
        exclude_appointment_id=exclude_appointment_id,
    )


@router.get(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> Appointment:
    return await service.get(appointment_id, principal.clinic_id)


@router.put(
    "/{appointment_id}",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Update or reschedule an appointment.

    Args:
        appointment_id: Appointment ID
        data: Fields to change
        principal: Authenticated user and clinic
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.update(appointment_id, data, principal.clinic_id, principal.user_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=Appointment,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> Appointment:
    """
    Update appointment status (confirm, start, complete, cancel, no-show).

    Args:
        appointment_id: Appointment ID
        data: New status and, when cancelling, the reason
        principal: Authenticated user and clinic
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.update_status(
        appointment_id, data, principal.clinic_id, principal.user_id
    )


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
) -> None:
    """Cancel an appointment administratively. The record is kept."""
    await service.delete(appointment_id, principal.clinic_id, principal.user_id)


@router.get(
    "/{appointment_id}/reminders",
    response_model=list[ReminderSchedule],
    status_code=status.HTTP_200_OK,
    summary="List reminders of an appointment",
)
async def list_appointment_reminders(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    service: AppointmentServiceDep,
    scheduler: ReminderSchedulerDep,
) -> list[ReminderSchedule]:
    await service.get(appointment_id, principal.clinic_id)
    return await scheduler.list_for_appointment(appointment_id, principal.clinic_id)
