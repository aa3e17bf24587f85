"""FastAPI dependencies and service composition."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.config import settings
from clinic_scheduler.core.clock import SystemClock
from clinic_scheduler.core.security import read_principal_claims
from clinic_scheduler.database import get_db
from clinic_scheduler.repositories import (
    SqlAppointmentStore,
    SqlAuditSink,
    SqlDirectoryStore,
    SqlNotificationStore,
    SqlPreferenceStore,
    SqlReminderStore,
)
from clinic_scheduler.services.appointment_service import AppointmentService
from clinic_scheduler.services.channels import get_email_adapter, get_sms_adapter
from clinic_scheduler.services.notification_dispatcher import NotificationDispatcher
from clinic_scheduler.services.reminder_scheduler import ReminderScheduler
from clinic_scheduler.services.reminder_sweep import ReminderSweep
from clinic_scheduler.services.sweep_runner import ReminderSweepRunner

# Security
security = HTTPBearer()


class Principal(BaseModel):
    """Authenticated caller: a staff user acting within one clinic."""

    user_id: UUID
    clinic_id: UUID


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Principal:
    """
    Extract the user and clinic from a JWT bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Principal with ``sub`` as user ID and the ``clinic_id`` claim

    Raises:
        HTTPException: If token is invalid, expired or missing a claim
    """
    claims = read_principal_claims(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id, clinic_id = claims
    return Principal(user_id=user_id, clinic_id=clinic_id)


async def verify_admin_secret(
    x_admin_secret: str = Header(..., description="Admin secret key"),
) -> None:
    """Reject operational calls without the admin secret."""
    if x_admin_secret != settings.admin_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin secret key",
        )


def build_reminder_scheduler(db: AsyncSession) -> ReminderScheduler:
    """Reminder scheduler over SQL stores sharing one session."""
    return ReminderScheduler(
        appointments=SqlAppointmentStore(db),
        directory=SqlDirectoryStore(db),
        preferences=SqlPreferenceStore(db),
        reminders=SqlReminderStore(db),
        notifications=SqlNotificationStore(db),
    )


def build_appointment_service(db: AsyncSession) -> AppointmentService:
    """Appointment lifecycle service wired to SQL stores and the reminder scheduler."""
    return AppointmentService(
        appointments=SqlAppointmentStore(db),
        directory=SqlDirectoryStore(db),
        reminders=build_reminder_scheduler(db),
        audit=SqlAuditSink(db),
        clock=SystemClock(),
        conflict_priority=settings.conflict_priority,
    )


def build_reminder_sweep(db: AsyncSession) -> ReminderSweep:
    """Reminder sweep with the configured channel adapters."""
    dispatcher = NotificationDispatcher(
        notifications=SqlNotificationStore(db),
        email_adapter=get_email_adapter(),
        sms_adapter=get_sms_adapter(),
        clock=SystemClock(),
    )
    return ReminderSweep(
        reminders=SqlReminderStore(db),
        appointments=SqlAppointmentStore(db),
        dispatcher=dispatcher,
        clock=SystemClock(),
    )


async def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AppointmentService:
    return build_appointment_service(db)


async def get_reminder_scheduler(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReminderScheduler:
    return build_reminder_scheduler(db)


async def get_reminder_sweep(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReminderSweep:
    return build_reminder_sweep(db)


async def get_sweep_runner(
    sweep: Annotated[ReminderSweep, Depends(get_reminder_sweep)],
) -> ReminderSweepRunner:
    """Runner that sweeps under the same lock as the background job."""
    return ReminderSweepRunner(sweep.process_due)


# Type aliases for dependency injection
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
ReminderSchedulerDep = Annotated[ReminderScheduler, Depends(get_reminder_scheduler)]
SweepRunnerDep = Annotated[ReminderSweepRunner, Depends(get_sweep_runner)]
