"""Database models."""

from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.audit_logs import audit_logs
from clinic_scheduler.models.clinics import clinics
from clinic_scheduler.models.dentists import dentists
from clinic_scheduler.models.metadata import metadata
from clinic_scheduler.models.notifications import (
    notification_preferences,
    notification_requests,
)
from clinic_scheduler.models.patients import patients
from clinic_scheduler.models.reminders import reminder_schedules

__all__ = [
    "appointments",
    "audit_logs",
    "clinics",
    "dentists",
    "metadata",
    "notification_preferences",
    "notification_requests",
    "patients",
    "reminder_schedules",
]
