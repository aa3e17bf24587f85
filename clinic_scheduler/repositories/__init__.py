"""Persistence ports and their SQLAlchemy Core implementations."""

from clinic_scheduler.repositories.appointments import SqlAppointmentStore
from clinic_scheduler.repositories.audit import SqlAuditSink
from clinic_scheduler.repositories.directory import SqlDirectoryStore
from clinic_scheduler.repositories.notifications import SqlNotificationStore
from clinic_scheduler.repositories.preferences import SqlPreferenceStore
from clinic_scheduler.repositories.reminders import SqlReminderStore

__all__ = [
    "SqlAppointmentStore",
    "SqlAuditSink",
    "SqlDirectoryStore",
    "SqlNotificationStore",
    "SqlPreferenceStore",
    "SqlReminderStore",
]
