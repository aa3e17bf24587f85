"""Notification preference lookups."""

from uuid import UUID

from sqlalchemy import and_, select

from clinic_scheduler.models.notifications import notification_preferences
from clinic_scheduler.repositories.base import SqlRepository
from clinic_scheduler.repositories.ports import SubjectType
from clinic_scheduler.schemas.notifications import NotificationPreferences


class SqlPreferenceStore(SqlRepository):
    """Preference reads using SQLAlchemy Core."""

    async def get(
        self,
        subject_id: UUID,
        clinic_id: UUID,
        subject_type: SubjectType = "patient",
    ) -> NotificationPreferences | None:
        """
        Get stored preferences for a patient or staff user.

        Args:
            subject_id: Patient or user ID
            clinic_id: Clinic the preferences belong to
            subject_type: Which column ``subject_id`` refers to

        Returns:
            Stored preferences, or None when the subject has none
        """
        subject_column = (
            notification_preferences.c.patient_id
            if subject_type == "patient"
            else notification_preferences.c.user_id
        )
        stmt = select(notification_preferences).where(
            and_(
                subject_column == subject_id,
                notification_preferences.c.clinic_id == clinic_id,
            )
        )
        row = (await self._execute(stmt)).fetchone()
        return NotificationPreferences.model_validate(dict(row._mapping)) if row else None
