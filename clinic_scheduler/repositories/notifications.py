"""Notification request log."""

from datetime import UTC, datetime
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import and_, insert, update

from clinic_scheduler.models.notifications import notification_requests
from clinic_scheduler.repositories.base import SqlRepository
from clinic_scheduler.schemas.notifications import (
    NotificationRequest,
    NotificationRequestCreate,
    NotificationStatus,
)


class SqlNotificationStore(SqlRepository):
    """Dispatch attempt persistence using SQLAlchemy Core."""

    async def record(self, data: NotificationRequestCreate) -> NotificationRequest:
        values = data.model_dump()
        values["type"] = data.type.value
        values["reminder_type"] = data.reminder_type.value
        values["status"] = data.status.value
        values["metadata"] = jsonable_encoder(data.metadata)

        stmt = insert(notification_requests).values(**values).returning(notification_requests)
        result = await self._execute(stmt)
        row = result.fetchone()
        await self._commit()

        payload = dict(row._mapping)
        payload["metadata"] = payload.get("metadata") or {}
        return NotificationRequest.model_validate(payload)

    async def cancel_pending_for_appointment(self, appointment_id: UUID, clinic_id: UUID) -> int:
        stmt = (
            update(notification_requests)
            .where(
                and_(
                    notification_requests.c.appointment_id == appointment_id,
                    notification_requests.c.clinic_id == clinic_id,
                    notification_requests.c.status == NotificationStatus.PENDING.value,
                )
            )
            .values(status=NotificationStatus.CANCELLED.value, updated_at=datetime.now(UTC))
        )
        result = await self._execute(stmt)
        await self._commit()
        return result.rowcount or 0
