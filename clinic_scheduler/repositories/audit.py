"""Audit log writer."""

from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import insert

from clinic_scheduler.models.audit_logs import audit_logs
from clinic_scheduler.repositories.base import SqlRepository


class SqlAuditSink(SqlRepository):
    """Append rows to the audit log."""

    async def record(
        self,
        table: str,
        record_id: UUID,
        action: str,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        user_id: UUID | None,
    ) -> None:
        stmt = insert(audit_logs).values(
            table_name=table,
            record_id=record_id,
            action=action,
            # JSONB needs dates, times and UUIDs as strings
            old_values=jsonable_encoder(old_values),
            new_values=jsonable_encoder(new_values),
            user_id=user_id,
        )
        await self._execute(stmt)
        await self._commit()
