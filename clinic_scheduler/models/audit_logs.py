"""Append-only audit log table."""

from sqlalchemy import Column, Index, String, Table, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

audit_logs = Table(
    "audit_logs",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("table_name", String(64), nullable=False),
    Column("record_id", UUID(as_uuid=True), nullable=False),
    Column("action", String(32), nullable=False),
    Column("old_values", JSONB, nullable=True),
    Column("new_values", JSONB, nullable=True),
    Column("user_id", UUID(as_uuid=True), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Index("idx_audit_logs_record", "table_name", "record_id"),
)
