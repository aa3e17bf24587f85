"""Dentist (clinic staff) directory table."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Table, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

dentists = Table(
    "dentists",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column(
        "clinic_id",
        UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=True),
    Column("title", String(20), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Index("idx_dentists_clinic_id", "clinic_id"),
)
