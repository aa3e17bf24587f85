"""Clinic directory table (read-only to the scheduling core)."""

from sqlalchemy import Column, String, Table, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

clinics = Table(
    "clinics",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("name", String(255), nullable=False),
    Column("phone", String(20), nullable=True),
    Column("email", String(255), nullable=True),
    Column("street", Text, nullable=True),
    Column("city", String(100), nullable=True),
    # IANA zone used to turn local appointment times into reminder timestamps
    Column("timezone", String(64), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
)
