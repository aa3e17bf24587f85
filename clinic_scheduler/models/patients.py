"""Patient directory table (read-only to the scheduling core)."""

from sqlalchemy import Column, Date, ForeignKey, Index, String, Table, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

patients = Table(
    "patients",
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
    Column("phone", String(20), nullable=True),
    Column("date_of_birth", Date, nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Index("idx_patients_clinic_id", "clinic_id"),
)
