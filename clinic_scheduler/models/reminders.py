"""Reminder schedule table: one row per reminder type per appointment."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Table, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

reminder_schedules = Table(
    "reminder_schedules",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column(
        "appointment_id",
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("clinic_id", UUID(as_uuid=True), nullable=False),
    Column("patient_id", UUID(as_uuid=True), nullable=False),
    Column("dentist_id", UUID(as_uuid=True), nullable=False),
    Column("appointment_date", TIMESTAMP(timezone=True), nullable=False),
    Column("reminder_date", TIMESTAMP(timezone=True), nullable=False),
    Column("type", Text, nullable=False),
    # Channels snapshotted when the reminder was scheduled
    Column("notification_types", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("status", Text, nullable=False, server_default="SCHEDULED"),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "type IN ('APPOINTMENT_REMINDER', 'APPOINTMENT_CONFIRMATION')",
        name="reminder_schedules_type_check",
    ),
    CheckConstraint(
        "status IN ('SCHEDULED', 'SENT', 'CANCELLED')",
        name="reminder_schedules_status_check",
    ),
    CheckConstraint("reminder_date < appointment_date", name="reminder_schedules_before_check"),
    CheckConstraint(
        "notification_types <@ '[\"EMAIL\", \"SMS\", \"PUSH\"]'::jsonb",
        name="reminder_schedules_channels_check",
    ),
    Index("idx_reminder_schedules_due", "status", "reminder_date"),
    Index("idx_reminder_schedules_appointment", "appointment_id", "clinic_id"),
)
