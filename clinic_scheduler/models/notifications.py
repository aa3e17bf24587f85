"""Notification audit and preference tables."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

# One row per dispatch attempt per channel
notification_requests = Table(
    "notification_requests",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("clinic_id", UUID(as_uuid=True), nullable=False),
    # Denormalized from metadata so pending requests can be cancelled per appointment
    Column("appointment_id", UUID(as_uuid=True), nullable=True),
    Column("type", String(20), nullable=False),
    Column("reminder_type", String(40), nullable=False),
    Column("recipient_email", String(255), nullable=True),
    Column("recipient_phone", String(20), nullable=True),
    Column("subject", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default="PENDING"),
    Column("attempts", Integer, nullable=False, server_default="0"),
    Column("max_attempts", Integer, nullable=False, server_default="3"),
    Column("sent_at", TIMESTAMP(timezone=True), nullable=True),
    Column("error_message", Text, nullable=True),
    Column("metadata", JSONB, nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "type IN ('EMAIL', 'SMS', 'PUSH', 'IN_APP')",
        name="notification_requests_type_check",
    ),
    CheckConstraint(
        "status IN ('PENDING', 'SENT', 'FAILED', 'CANCELLED')",
        name="notification_requests_status_check",
    ),
    Index("idx_notification_requests_clinic", "clinic_id"),
    Index("idx_notification_requests_appointment_status", "appointment_id", "status"),
)

notification_preferences = Table(
    "notification_preferences",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    Column("clinic_id", UUID(as_uuid=True), nullable=False),
    Column("patient_id", UUID(as_uuid=True), nullable=True),
    Column("user_id", UUID(as_uuid=True), nullable=True),
    # Channel toggles
    Column("email_enabled", Boolean, nullable=False, server_default=text("true")),
    Column("sms_enabled", Boolean, nullable=False, server_default=text("false")),
    Column("push_enabled", Boolean, nullable=False, server_default=text("false")),
    # Reminder type toggles
    Column("appointment_reminder_enabled", Boolean, nullable=False, server_default=text("true")),
    Column(
        "appointment_confirmation_enabled", Boolean, nullable=False, server_default=text("true")
    ),
    # Offsets, in hours before the appointment
    Column("appointment_reminder_hours", Integer, nullable=False, server_default="24"),
    Column("appointment_confirmation_hours", Integer, nullable=False, server_default="48"),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "(patient_id IS NULL) <> (user_id IS NULL)",
        name="notification_preferences_subject_check",
    ),
    UniqueConstraint("clinic_id", "patient_id", name="unique_patient_preferences"),
    UniqueConstraint("clinic_id", "user_id", name="unique_user_preferences"),
)
