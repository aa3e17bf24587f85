"""Create scheduling tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op
from clinic_scheduler.models.appointments import OVERLAP_CONSTRAINTS_DDL

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create directory, appointment, reminder, notification and audit tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')
    # Needed for the overlap exclusion constraints on (uuid, range)
    op.execute('CREATE EXTENSION IF NOT EXISTS "btree_gist"')

    op.create_table(
        "clinics",
        _id_column(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("street", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "patients",
        _id_column(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_patients_clinic_id", "patients", ["clinic_id"])

    op.create_table(
        "dentists",
        _id_column(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("title", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_dentists_clinic_id", "dentists", ["clinic_id"])

    op.create_table(
        "appointments",
        _id_column(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dentist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("appointment_type", sa.Text(), nullable=False),
        sa.Column("reason_for_visit", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status", sa.Text(), server_default=sa.text("'scheduled'"), nullable=False
        ),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column(
            "reminder_sent", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("updated_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["dentist_id"], ["dentists.id"]),
        sa.CheckConstraint("start_time < end_time", name="appointments_window_check"),
        sa.CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', "
            "'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "appointment_type IN ('consultation', 'cleaning', 'filling', 'extraction', "
            "'root_canal', 'crown', 'orthodontics', 'surgery', 'emergency', 'follow_up')",
            name="appointments_type_check",
        ),
    )
    op.create_index(
        "idx_appointments_clinic_date", "appointments", ["clinic_id", "appointment_date"]
    )
    op.create_index("idx_appointments_dentist", "appointments", ["dentist_id"])
    op.create_index("idx_appointments_patient", "appointments", ["patient_id"])
    op.create_index("idx_appointments_status", "appointments", ["status"])
    for statement in OVERLAP_CONSTRAINTS_DDL:
        op.execute(statement)

    op.create_table(
        "reminder_schedules",
        _id_column(),
        sa.Column("appointment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dentist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reminder_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column(
            "notification_types",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "status", sa.Text(), server_default=sa.text("'SCHEDULED'"), nullable=False
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "type IN ('APPOINTMENT_REMINDER', 'APPOINTMENT_CONFIRMATION')",
            name="reminder_schedules_type_check",
        ),
        sa.CheckConstraint(
            "status IN ('SCHEDULED', 'SENT', 'CANCELLED')",
            name="reminder_schedules_status_check",
        ),
        sa.CheckConstraint(
            "reminder_date < appointment_date", name="reminder_schedules_before_check"
        ),
        sa.CheckConstraint(
            "notification_types <@ '[\"EMAIL\", \"SMS\", \"PUSH\"]'::jsonb",
            name="reminder_schedules_channels_check",
        ),
    )
    op.create_index(
        "idx_reminder_schedules_due", "reminder_schedules", ["status", "reminder_date"]
    )
    op.create_index(
        "idx_reminder_schedules_appointment",
        "reminder_schedules",
        ["appointment_id", "clinic_id"],
    )

    op.create_table(
        "notification_requests",
        _id_column(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("reminder_type", sa.String(length=40), nullable=False),
        sa.Column("recipient_email", sa.String(length=255), nullable=True),
        sa.Column("recipient_phone", sa.String(length=20), nullable=True),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "status", sa.String(length=20), server_default=sa.text("'PENDING'"), nullable=False
        ),
        sa.Column("attempts", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("max_attempts", sa.Integer(), server_default=sa.text("3"), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "type IN ('EMAIL', 'SMS', 'PUSH', 'IN_APP')",
            name="notification_requests_type_check",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'SENT', 'FAILED', 'CANCELLED')",
            name="notification_requests_status_check",
        ),
    )
    op.create_index("idx_notification_requests_clinic", "notification_requests", ["clinic_id"])
    op.create_index(
        "idx_notification_requests_appointment_status",
        "notification_requests",
        ["appointment_id", "status"],
    )

    op.create_table(
        "notification_preferences",
        _id_column(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("email_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("sms_enabled", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("push_enabled", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "appointment_reminder_enabled",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column(
            "appointment_confirmation_enabled",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column(
            "appointment_reminder_hours", sa.Integer(), server_default=sa.text("24"), nullable=False
        ),
        sa.Column(
            "appointment_confirmation_hours",
            sa.Integer(),
            server_default=sa.text("48"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(patient_id IS NULL) <> (user_id IS NULL)",
            name="notification_preferences_subject_check",
        ),
        sa.UniqueConstraint("clinic_id", "patient_id", name="unique_patient_preferences"),
        sa.UniqueConstraint("clinic_id", "user_id", name="unique_user_preferences"),
    )

    op.create_table(
        "audit_logs",
        _id_column(),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("record_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("old_values", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("new_values", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_audit_logs_record", "audit_logs", ["table_name", "record_id"])


def downgrade() -> None:
    """Drop scheduling tables."""
    op.drop_table("audit_logs")
    op.drop_table("notification_preferences")
    op.drop_table("notification_requests")
    op.drop_table("reminder_schedules")
    op.drop_table("appointments")
    op.drop_table("dentists")
    op.drop_table("patients")
    op.drop_table("clinics")
