"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    Time,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.metadata import metadata

# Exclusion constraints created by the migration (they need btree_gist and a
# range expression, so they are not declared on the Table below).
DENTIST_OVERLAP_CONSTRAINT = "appointments_dentist_no_overlap"
PATIENT_OVERLAP_CONSTRAINT = "appointments_patient_no_overlap"

ACTIVE_STATUS_SQL = "status IN ('scheduled', 'confirmed', 'in_progress')"

OVERLAP_CONSTRAINTS_DDL = [
    f"""
    ALTER TABLE appointments
    ADD CONSTRAINT {DENTIST_OVERLAP_CONSTRAINT}
    EXCLUDE USING gist (
        clinic_id WITH =,
        dentist_id WITH =,
        tsrange(appointment_date + start_time, appointment_date + end_time, '[)') WITH &&
    )
    WHERE ({ACTIVE_STATUS_SQL})
    """,
    f"""
    ALTER TABLE appointments
    ADD CONSTRAINT {PATIENT_OVERLAP_CONSTRAINT}
    EXCLUDE USING gist (
        clinic_id WITH =,
        patient_id WITH =,
        tsrange(appointment_date + start_time, appointment_date + end_time, '[)') WITH &&
    )
    WHERE ({ACTIVE_STATUS_SQL})
    """,
]

appointments = Table(
    "appointments",
    metadata,
    Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    ),
    # Ownership / references
    Column(
        "clinic_id",
        UUID(as_uuid=True),
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("patient_id", UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False),
    Column("dentist_id", UUID(as_uuid=True), ForeignKey("dentists.id"), nullable=False),
    # Time window (clinic-local)
    Column("appointment_date", Date, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("duration_minutes", Integer, nullable=False),
    # Appointment details
    Column("appointment_type", Text, nullable=False),
    Column("reason_for_visit", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    Column("cancellation_reason", Text, nullable=True),
    # Reminder tracking
    Column("reminder_sent", Boolean, nullable=False, server_default=text("false")),
    Column("reminder_sent_at", TIMESTAMP(timezone=True), nullable=True),
    # Audit fields
    Column("created_by", UUID(as_uuid=True), nullable=False),
    Column("updated_by", UUID(as_uuid=True), nullable=True),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    # Constraints
    CheckConstraint("start_time < end_time", name="appointments_window_check"),
    CheckConstraint("duration_minutes > 0", name="appointments_duration_check"),
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "appointment_type IN ('consultation', 'cleaning', 'filling', 'extraction', "
        "'root_canal', 'crown', 'orthodontics', 'surgery', 'emergency', 'follow_up')",
        name="appointments_type_check",
    ),
    Index("idx_appointments_clinic_date", "clinic_id", "appointment_date"),
    Index("idx_appointments_dentist", "dentist_id"),
    Index("idx_appointments_patient", "patient_id"),
    Index("idx_appointments_status", "status"),
)
