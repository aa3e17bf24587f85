"""Read-only snapshots of directory records used to address and render messages."""

from uuid import UUID

from pydantic import BaseModel


class PatientSnapshot(BaseModel):
    """Patient contact details."""

    id: UUID
    clinic_id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None

    model_config = {"from_attributes": True}


class DentistSnapshot(BaseModel):
    """Dentist display details."""

    id: UUID
    clinic_id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    title: str | None = None

    model_config = {"from_attributes": True}


class ClinicSnapshot(BaseModel):
    """Clinic contact details and timezone."""

    id: UUID
    name: str
    phone: str | None = None
    email: str | None = None
    street: str | None = None
    city: str | None = None
    timezone: str | None = None

    model_config = {"from_attributes": True}

    @property
    def address(self) -> str:
        """Street and city joined, skipping blanks."""
        return ", ".join(part for part in (self.street, self.city) if part)
