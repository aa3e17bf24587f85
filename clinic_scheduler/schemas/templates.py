"""Template rendering context."""

from pydantic import BaseModel


class PatientContext(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""


class DentistContext(BaseModel):
    first_name: str = ""
    last_name: str = ""
    title: str = ""


class ClinicContext(BaseModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""


class AppointmentContext(BaseModel):
    id: str = ""
    date: str = ""
    time: str = ""
    duration: str = ""
    treatment_type: str = ""
    notes: str = ""


class TemplateContext(BaseModel):
    """Fields available for token substitution. Missing values are empty strings."""

    patient: PatientContext = PatientContext()
    dentist: DentistContext = DentistContext()
    clinic: ClinicContext = ClinicContext()
    appointment: AppointmentContext = AppointmentContext()


class NotificationTemplate(BaseModel):
    """Subject and body templates for one reminder type."""

    subject: str
    body: str
