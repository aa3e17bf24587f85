"""Token substitution for notification templates."""

import re
from collections.abc import Callable

from clinic_scheduler.schemas.appointments import Appointment
from clinic_scheduler.schemas.directory import ClinicSnapshot, DentistSnapshot, PatientSnapshot
from clinic_scheduler.schemas.notifications import ReminderType
from clinic_scheduler.schemas.templates import (
    AppointmentContext,
    ClinicContext,
    DentistContext,
    NotificationTemplate,
    PatientContext,
    TemplateContext,
)

DEFAULT_DENTIST_TITLE = "Dr."
DEFAULT_CLINIC_NAME = "Dental Clinic"

TOKEN_PATTERN = re.compile(r"\{\{\s*([A-Za-z]+\.[A-Za-z]+)\s*\}\}")

# Closed set of supported tokens
TOKENS: dict[str, Callable[[TemplateContext], str]] = {
    "patient.firstName": lambda ctx: ctx.patient.first_name,
    "patient.lastName": lambda ctx: ctx.patient.last_name,
    "patient.email": lambda ctx: ctx.patient.email,
    "patient.phone": lambda ctx: ctx.patient.phone,
    "dentist.firstName": lambda ctx: ctx.dentist.first_name,
    "dentist.lastName": lambda ctx: ctx.dentist.last_name,
    "dentist.title": lambda ctx: ctx.dentist.title or DEFAULT_DENTIST_TITLE,
    "clinic.name": lambda ctx: ctx.clinic.name,
    "clinic.phone": lambda ctx: ctx.clinic.phone,
    "clinic.email": lambda ctx: ctx.clinic.email,
    "clinic.address": lambda ctx: ctx.clinic.address,
    "appointment.date": lambda ctx: ctx.appointment.date,
    "appointment.time": lambda ctx: ctx.appointment.time,
    "appointment.treatmentType": lambda ctx: ctx.appointment.treatment_type,
    "appointment.notes": lambda ctx: ctx.appointment.notes,
}

DEFAULT_TEMPLATES: dict[ReminderType, NotificationTemplate] = {
    ReminderType.APPOINTMENT_REMINDER: NotificationTemplate(
        subject="Appointment Reminder - {{clinic.name}}",
        body=(
            "Hello {{patient.firstName}},\n"
            "\n"
            "This is a reminder of your upcoming appointment:\n"
            "\n"
            "Date: {{appointment.date}}\n"
            "Time: {{appointment.time}}\n"
            "Dentist: {{dentist.title}} {{dentist.firstName}} {{dentist.lastName}}\n"
            "Clinic: {{clinic.name}}\n"
            "\n"
            "Please confirm your attendance.\n"
            "\n"
            "Regards,\n"
            "The {{clinic.name}} team\n"
            "{{clinic.phone}}"
        ),
    ),
    ReminderType.APPOINTMENT_CONFIRMATION: NotificationTemplate(
        subject="Please Confirm Your Appointment - {{clinic.name}}",
        body=(
            "Hello {{patient.firstName}},\n"
            "\n"
            "Your appointment is on {{appointment.date}} at {{appointment.time}}. "
            "Please confirm your attendance.\n"
            "\n"
            "{{clinic.address}}\n"
            "{{clinic.phone}}\n"
            "\n"
            "Thank you,\n"
            "{{clinic.name}}"
        ),
    ),
}


def render(template: str, context: TemplateContext) -> str:
    """
    Substitute ``{{token}}`` placeholders in a single pass.

    Args:
        template: Subject or body text
        context: Values for the supported tokens

    Returns:
        Rendered text. Unknown tokens are left as written.
    """

    def _replace(match: re.Match[str]) -> str:
        resolver = TOKENS.get(match.group(1))
        if resolver is None:
            return match.group(0)
        return resolver(context)

    return TOKEN_PATTERN.sub(_replace, template)


def render_template(
    reminder_type: ReminderType, context: TemplateContext
) -> tuple[str, str]:
    """Render the default subject and body for a reminder type."""
    template = DEFAULT_TEMPLATES[reminder_type]
    return render(template.subject, context), render(template.body, context)


def build_context(
    appointment: Appointment,
    patient: PatientSnapshot | None = None,
    dentist: DentistSnapshot | None = None,
    clinic: ClinicSnapshot | None = None,
) -> TemplateContext:
    """Assemble a rendering context; missing records and values become empty strings."""
    return TemplateContext(
        patient=PatientContext(
            first_name=patient.first_name if patient else "",
            last_name=patient.last_name if patient else "",
            email=(patient.email or "") if patient else "",
            phone=(patient.phone or "") if patient else "",
        ),
        dentist=DentistContext(
            first_name=dentist.first_name if dentist else "",
            last_name=dentist.last_name if dentist else "",
            title=(dentist.title or "") if dentist else "",
        ),
        clinic=ClinicContext(
            name=clinic.name if clinic else DEFAULT_CLINIC_NAME,
            phone=(clinic.phone or "") if clinic else "",
            email=(clinic.email or "") if clinic else "",
            address=clinic.address if clinic else "",
        ),
        appointment=AppointmentContext(
            id=str(appointment.id),
            date=appointment.appointment_date.isoformat(),
            time=appointment.start_time.strftime("%H:%M"),
            duration=str(appointment.duration_minutes),
            treatment_type=appointment.appointment_type.value.replace("_", " "),
            notes=appointment.notes or "",
        ),
    )
