"""Business rules for appointment windows."""

from datetime import datetime, time

from pydantic import BaseModel, Field

from clinic_scheduler.config import settings
from clinic_scheduler.schemas.appointments import AppointmentType, minutes_since_midnight


class DurationRule(BaseModel):
    """Accepted durations for one appointment type, in minutes."""

    min_duration: int
    max_duration: int
    default_duration: int
    recommended_slots: list[int]


APPOINTMENT_DURATION_RULES: dict[AppointmentType, DurationRule] = {
    AppointmentType.CONSULTATION: DurationRule(
        min_duration=30, max_duration=60, default_duration=45, recommended_slots=[15, 30, 45, 60]
    ),
    AppointmentType.CLEANING: DurationRule(
        min_duration=45,
        max_duration=90,
        default_duration=60,
        recommended_slots=[15, 30, 45, 60, 75, 90],
    ),
    AppointmentType.FILLING: DurationRule(
        min_duration=30,
        max_duration=120,
        default_duration=60,
        recommended_slots=[15, 30, 45, 60, 75, 90, 105, 120],
    ),
    AppointmentType.EXTRACTION: DurationRule(
        min_duration=30,
        max_duration=90,
        default_duration=45,
        recommended_slots=[15, 30, 45, 60, 75, 90],
    ),
    AppointmentType.ROOT_CANAL: DurationRule(
        min_duration=60,
        max_duration=180,
        default_duration=90,
        recommended_slots=[30, 45, 60, 75, 90, 105, 120, 135, 150, 165, 180],
    ),
    AppointmentType.ORTHODONTICS: DurationRule(
        min_duration=30,
        max_duration=120,
        default_duration=60,
        recommended_slots=[15, 30, 45, 60, 75, 90, 105, 120],
    ),
    AppointmentType.SURGERY: DurationRule(
        min_duration=60,
        max_duration=240,
        default_duration=120,
        recommended_slots=[30, 60, 90, 120, 150, 180, 210, 240],
    ),
    AppointmentType.EMERGENCY: DurationRule(
        min_duration=15,
        max_duration=120,
        default_duration=30,
        recommended_slots=[15, 30, 45, 60, 75, 90, 105, 120],
    ),
    AppointmentType.FOLLOW_UP: DurationRule(
        min_duration=15, max_duration=45, default_duration=30, recommended_slots=[15, 30, 45]
    ),
}


class ValidationResult(BaseModel):
    """Errors block the operation; warnings are only reported."""

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )


def validate_time_sequence(start_time: time, end_time: time) -> ValidationResult:
    result = ValidationResult()
    if minutes_since_midnight(start_time) >= minutes_since_midnight(end_time):
        result.errors.append("Start time must be before end time")
    return result


def validate_window_duration(
    start_time: time, end_time: time, duration_minutes: int
) -> ValidationResult:
    result = ValidationResult()
    window = minutes_since_midnight(end_time) - minutes_since_midnight(start_time)
    if window > 0 and window != duration_minutes:
        result.errors.append("Duration does not match the specified time window")
    return result


def validate_business_hours(start_time: time, end_time: time) -> ValidationResult:
    """Both ends of the window must fall within the configured opening hours."""
    result = ValidationResult()
    opening = datetime.strptime(settings.business_hours_start, "%H:%M").time()
    closing = datetime.strptime(settings.business_hours_end, "%H:%M").time()
    hours = f"{settings.business_hours_start} and {settings.business_hours_end}"

    if not opening <= start_time <= closing:
        result.errors.append(f"Start time must be between {hours}")
    if not opening <= end_time <= closing:
        result.errors.append(f"End time must be between {hours}")
    return result


def validate_appointment_duration(
    appointment_type: AppointmentType, duration_minutes: int
) -> ValidationResult:
    """
    Check a duration against the rules for its appointment type.

    Durations outside the type's bounds are errors. Durations inside the
    bounds but off the recommended slots are warnings. Types without rules
    only get a warning.
    """
    result = ValidationResult()
    rule = APPOINTMENT_DURATION_RULES.get(appointment_type)
    if rule is None:
        result.warnings.append(
            f"No duration rules for {appointment_type.value}, using basic validation"
        )
        return result

    if duration_minutes < rule.min_duration:
        result.errors.append(
            f"Minimum duration for {appointment_type.value} is {rule.min_duration} minutes"
        )
    if duration_minutes > rule.max_duration:
        result.errors.append(
            f"Maximum duration for {appointment_type.value} is {rule.max_duration} minutes"
        )
    if duration_minutes not in rule.recommended_slots:
        slots = ", ".join(str(slot) for slot in rule.recommended_slots)
        result.warnings.append(f"Recommended durations are: {slots} minutes")
    return result


def validate_appointment_window(
    start_time: time,
    end_time: time,
    duration_minutes: int,
    appointment_type: AppointmentType,
) -> ValidationResult:
    """Run every window rule and combine the results."""
    result = validate_time_sequence(start_time, end_time)
    result = result.merge(validate_window_duration(start_time, end_time, duration_minutes))
    result = result.merge(validate_business_hours(start_time, end_time))
    return result.merge(validate_appointment_duration(appointment_type, duration_minutes))
