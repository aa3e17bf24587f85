from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, time
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from clinic_scheduler.core.security import create_access_token
from clinic_scheduler.dependencies import (
    get_appointment_service,
    get_reminder_scheduler,
    get_sweep_runner,
)
from clinic_scheduler.main import app
from clinic_scheduler.schemas.appointments import AppointmentCreate, AppointmentType
from clinic_scheduler.services.appointment_service import AppointmentService
from clinic_scheduler.services.notification_dispatcher import NotificationDispatcher
from clinic_scheduler.services.reminder_scheduler import ReminderScheduler
from clinic_scheduler.services.reminder_sweep import ReminderSweep
from clinic_scheduler.services.sweep_runner import ReminderSweepRunner
from tests.fakes import (
    APPOINTMENT_DAY,
    FixedClock,
    InMemoryAppointmentStore,
    InMemoryAuditSink,
    InMemoryDirectory,
    InMemoryNotificationStore,
    InMemoryPreferenceStore,
    InMemoryReminderStore,
    RecordingEmailAdapter,
    RecordingSmsAdapter,
)


@pytest.fixture
def clock() -> FixedClock:
    """Five days before the appointment day, so default reminders lie ahead."""
    return FixedClock(datetime(2024, 1, 10, 9, 0, tzinfo=UTC))


@pytest.fixture
def clinic_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def directory(clinic_id: UUID) -> InMemoryDirectory:
    directory = InMemoryDirectory()
    directory.add_clinic(
        id=clinic_id,
        name="Smile Dental",
        phone="+15550100",
        email="front@smile.example",
        street="1 Main St",
        city="Springfield",
        timezone="UTC",
    )
    return directory


@pytest.fixture
def patient(directory: InMemoryDirectory, clinic_id: UUID):
    return directory.add_patient(
        clinic_id,
        first_name="Ana",
        last_name="Lopez",
        email="ana@example.com",
        phone="+15550111",
    )


@pytest.fixture
def dentist(directory: InMemoryDirectory, clinic_id: UUID):
    return directory.add_dentist(clinic_id, first_name="Marco", last_name="Rossi")


@pytest.fixture
def appointment_store(clock: FixedClock) -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore(clock)


@pytest.fixture
def preference_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def reminder_store(
    appointment_store: InMemoryAppointmentStore, directory: InMemoryDirectory
) -> InMemoryReminderStore:
    return InMemoryReminderStore(appointment_store, directory)


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def reminder_scheduler(
    appointment_store: InMemoryAppointmentStore,
    directory: InMemoryDirectory,
    preference_store: InMemoryPreferenceStore,
    reminder_store: InMemoryReminderStore,
    notification_store: InMemoryNotificationStore,
) -> ReminderScheduler:
    return ReminderScheduler(
        appointments=appointment_store,
        directory=directory,
        preferences=preference_store,
        reminders=reminder_store,
        notifications=notification_store,
    )


@pytest.fixture
def appointment_service(
    appointment_store: InMemoryAppointmentStore,
    directory: InMemoryDirectory,
    reminder_scheduler: ReminderScheduler,
    audit_sink: InMemoryAuditSink,
    clock: FixedClock,
) -> AppointmentService:
    return AppointmentService(
        appointments=appointment_store,
        directory=directory,
        reminders=reminder_scheduler,
        audit=audit_sink,
        clock=clock,
        conflict_priority="detection",
    )


@pytest.fixture
def email_adapter() -> RecordingEmailAdapter:
    return RecordingEmailAdapter()


@pytest.fixture
def sms_adapter() -> RecordingSmsAdapter:
    return RecordingSmsAdapter()


@pytest.fixture
def dispatcher(
    notification_store: InMemoryNotificationStore,
    email_adapter: RecordingEmailAdapter,
    sms_adapter: RecordingSmsAdapter,
    clock: FixedClock,
) -> NotificationDispatcher:
    return NotificationDispatcher(notification_store, email_adapter, sms_adapter, clock)


@pytest.fixture
def reminder_sweep(
    reminder_store: InMemoryReminderStore,
    appointment_store: InMemoryAppointmentStore,
    dispatcher: NotificationDispatcher,
    clock: FixedClock,
) -> ReminderSweep:
    return ReminderSweep(reminder_store, appointment_store, dispatcher, clock)


@pytest.fixture
def redis_client() -> MagicMock:
    """Redis stand-in whose sweep lock is free unless a test says otherwise."""
    client = MagicMock()
    client.lock.return_value.acquire.return_value = True
    return client


@pytest.fixture
def make_appointment(patient, dentist) -> Callable[..., AppointmentCreate]:
    """Build creation data for the seeded patient and dentist on the appointment day."""

    def _make(start: str = "10:00", end: str = "10:30", **overrides) -> AppointmentCreate:
        start_time = time.fromisoformat(start)
        end_time = time.fromisoformat(end)
        data = {
            "patient_id": patient.id,
            "dentist_id": dentist.id,
            "appointment_date": APPOINTMENT_DAY,
            "start_time": start_time,
            "end_time": end_time,
            "duration_minutes": (end_time.hour * 60 + end_time.minute)
            - (start_time.hour * 60 + start_time.minute),
            "appointment_type": AppointmentType.CONSULTATION,
        }
        data.update(overrides)
        return AppointmentCreate(**data)

    return _make


@pytest.fixture
def auth_headers(user_id: UUID, clinic_id: UUID) -> dict[str, str]:
    token = create_access_token(user_id, clinic_id)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(
    appointment_service: AppointmentService,
    reminder_scheduler: ReminderScheduler,
    reminder_sweep: ReminderSweep,
    redis_client: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with services wired to the in-memory stores."""
    app.dependency_overrides[get_appointment_service] = lambda: appointment_service
    app.dependency_overrides[get_reminder_scheduler] = lambda: reminder_scheduler
    app.dependency_overrides[get_sweep_runner] = lambda: ReminderSweepRunner(
        reminder_sweep.process_due, redis_client=redis_client
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
