"""Appointment store backed by the appointments table."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clinic_scheduler.core.exceptions import ConflictException, PersistenceException
from clinic_scheduler.models.appointments import (
    DENTIST_OVERLAP_CONSTRAINT,
    PATIENT_OVERLAP_CONSTRAINT,
    appointments,
)
from clinic_scheduler.repositories.base import SqlRepository
from clinic_scheduler.schemas.appointments import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentFilters,
    AppointmentStats,
    AppointmentStatus,
    AppointmentType,
)

logger = structlog.get_logger(__name__)

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


def _db_values(values: dict[str, Any]) -> dict[str, Any]:
    """Unwrap enums into their stored text values."""
    return {
        key: value.value if isinstance(value, AppointmentStatus | AppointmentType) else value
        for key, value in values.items()
    }


class SqlAppointmentStore(SqlRepository):
    """Appointment persistence using SQLAlchemy Core."""

    async def get(self, appointment_id: UUID, clinic_id: UUID) -> Appointment | None:
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.clinic_id == clinic_id,
            )
        )
        result = await self._execute(stmt)
        row = result.fetchone()
        return Appointment.model_validate(dict(row._mapping)) if row else None

    async def list_active_on_date(
        self,
        clinic_id: UUID,
        appointment_date: date,
        exclude_id: UUID | None = None,
    ) -> list[Appointment]:
        conditions = [
            appointments.c.clinic_id == clinic_id,
            appointments.c.appointment_date == appointment_date,
            appointments.c.status.in_(_ACTIVE_VALUES),
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.start_time)
        result = await self._execute(stmt)
        return [Appointment.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def list_appointments(
        self, clinic_id: UUID, filters: AppointmentFilters
    ) -> tuple[list[Appointment], int]:
        """
        List appointments with filtering and pagination.

        Args:
            clinic_id: Clinic the appointments belong to
            filters: Filter, sort and pagination parameters

        Returns:
            Page of appointments and the total number of matches
        """
        conditions = [appointments.c.clinic_id == clinic_id]

        if filters.date_from:
            conditions.append(appointments.c.appointment_date >= filters.date_from)

        if filters.date_to:
            conditions.append(appointments.c.appointment_date <= filters.date_to)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.dentist_id:
            conditions.append(appointments.c.dentist_id == filters.dentist_id)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.appointment_type:
            conditions.append(appointments.c.appointment_type == filters.appointment_type.value)

        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await self._execute(count_stmt)
        total = total_result.scalar() or 0

        sort_column = appointments.c[filters.sort_by]
        if filters.sort_order == "desc":
            order = [sort_column.desc(), appointments.c.start_time.desc()]
        else:
            order = [sort_column.asc(), appointments.c.start_time.asc()]

        offset = (filters.page - 1) * filters.limit
        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(*order)
            .limit(filters.limit)
            .offset(offset)
        )
        result = await self._execute(stmt)
        items = [Appointment.model_validate(dict(row._mapping)) for row in result.fetchall()]
        return items, total

    async def create(self, values: dict[str, Any]) -> Appointment:
        """
        Insert an appointment.

        Raises:
            ConflictException: If an overlap exclusion constraint rejects the row
            PersistenceException: On any other database error
        """
        stmt = insert(appointments).values(**_db_values(values)).returning(appointments)
        result = await self._write(stmt)
        row = result.fetchone()
        await self._commit()
        return Appointment.model_validate(dict(row._mapping))

    async def update(
        self,
        appointment_id: UUID,
        clinic_id: UUID,
        values: dict[str, Any],
        expected_status: AppointmentStatus | None = None,
    ) -> Appointment | None:
        conditions = [
            appointments.c.id == appointment_id,
            appointments.c.clinic_id == clinic_id,
        ]
        if expected_status is not None:
            conditions.append(appointments.c.status == expected_status.value)

        update_values = _db_values(values)
        update_values["updated_at"] = datetime.now(UTC)

        stmt = (
            update(appointments)
            .where(and_(*conditions))
            .values(**update_values)
            .returning(appointments)
        )
        result = await self._write(stmt)
        row = result.fetchone()
        await self._commit()
        return Appointment.model_validate(dict(row._mapping)) if row else None

    async def mark_reminder_sent(self, appointment_id: UUID, sent_at: datetime) -> None:
        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(reminder_sent=True, reminder_sent_at=sent_at, updated_at=datetime.now(UTC))
        )
        await self._execute(stmt)
        await self._commit()

    async def stats(self, clinic_id: UUID, today: date) -> AppointmentStats:
        """
        Count appointments for a clinic.

        Args:
            clinic_id: Clinic to summarize
            today: Clinic-local current date

        Returns:
            Totals by status and type, plus today's and upcoming counts
        """
        scope = appointments.c.clinic_id == clinic_id

        status_stmt = (
            select(appointments.c.status, func.count())
            .where(scope)
            .group_by(appointments.c.status)
        )
        status_rows = (await self._execute(status_stmt)).fetchall()
        by_status = {AppointmentStatus(row[0]): row[1] for row in status_rows}

        type_stmt = (
            select(appointments.c.appointment_type, func.count())
            .where(scope)
            .group_by(appointments.c.appointment_type)
        )
        type_rows = (await self._execute(type_stmt)).fetchall()
        by_type = {AppointmentType(row[0]): row[1] for row in type_rows}

        today_stmt = (
            select(func.count())
            .select_from(appointments)
            .where(and_(scope, appointments.c.appointment_date == today))
        )
        today_count = (await self._execute(today_stmt)).scalar() or 0

        upcoming_stmt = (
            select(func.count())
            .select_from(appointments)
            .where(
                and_(
                    scope,
                    appointments.c.appointment_date > today,
                    appointments.c.status.in_(_ACTIVE_VALUES),
                )
            )
        )
        upcoming_count = (await self._execute(upcoming_stmt)).scalar() or 0

        return AppointmentStats(
            total_appointments=sum(by_status.values()),
            by_status=by_status,
            by_type=by_type,
            today_appointments=today_count,
            upcoming_appointments=upcoming_count,
        )

    async def _write(self, stmt: Any) -> Any:
        """Execute a write, mapping overlap constraint violations to conflicts."""
        try:
            return await self.db.execute(stmt)
        except IntegrityError as e:
            await self.db.rollback()
            detail = str(e.orig)
            if DENTIST_OVERLAP_CONSTRAINT in detail:
                logger.info("appointment_overlap_rejected", constraint=DENTIST_OVERLAP_CONSTRAINT)
                raise ConflictException("Dentist already has an appointment at this time") from e
            if PATIENT_OVERLAP_CONSTRAINT in detail:
                logger.info("appointment_overlap_rejected", constraint=PATIENT_OVERLAP_CONSTRAINT)
                raise ConflictException("Patient already has an appointment at this time") from e
            logger.error("database_error", repository=type(self).__name__, error=detail)
            raise PersistenceException(detail) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("database_error", repository=type(self).__name__, error=str(e))
            raise PersistenceException(str(e)) from e
