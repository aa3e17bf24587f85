"""Read-only directory lookups for patients, dentists and clinics."""

from uuid import UUID

from sqlalchemy import and_, select

from clinic_scheduler.models.clinics import clinics
from clinic_scheduler.models.dentists import dentists
from clinic_scheduler.models.patients import patients
from clinic_scheduler.repositories.base import SqlRepository
from clinic_scheduler.schemas.directory import ClinicSnapshot, DentistSnapshot, PatientSnapshot


class SqlDirectoryStore(SqlRepository):
    """Directory snapshots using SQLAlchemy Core."""

    async def get_patient(self, patient_id: UUID, clinic_id: UUID) -> PatientSnapshot | None:
        stmt = select(patients).where(
            and_(patients.c.id == patient_id, patients.c.clinic_id == clinic_id)
        )
        row = (await self._execute(stmt)).fetchone()
        return PatientSnapshot.model_validate(dict(row._mapping)) if row else None

    async def get_dentist(self, dentist_id: UUID, clinic_id: UUID) -> DentistSnapshot | None:
        stmt = select(dentists).where(
            and_(dentists.c.id == dentist_id, dentists.c.clinic_id == clinic_id)
        )
        row = (await self._execute(stmt)).fetchone()
        return DentistSnapshot.model_validate(dict(row._mapping)) if row else None

    async def get_clinic(self, clinic_id: UUID) -> ClinicSnapshot | None:
        stmt = select(clinics).where(clinics.c.id == clinic_id)
        row = (await self._execute(stmt)).fetchone()
        return ClinicSnapshot.model_validate(dict(row._mapping)) if row else None
