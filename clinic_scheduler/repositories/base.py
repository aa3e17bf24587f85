"""Shared plumbing for the SQLAlchemy Core repositories."""

from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import PersistenceException

logger = structlog.get_logger(__name__)


class SqlRepository:
    """Base repository bound to one async session."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def _execute(self, stmt: Any) -> Any:
        """Execute a statement, translating driver errors to PersistenceException."""
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("database_error", repository=type(self).__name__, error=str(e))
            raise PersistenceException(str(e)) from e

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("database_commit_failed", repository=type(self).__name__, error=str(e))
            raise PersistenceException(str(e)) from e
