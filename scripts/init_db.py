"""Create the scheduling schema directly from table metadata.

Useful for local development and throwaway databases. Production databases
should be managed with ``scripts/migrate.py`` instead.
"""

import asyncio

from sqlalchemy import text

from clinic_scheduler.database import engine
from clinic_scheduler.models import metadata
from clinic_scheduler.models.appointments import OVERLAP_CONSTRAINTS_DDL


async def init_db(drop_existing: bool = False) -> None:
    """Create extensions, tables and overlap constraints."""
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "btree_gist"'))

        if drop_existing:
            await conn.run_sync(metadata.drop_all)

        await conn.run_sync(metadata.create_all)

        for statement in OVERLAP_CONSTRAINTS_DDL:
            await conn.execute(text(statement))

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    import sys

    asyncio.run(init_db(drop_existing="--drop" in sys.argv[1:]))
