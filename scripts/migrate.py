"""Run or author database migrations.

Usage:
    python scripts/migrate.py                     # upgrade to head
    python scripts/migrate.py downgrade <rev>     # downgrade to a revision
    python scripts/migrate.py current             # show the applied revision
    python scripts/migrate.py create <message>    # autogenerate a revision
"""

import sys

from alembic import command
from alembic.config import Config

ALEMBIC_INI = "alembic.ini"


def _config() -> Config:
    return Config(ALEMBIC_INI)


def upgrade(revision: str = "head") -> None:
    """Upgrade the schema to ``revision``."""
    try:
        print(f"Upgrading schema to {revision}...")
        command.upgrade(_config(), revision)
        print("✓ Schema is up to date")
    except Exception as e:
        print(f"✗ Upgrade failed: {e}", file=sys.stderr)
        sys.exit(1)


def downgrade(revision: str) -> None:
    """Downgrade the schema to ``revision``."""
    try:
        print(f"Downgrading schema to {revision}...")
        command.downgrade(_config(), revision)
        print("✓ Downgrade complete")
    except Exception as e:
        print(f"✗ Downgrade failed: {e}", file=sys.stderr)
        sys.exit(1)


def create_migration(message: str) -> None:
    """Autogenerate a revision from the table metadata."""
    try:
        print(f"Creating migration: {message}")
        command.revision(_config(), message=message, autogenerate=True)
        print("✓ Migration created")
    except Exception as e:
        print(f"✗ Migration creation failed: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str]) -> None:
    if not argv:
        upgrade()
    elif argv[0] == "downgrade" and len(argv) == 2:
        downgrade(argv[1])
    elif argv[0] == "current":
        command.current(_config(), verbose=True)
    elif argv[0] == "create" and len(argv) > 1:
        create_migration(" ".join(argv[1:]))
    else:
        print(__doc__)
        sys.exit(2)


if __name__ == "__main__":
    main(sys.argv[1:])
