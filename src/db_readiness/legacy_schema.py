"""Detection of pre-v2 migration history."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from db_readiness.errors import LegacySchemaError

DEFAULT_MIGRATIONS_TABLE = "_prisma_migrations"
LEGACY_CUTOFF = datetime(2023, 4, 17)
MIGRATION_GUIDE_URL = "https://umami.is/docs/migrate-v1-v2"


def _history_table(name: str, schema: str | None) -> sa.TableClause:
    return sa.table(name, sa.column("started_at", sa.DateTime()), schema=schema)


def find_legacy_migrations(
    connection: Connection,
    *,
    table: str = DEFAULT_MIGRATIONS_TABLE,
    schema: str | None = None,
    cutoff: datetime = LEGACY_CUTOFF,
) -> list[datetime]:
    """Return start timestamps of history rows older than the cutoff."""
    if not sa.inspect(connection).has_table(table, schema=schema):
        return []
    history = _history_table(table, schema)
    rows = connection.execute(
        sa.select(history.c.started_at)
        .where(history.c.started_at < cutoff)
        .order_by(history.c.started_at)
    ).scalars()
    return list(rows)


def check_legacy_schema(
    connection: Connection,
    label: str,
    *,
    table: str = DEFAULT_MIGRATIONS_TABLE,
    schema: str | None = None,
    guide_url: str = MIGRATION_GUIDE_URL,
) -> None:
    legacy_rows = find_legacy_migrations(connection, table=table, schema=schema)
    if legacy_rows:
        raise LegacySchemaError(label=label, guide_url=guide_url, row_count=len(legacy_rows))
