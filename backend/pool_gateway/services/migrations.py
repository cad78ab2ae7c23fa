"""
Idempotent schema setup, run every time a Store is opened.

IDEMPOTENCY:
  • Tables and indexes are created with checkfirst, so re-running against
    an initialized file is a no-op.
  • Indexes are created one by one, not only as part of CREATE TABLE, so
    an index added later still lands on a table that already exists.
  • Columns added after the first release are listed in ADDITIVE_COLUMNS.
    Each is applied only if the live table lacks it, in its own
    transaction. "duplicate column" counts as success.

Schema evolution never aborts startup: a failed additive migration is
logged and skipped.
"""

from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from pool_gateway.core.database import Base

# Import all models so Base.metadata is fully populated
import pool_gateway.models.account  # noqa: F401
import pool_gateway.models.api_key  # noqa: F401
import pool_gateway.models.setting  # noqa: F401

logger = logging.getLogger(__name__)

# (table, column, DDL fragment). Append only, never reorder.
ADDITIVE_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("api_keys", "key_full", "TEXT NOT NULL DEFAULT ''"),
)


def _create_tables_and_indexes(conn: Connection) -> None:
    Base.metadata.create_all(conn, checkfirst=True)
    for table in Base.metadata.sorted_tables:
        for index in table.indexes:
            index.create(conn, checkfirst=True)


def _existing_columns(conn: Connection, table: str) -> set[str]:
    return {col["name"] for col in inspect(conn).get_columns(table)}


async def _add_column(engine: AsyncEngine, table: str, column: str, ddl: str) -> None:
    async with engine.begin() as conn:
        existing = await conn.run_sync(_existing_columns, table)
        if column in existing:
            logger.debug("Migration skipped: %s.%s already present", table, column)
            return
        await conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
    logger.info("Migration applied: added %s.%s", table, column)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create missing tables/indexes, then apply additive column migrations."""
    async with engine.begin() as conn:
        await conn.run_sync(_create_tables_and_indexes)

    for table, column, ddl in ADDITIVE_COLUMNS:
        try:
            await _add_column(engine, table, column, ddl)
        except OperationalError as exc:
            if "duplicate column" in str(exc.orig).lower():
                logger.debug("Migration skipped: %s.%s already present", table, column)
                continue
            logger.warning("Migration %s.%s failed, continuing: %s", table, column, exc)
        except SQLAlchemyError as exc:
            logger.warning("Migration %s.%s failed, continuing: %s", table, column, exc)
