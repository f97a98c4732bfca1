"""
Centralized SQLite Schema Initialization.

Defines the local schema of the portal client and provides a single
entry-point, :func:`initialize_schema`, that creates all required tables
idempotently.  A ``schema_version`` table records the applied version so
later releases can roll the schema forward.

Adding a New Migration
~~~~~~~~~~~~~~~~~~~~~~
1. Bump :data:`CURRENT_SCHEMA_VERSION`.
2. Update the relevant DDL in :data:`_TABLE_DEFINITIONS` (fresh installs).
3. Write a ``_migrate_vN_to_vN+1()`` function and register it in
   :data:`_MIGRATIONS`.

Usage::

    from civicportal.schema import initialize_schema

    initialize_schema(db.sqlite, logger)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable

from civicportal.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

CURRENT_SCHEMA_VERSION: int = 1

_TABLE_DEFINITIONS: list[str] = [
    # -- encrypted key/value storage (token, refreshToken) ---------------------
    """
    CREATE TABLE IF NOT EXISTS client_storage (
        key TEXT PRIMARY KEY,
        encrypted_value BLOB NOT NULL,
        nonce BLOB NOT NULL,
        tag BLOB NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

MigrationFunc = Callable[[sqlite3.Connection, StructuredLogger], None]

_MIGRATIONS: dict[int, MigrationFunc] = {}


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            version INTEGER NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` for a fresh database."""
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the single-row version tracker.  Does not commit."""
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def _run_incremental_migrations(
    conn: sqlite3.Connection,
    logger: StructuredLogger,
    from_version: int,
    to_version: int,
) -> None:
    for target in range(from_version + 1, to_version + 1):
        migration = _MIGRATIONS.get(target)
        if migration is None:
            raise RuntimeError(f"No migration registered for schema version {target}.")
        logger.info(f"Applying schema migration to version {target}.")
        migration(conn, logger)


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Fresh databases get every table from :data:`_TABLE_DEFINITIONS`;
    older ones run the registered migrations.  The upgrade and the
    version bump share a single transaction, so a failure leaves the
    stored version unchanged and the next startup retries.

    Called on every application startup; fully idempotent.
    """
    _ensure_version_table(conn)
    current: int = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current}).")
        return

    try:
        if current == 0:
            for ddl in _TABLE_DEFINITIONS:
                conn.execute(ddl)
        else:
            _run_incremental_migrations(conn, logger, current, CURRENT_SCHEMA_VERSION)
        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(f"Schema migration failed, rolled back to version {current}.")
        raise

    logger.info(f"Schema initialised at version {CURRENT_SCHEMA_VERSION}.")
