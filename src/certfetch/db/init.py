"""PostgreSQL bootstrap for the ``postgres`` store backend.

The connection pool is the PyPGKit :class:`Database` singleton; the
repositories in :mod:`certfetch.repositories` pick it up through
``Database.get_instance()`` once :func:`init_database` has run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pypgkit import Database, DatabaseConfig

if TYPE_CHECKING:
    from certfetch.config.settings import DatabaseSettings

log = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Every table created by schema.sql
TABLES = ("certs", "keypairs", "http_challenges", "dns_challenges", "projects")


def _pool_config(settings: DatabaseSettings) -> DatabaseConfig:
    return DatabaseConfig(
        host=settings.host,
        port=settings.port,
        database=settings.database,
        user=settings.user,
        password=settings.password,
        sslmode=settings.sslmode,
        min_connections=settings.min_connections,
        max_connections=settings.max_connections,
        connection_timeout=settings.connection_timeout,
    )


def init_database(settings: DatabaseSettings) -> Database:
    """Open the shared connection pool, applying ``schema.sql`` if asked.

    Safe to call more than once: later calls return the pool opened by
    the first one and ignore *settings*.
    """
    if Database.is_initialized():
        return Database.get_instance()

    log.info(
        "Connecting to PostgreSQL %s@%s:%s/%s (auto_setup=%s)",
        settings.user,
        settings.host,
        settings.port,
        settings.database,
        settings.auto_setup,
    )
    return Database.init(
        config=_pool_config(settings),
        schema_path=SCHEMA_PATH if settings.auto_setup else None,
        auto_setup=settings.auto_setup,
        interactive=False,
    )


def missing_tables(db: Database) -> list[str]:
    """Return the certfetch tables absent from the ``public`` schema."""
    rows = db.fetch_all(
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'public' AND table_name = ANY(%s)",
        (list(TABLES),),
        as_dict=True,
    )
    present = {row["table_name"] for row in rows}
    return [table for table in TABLES if table not in present]
