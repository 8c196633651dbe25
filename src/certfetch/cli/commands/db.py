"""Database management subcommands."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import argparse

    from certfetch.config import CertfetchConfig

log = logging.getLogger(__name__)


def run_db(config: CertfetchConfig, args: argparse.Namespace) -> None:
    """Handle db subcommands."""
    if args.db_command == "status":
        _db_status(config)
    else:
        sys.stderr.write("certfetch: error: expected a db subcommand (status)\n")
        sys.exit(1)


def _db_status(config: CertfetchConfig) -> None:
    """Check database connectivity and which certfetch tables exist."""
    from certfetch.db.init import TABLES, init_database, missing_tables  # noqa: PLC0415

    settings = config.settings.database
    if settings is None:
        sys.stderr.write("certfetch: error: no database section configured\n")
        sys.exit(1)

    try:
        db = init_database(settings)
        db.fetch_value("SELECT 1")
        missing = missing_tables(db)
    except Exception as exc:  # noqa: BLE001
        log.debug("db status failed", exc_info=True)
        sys.stderr.write(f"certfetch: database unreachable: {exc}\n")
        sys.exit(1)

    present = len(TABLES) - len(missing)
    sys.stdout.write(
        f"database: connected ({settings.host}:{settings.port}/{settings.database})\n"
        f"schema  : {present}/{len(TABLES)} tables present\n",
    )
    if missing:
        sys.stdout.write(f"missing : {', '.join(missing)}\n")
        sys.exit(2)
