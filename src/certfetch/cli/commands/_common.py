"""Helpers shared by subcommands that need the dependency container."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certfetch.app.context import Container
    from certfetch.config import CertfetchConfig


def build_container(config: CertfetchConfig) -> Container:
    """Initialise the database when needed and wire a :class:`Container`."""
    from certfetch.app.context import Container as _Container  # noqa: PLC0415

    settings = config.settings
    db = None
    if settings.store.backend == "postgres":
        from certfetch.db import init_database  # noqa: PLC0415

        db = init_database(settings.database)
    return _Container(settings, db)
