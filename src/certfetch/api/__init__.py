"""HTTP API layer: blueprint registration.

Call :func:`register_blueprints` during application startup.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flask import Flask

log = logging.getLogger(__name__)


def register_blueprints(app: Flask) -> None:
    """Register the challenge responder and, when a token is set, the connect API."""
    settings = app.config["CERTFETCH_SETTINGS"]

    from certfetch.api.connect import connect_bp  # noqa: PLC0415
    from certfetch.api.responder import responder_bp  # noqa: PLC0415

    app.register_blueprint(responder_bp)

    if settings.connect.token:
        app.register_blueprint(connect_bp, url_prefix="/connect")
        log.info("Connect API registered at /connect")
    else:
        log.info("Connect API disabled (no connect.token configured)")
