"""Flask application factory for certfetch.

Usage::

    from certfetch.app import create_app
    from certfetch.config import get_config

    app = create_app(config=get_config())
"""

from __future__ import annotations

import atexit
import logging
from typing import TYPE_CHECKING

from flask import Flask, jsonify

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue
    from pypgkit import Database

    from certfetch.app.context import Container
    from certfetch.config.certfetch_config import CertfetchConfig

log = logging.getLogger(__name__)


def create_app(
    config: CertfetchConfig | None = None,
    database: Database | None = None,
    container: Container | None = None,
) -> Flask:
    """Create and configure the certfetch Flask application.

    Parameters
    ----------
    config:
        Loaded :class:`CertfetchConfig`.  Falls back to :func:`get_config`
        when ``None``.
    database:
        Initialised :class:`Database`, needed for the postgres store.
    container:
        Pre-built container; tests pass one wired with fakes.

    Returns
    -------
    Flask
        Fully configured WSGI application.

    """
    if config is None:
        from certfetch.config import get_config  # noqa: PLC0415

        config = get_config()

    settings = config.settings

    app = Flask("certfetch")
    app.config["CERTFETCH_SETTINGS"] = settings
    app.config["CERTFETCH_CONFIG"] = config

    if container is None:
        from certfetch.app.context import Container as _Container  # noqa: PLC0415

        container = _Container(settings, database)
    app.extensions["container"] = container
    atexit.register(container.shutdown)

    _register_health(app)

    from certfetch.api import register_blueprints  # noqa: PLC0415

    register_blueprints(app)

    log.info("Flask application created")
    return app


def _register_health(app: Flask) -> None:
    from certfetch import __version__  # noqa: PLC0415

    @app.route("/livez")
    def livez() -> ResponseReturnValue:
        return jsonify({"alive": True, "version": __version__}), 200
