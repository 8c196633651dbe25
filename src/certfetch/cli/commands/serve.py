"""``serve`` subcommand: gunicorn or the Flask development server."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import argparse

    from certfetch.config import CertfetchConfig

log = logging.getLogger(__name__)


def run_serve(config: CertfetchConfig, args: argparse.Namespace) -> None:
    """Build the app and start serving."""
    from certfetch.app import create_app  # noqa: PLC0415
    from certfetch.cli.commands._common import build_container  # noqa: PLC0415

    try:
        container = build_container(config)
    except Exception as exc:
        if args.debug:
            raise
        sys.stderr.write(f"certfetch: error: startup failed: {exc}\n")
        sys.exit(1)

    app = create_app(config=config, container=container)
    server = config.settings.server

    if getattr(args, "dev", False):
        log.info("Starting development server (not for production)")
        app.run(host=server.bind, port=server.port, debug=True, use_reloader=False)
        return

    from certfetch.server.gunicorn_app import run_gunicorn  # noqa: PLC0415

    run_gunicorn(app, server)
