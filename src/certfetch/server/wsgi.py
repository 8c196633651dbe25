"""WSGI entry point for external servers (gunicorn, uWSGI, etc.).

The config file path is read from the ``CERTFETCH_CONFIG`` environment
variable.

Example::

    export CERTFETCH_CONFIG=/etc/certfetch/config.yaml
    gunicorn "certfetch.server.wsgi:app"
"""

from __future__ import annotations

import os
import sys

_config_path = os.environ.get("CERTFETCH_CONFIG")
if _config_path is None:
    sys.stderr.write("CERTFETCH_CONFIG is not set\n")
    sys.exit(1)

# Bootstrap the singleton before anything else imports it.
from certfetch.config import CertfetchConfig  # noqa: E402

_config = CertfetchConfig(config_file=_config_path, schema_file="bundled")

from certfetch.logging import configure_logging  # noqa: E402

configure_logging(_config.settings.logging)

from certfetch.app import create_app  # noqa: E402

_db = None
if _config.settings.store.backend == "postgres":
    from certfetch.db import init_database  # noqa: E402

    _db = init_database(_config.settings.database)

app = create_app(config=_config, database=_db)
