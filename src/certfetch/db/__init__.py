"""Database subsystem for certfetch.

Public API::

    from certfetch.db import init_database
"""

from certfetch.db.init import init_database

__all__ = ["init_database"]
