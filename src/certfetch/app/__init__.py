"""Flask application package for certfetch.

Public API::

    from certfetch.app import create_app
"""

from certfetch.app.factory import create_app

__all__ = ["create_app"]
