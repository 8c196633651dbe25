"""Logging subsystem for certfetch.

Public API::

    from certfetch.logging import configure_logging

    configure_logging(settings.logging)
"""

from certfetch.logging.ratelimit import RateLimitedLog
from certfetch.logging.sanitize import sanitize_pem
from certfetch.logging.setup import configure_logging

__all__ = ["RateLimitedLog", "configure_logging", "sanitize_pem"]
