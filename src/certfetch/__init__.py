"""certfetch: ACME certificate lifecycle manager.

Issues and renews TLS certificates for the platform wildcard and for
verified customer domains, serving them to the TLS termination layer.
"""

__version__ = "1.0.0"
